from adaptmem.memory import (
    InvalidMemoryType,
    MemoryRecord,
    MemoryStore,
    MemoryType,
    RecallContext,
    RecallResult,
)
from adaptmem.processor import MemoryAwareProcessor
from adaptmem.retrieval.retriever import MemoryRetriever

__version__ = "0.1.0"

__all__ = [
    "InvalidMemoryType",
    "MemoryAwareProcessor",
    "MemoryRecord",
    "MemoryRetriever",
    "MemoryStore",
    "MemoryType",
    "RecallContext",
    "RecallResult",
]
