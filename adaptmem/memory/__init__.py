from adaptmem.memory.models import (
    IngestResult,
    InvalidMemoryType,
    MemoryContext,
    MemoryMetadata,
    MemoryRecord,
    MemoryType,
    RecallContext,
    RecallResult,
)
from adaptmem.memory.store import MemoryStore
from adaptmem.memory.pipeline import MemoryPipeline

__all__ = [
    "IngestResult",
    "InvalidMemoryType",
    "MemoryContext",
    "MemoryMetadata",
    "MemoryPipeline",
    "MemoryRecord",
    "MemoryStore",
    "MemoryType",
    "RecallContext",
    "RecallResult",
]
