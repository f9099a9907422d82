from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from adaptmem.utils import ensure_aware, parse_iso, to_iso


class InvalidMemoryType(ValueError):
    pass


class MemoryType(str, Enum):
    FACT = "fact"
    PREFERENCE = "preference"
    PROJECT = "project"
    TASK = "task"
    CONFIG = "config"
    DEADLINE = "deadline"
    CONVERSATION = "conversation"
    INSIGHT = "insight"

    @classmethod
    def coerce(cls, value: Any) -> "MemoryType":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidMemoryType(
                f"Invalid memory type {value!r}; expected one of {', '.join(m.value for m in cls)}"
            ) from None


class Source(str, Enum):
    USER = "user"
    AI = "ai"
    SYSTEM = "system"


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class Intent(str, Enum):
    PLANNING = "planning"
    TROUBLESHOOTING = "troubleshooting"
    LEARNING = "learning"
    CREATING = "creating"
    REVIEWING = "reviewing"
    GENERAL = "general"


class Timeframe(str, Enum):
    IMMEDIATE = "immediate"
    RECENT = "recent"
    HISTORICAL = "historical"
    ALL = "all"


class Urgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def _coerce(enum_cls, value):
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise ValueError(
            f"Invalid {enum_cls.__name__.lower()} {value!r}; expected one of {', '.join(m.value for m in enum_cls)}"
        ) from None


@dataclass
class MemoryContext:
    project: str | None = None
    topic: str | None = None
    intent: str | None = None
    entities: list[str] = field(default_factory=list)
    sentiment: Sentiment | None = None

    def __post_init__(self) -> None:
        self.sentiment = _coerce(Sentiment, self.sentiment)
        if isinstance(self.intent, Enum):
            self.intent = self.intent.value
        self.entities = list(self.entities or [])

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"entities": list(self.entities)}
        if self.project is not None:
            data["project"] = self.project
        if self.topic is not None:
            data["topic"] = self.topic
        if self.intent is not None:
            data["intent"] = self.intent
        if self.sentiment is not None:
            data["sentiment"] = self.sentiment.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MemoryContext":
        return cls(
            project=data.get("project"),
            topic=data.get("topic"),
            intent=data.get("intent"),
            entities=list(data.get("entities") or []),
            sentiment=data.get("sentiment"),
        )


@dataclass
class MemoryMetadata:
    source: Source = Source.USER
    confidence: float = 0.8
    verified: bool = False
    expires_at: datetime | None = None

    def __post_init__(self) -> None:
        self.source = _coerce(Source, self.source)
        if isinstance(self.expires_at, str):
            self.expires_at = parse_iso(self.expires_at)
        elif self.expires_at is not None:
            self.expires_at = ensure_aware(self.expires_at)
        self.confidence = float(self.confidence)
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be within [0, 1], got {self.confidence}")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "source": self.source.value,
            "confidence": self.confidence,
            "verified": self.verified,
        }
        if self.expires_at is not None:
            data["expiresAt"] = to_iso(self.expires_at)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MemoryMetadata":
        expires = data.get("expiresAt")
        return cls(
            source=data.get("source", Source.USER),
            confidence=data.get("confidence", 0.8),
            verified=bool(data.get("verified", False)),
            expires_at=parse_iso(expires) if expires else None,
        )


@dataclass
class MemoryRecord:
    id: str
    content: str
    type: MemoryType
    category: str
    tags: set[str]
    created_at: datetime
    last_accessed_at: datetime
    importance: int
    context: MemoryContext = field(default_factory=MemoryContext)
    metadata: MemoryMetadata = field(default_factory=MemoryMetadata)
    access_count: int = 0
    relationships: set[str] = field(default_factory=set)

    @property
    def entities(self) -> list[str]:
        return self.context.entities

    @property
    def project(self) -> str | None:
        return self.context.project

    def is_expired(self, now: datetime) -> bool:
        expires = self.metadata.expires_at
        return expires is not None and expires < now

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "type": self.type.value,
            "category": self.category,
            "tags": sorted(self.tags),
            "createdAt": to_iso(self.created_at),
            "lastAccessedAt": to_iso(self.last_accessed_at),
            "accessCount": self.access_count,
            "importance": self.importance,
            "context": self.context.to_dict(),
            "relationships": sorted(self.relationships),
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MemoryRecord":
        return cls(
            id=str(data["id"]),
            content=str(data["content"]),
            type=MemoryType.coerce(data["type"]),
            category=str(data.get("category") or "general"),
            tags=set(data.get("tags") or []),
            created_at=parse_iso(data["createdAt"]),
            last_accessed_at=parse_iso(data.get("lastAccessedAt") or data["createdAt"]),
            access_count=int(data.get("accessCount", 0)),
            importance=int(data["importance"]),
            context=MemoryContext.from_dict(data.get("context") or {}),
            relationships=set(data.get("relationships") or []),
            metadata=MemoryMetadata.from_dict(data.get("metadata") or {}),
        )


@dataclass
class RecallContext:
    query: str
    intent: Intent = Intent.GENERAL
    timeframe: Timeframe = Timeframe.ALL
    project: str | None = None
    topic: str | None = None
    urgency: Urgency = Urgency.MEDIUM
    entities: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.intent = _coerce(Intent, self.intent) or Intent.GENERAL
        self.timeframe = _coerce(Timeframe, self.timeframe) or Timeframe.ALL
        self.urgency = _coerce(Urgency, self.urgency) or Urgency.MEDIUM
        self.entities = list(self.entities or [])


@dataclass
class RecallResult:
    memories: list[MemoryRecord]
    reasoning: str
    confidence: float
    suggestions: list[str]


@dataclass
class MemoryStats:
    total: int
    count_by_type: dict[str, int]
    count_by_category: dict[str, int]
    avg_importance: float


@dataclass
class IngestResult:
    conversation_ids: list[str]
    insight_ids: list[str]
    specialized_ids: list[str]

    def extend(self, other: "IngestResult") -> None:
        self.conversation_ids.extend(other.conversation_ids)
        self.insight_ids.extend(other.insight_ids)
        self.specialized_ids.extend(other.specialized_ids)

    @property
    def total(self) -> int:
        return len(self.conversation_ids) + len(self.insight_ids) + len(self.specialized_ids)
