from __future__ import annotations

import json
import logging
import random
import sqlite3
import string
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from adaptmem.memory import analyzer, linker
from adaptmem.memory.indexes import MemoryIndexes, reindex
from adaptmem.memory.models import (
    MemoryContext,
    MemoryMetadata,
    MemoryRecord,
    MemoryStats,
    MemoryType,
)
from adaptmem.storage import BlobStorage, InMemoryStorage
from adaptmem.utils import to_iso, utcnow

_ID_ALPHABET = string.digits + string.ascii_lowercase
_METADATA_FIELDS = frozenset({"source", "confidence", "verified"})


def _coerce_context(context: MemoryContext | dict[str, Any] | None) -> tuple[MemoryContext, bool]:
    # Returns the context plus whether the caller supplied entities explicitly.
    if context is None:
        return MemoryContext(), False
    if isinstance(context, MemoryContext):
        return MemoryContext(
            project=context.project,
            topic=context.topic,
            intent=context.intent,
            entities=list(context.entities),
            sentiment=context.sentiment,
        ), bool(context.entities)
    return MemoryContext.from_dict(context), "entities" in context


def _coerce_metadata(metadata: MemoryMetadata | dict[str, Any] | None) -> MemoryMetadata:
    if metadata is None:
        return MemoryMetadata()
    if isinstance(metadata, MemoryMetadata):
        return MemoryMetadata(
            source=metadata.source,
            confidence=metadata.confidence,
            verified=metadata.verified,
            expires_at=metadata.expires_at,
        )
    data = dict(metadata)
    # The blob spells the expiry "expiresAt"; callers may use either name.
    expires = data.pop("expires_at", None)
    camel_expires = data.pop("expiresAt", None)
    unknown = set(data) - _METADATA_FIELDS
    if unknown:
        raise ValueError(f"Unknown metadata fields: {', '.join(sorted(unknown))}")
    return MemoryMetadata(expires_at=expires if expires is not None else camel_expires, **data)


@dataclass
class MemoryStore:
    storage: BlobStorage = field(default_factory=InMemoryStorage)
    clock: Callable[[], datetime] = utcnow
    _records: dict[str, MemoryRecord] = field(default_factory=dict, init=False, repr=False)
    _indexes: MemoryIndexes = field(default_factory=MemoryIndexes, init=False, repr=False)

    def __post_init__(self) -> None:
        self.load()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, memory_id: object) -> bool:
        return memory_id in self._records

    def store(
        self,
        content: str,
        type: MemoryType | str,
        context: MemoryContext | dict[str, Any] | None = None,
        metadata: MemoryMetadata | dict[str, Any] | None = None,
    ) -> str:
        memory_type = MemoryType.coerce(type)
        ctx, explicit_entities = _coerce_context(context)
        meta = _coerce_metadata(metadata)
        if not explicit_entities:
            ctx.entities = analyzer.extract_entities(content)

        now = self.clock()
        record = MemoryRecord(
            id=self._new_id(now),
            content=content,
            type=memory_type,
            category=analyzer.categorize(content, memory_type),
            tags=analyzer.generate_tags(content, memory_type, ctx),
            created_at=now,
            last_accessed_at=now,
            importance=analyzer.score_importance(content, memory_type, ctx),
            context=ctx,
            metadata=meta,
        )

        candidates = [self._records[i] for i in sorted(self._link_candidates(record))]
        self._records[record.id] = record
        linker.link(record, candidates)
        self._indexes = reindex(self._records.values())
        self.persist()
        logging.getLogger(__name__).debug(
            "Stored %s memory %s (importance=%d, links=%d)",
            memory_type.value,
            record.id,
            record.importance,
            len(record.relationships),
        )
        return record.id

    def delete(self, memory_id: str) -> bool:
        if self._records.pop(memory_id, None) is None:
            return False
        self._remove({memory_id})
        logging.getLogger(__name__).debug("Deleted memory %s", memory_id)
        return True

    def clear_expired(self, now: datetime | None = None) -> int:
        now = now or self.clock()
        expired = {record.id for record in self._records.values() if record.is_expired(now)}
        if not expired:
            return 0
        for memory_id in expired:
            del self._records[memory_id]
        self._remove(expired)
        logging.getLogger(__name__).info("Cleared %d expired memories", len(expired))
        return len(expired)

    def _remove(self, removed_ids: set[str]) -> None:
        linker.unlink(removed_ids, self._records.values())
        self._indexes = reindex(self._records.values())
        self.persist()

    def touch(self, records: list[MemoryRecord], now: datetime | None = None) -> None:
        if not records:
            return
        now = now or self.clock()
        for record in records:
            record.last_accessed_at = now
            record.access_count += 1
        self.persist()

    def get(self, memory_id: str) -> MemoryRecord | None:
        return self._records.get(memory_id)

    def get_all(self) -> list[MemoryRecord]:
        return list(self._records.values())

    def get_many(self, memory_ids) -> list[MemoryRecord]:
        return [self._records[i] for i in memory_ids if i in self._records]

    def recent(self, limit: int) -> list[MemoryRecord]:
        ordered = sorted(self._records.values(), key=lambda r: (r.created_at, r.id), reverse=True)
        return ordered[:limit]

    def search(
        self,
        query: str = "",
        type: MemoryType | str | None = None,
        category: str | None = None,
    ) -> list[MemoryRecord]:
        needle = query.strip().lower()
        wanted_type = MemoryType.coerce(type) if type else None
        results = []
        for record in self.recent(len(self._records)):
            if wanted_type is not None and record.type != wanted_type:
                continue
            if category and record.category != category:
                continue
            if needle and not (
                needle in record.content.lower()
                or any(needle in tag for tag in record.tags)
                or needle in record.category.lower()
            ):
                continue
            results.append(record)
        return results

    def stats(self) -> MemoryStats:
        count_by_type: dict[str, int] = {}
        count_by_category: dict[str, int] = {}
        total_importance = 0
        for record in self._records.values():
            count_by_type[record.type.value] = count_by_type.get(record.type.value, 0) + 1
            count_by_category[record.category] = count_by_category.get(record.category, 0) + 1
            total_importance += record.importance
        total = len(self._records)
        return MemoryStats(
            total=total,
            count_by_type=count_by_type,
            count_by_category=count_by_category,
            avg_importance=total_importance / total if total else 0.0,
        )

    def ids_for_entity(self, entity: str) -> set[str]:
        return self._indexes.lookup(self._indexes.by_entity, entity.lower())

    def ids_for_project(self, project: str) -> set[str]:
        return self._indexes.lookup(self._indexes.by_project, project)

    def ids_for_tag(self, tag: str) -> set[str]:
        return self._indexes.lookup(self._indexes.by_tag, tag)

    def ids_for_type(self, memory_type: MemoryType | str) -> set[str]:
        return self._indexes.lookup(self._indexes.by_type, MemoryType.coerce(memory_type).value)

    def ids_for_category(self, category: str) -> set[str]:
        return self._indexes.lookup(self._indexes.by_category, category)

    def ids_for_time_bucket(self, bucket: str) -> set[str]:
        return self._indexes.lookup(self._indexes.by_time_bucket, bucket)

    def _link_candidates(self, record: MemoryRecord) -> set[str]:
        # A pair sharing no tag, entity or project scores at most 15, below the link threshold.
        ids: set[str] = set()
        for tag in record.tags:
            ids |= self.ids_for_tag(tag)
        for entity in record.context.entities:
            ids |= self.ids_for_entity(entity)
        if record.context.project:
            ids |= self.ids_for_project(record.context.project)
        return ids

    def _new_id(self, now: datetime) -> str:
        millis = int(now.timestamp() * 1000)
        while True:
            suffix = "".join(random.choices(_ID_ALPHABET, k=9))
            memory_id = f"mem_{millis}_{suffix}"
            if memory_id not in self._records:
                return memory_id

    def serialize(self) -> str:
        payload = {
            "records": [[memory_id, record.to_dict()] for memory_id, record in self._records.items()],
            "savedAt": to_iso(self.clock()),
        }
        return json.dumps(payload, ensure_ascii=False)

    def persist(self) -> None:
        try:
            self.storage.save(self.serialize())
        except (OSError, sqlite3.Error) as exc:
            logging.getLogger(__name__).warning("Failed to save contextual memory: %s", exc)

    def load(self) -> None:
        logger = logging.getLogger(__name__)
        records: dict[str, MemoryRecord] = {}
        try:
            blob = self.storage.load()
        except (OSError, UnicodeDecodeError, sqlite3.Error) as exc:
            logger.warning("Failed to load contextual memory; starting empty: %s", exc)
            blob = None
        if blob:
            try:
                records = self._deserialize(blob)
            except (ValueError, KeyError, TypeError, AttributeError) as exc:
                logger.warning("Stored memory blob is corrupt; starting empty: %s", exc)
                records = {}
        known = set(records)
        for record in records.values():
            record.relationships &= known
        self._records = records
        self._indexes = reindex(self._records.values())
        logger.debug("Loaded %d memories", len(records))

    @staticmethod
    def _deserialize(blob: str) -> dict[str, MemoryRecord]:
        data = json.loads(blob)
        if not isinstance(data, dict) or not isinstance(data.get("records"), list):
            raise ValueError("memory blob has no records list")
        records: dict[str, MemoryRecord] = {}
        for entry in data["records"]:
            memory_id, raw = entry
            raw = dict(raw)
            raw.setdefault("id", memory_id)
            record = MemoryRecord.from_dict(raw)
            records[record.id] = record
        return records
