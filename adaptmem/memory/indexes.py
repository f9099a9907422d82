from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable

from adaptmem.memory.models import MemoryRecord


def time_bucket(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return f"{value.year:04d}-{value.month:02d}"


@dataclass
class MemoryIndexes:
    by_type: dict[str, set[str]] = field(default_factory=lambda: defaultdict(set))
    by_category: dict[str, set[str]] = field(default_factory=lambda: defaultdict(set))
    by_tag: dict[str, set[str]] = field(default_factory=lambda: defaultdict(set))
    by_project: dict[str, set[str]] = field(default_factory=lambda: defaultdict(set))
    by_entity: dict[str, set[str]] = field(default_factory=lambda: defaultdict(set))
    by_time_bucket: dict[str, set[str]] = field(default_factory=lambda: defaultdict(set))

    def add(self, record: MemoryRecord) -> None:
        self.by_type[record.type.value].add(record.id)
        self.by_category[record.category].add(record.id)
        for tag in record.tags:
            self.by_tag[tag].add(record.id)
        if record.context.project:
            self.by_project[record.context.project].add(record.id)
        for entity in record.context.entities:
            self.by_entity[entity.lower()].add(record.id)
        self.by_time_bucket[time_bucket(record.created_at)].add(record.id)

    def lookup(self, index: dict[str, set[str]], key: str) -> set[str]:
        # .get keeps lookups from materialising empty buckets in the defaultdicts.
        return set(index.get(key, ()))


def reindex(records: Iterable[MemoryRecord]) -> MemoryIndexes:
    indexes = MemoryIndexes()
    for record in records:
        indexes.add(record)
    return indexes
