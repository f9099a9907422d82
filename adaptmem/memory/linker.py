from __future__ import annotations

import logging
from typing import Iterable

from adaptmem.memory.models import MemoryRecord
from adaptmem.utils import text_similarity

LINK_THRESHOLD = 25.0
SHARED_ENTITY_WEIGHT = 10.0
SAME_PROJECT_WEIGHT = 20.0
SHARED_TAG_WEIGHT = 5.0
CONTENT_SIMILARITY_WEIGHT = 15.0


def relationship_score(record: MemoryRecord, other: MemoryRecord) -> float:
    other_entities = set(other.context.entities)
    shared_entities = sum(1 for entity in set(record.context.entities) if entity in other_entities)
    score = shared_entities * SHARED_ENTITY_WEIGHT
    if record.context.project and record.context.project == other.context.project:
        score += SAME_PROJECT_WEIGHT
    score += len(record.tags & other.tags) * SHARED_TAG_WEIGHT
    score += text_similarity(record.content, other.content) * CONTENT_SIMILARITY_WEIGHT
    return score


def link(record: MemoryRecord, candidates: Iterable[MemoryRecord]) -> list[str]:
    linked: list[str] = []
    for other in candidates:
        if other.id == record.id:
            continue
        if relationship_score(record, other) > LINK_THRESHOLD:
            record.relationships.add(other.id)
            other.relationships.add(record.id)
            linked.append(other.id)
    if linked:
        logging.getLogger(__name__).debug("Linked %s to %d memories", record.id, len(linked))
    return linked


def unlink(removed_ids: set[str], survivors: Iterable[MemoryRecord]) -> None:
    for record in survivors:
        record.relationships -= removed_ids
