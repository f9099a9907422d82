from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime

from adaptmem.config import RecallConfig
from adaptmem.memory.models import (
    Intent,
    MemoryRecord,
    MemoryType,
    RecallContext,
    RecallResult,
    Timeframe,
    Urgency,
)
from adaptmem.memory.store import MemoryStore
from adaptmem.utils import days_between, text_similarity, unique

EMPTY_REASONING = "No relevant memories found for this context."

MAX_RESULTS = {
    Urgency.HIGH: 3,
    Urgency.MEDIUM: 5,
    Urgency.LOW: 8,
}
DEFAULT_MAX_RESULTS = 5

# intent -> (types earning the base bonus, base bonus, tags earning the extra bonus, extra bonus)
INTENT_BONUSES: dict[Intent, tuple[frozenset[MemoryType], float, frozenset[str], float]] = {
    Intent.PLANNING: (
        frozenset({MemoryType.DEADLINE, MemoryType.TASK}), 30.0,
        frozenset({"timeline", "schedule"}), 20.0,
    ),
    Intent.TROUBLESHOOTING: (
        frozenset({MemoryType.CONFIG, MemoryType.INSIGHT}), 30.0,
        frozenset({"error", "solution"}), 20.0,
    ),
    Intent.LEARNING: (
        frozenset({MemoryType.FACT, MemoryType.INSIGHT}), 25.0,
        frozenset({"concept", "explanation"}), 15.0,
    ),
    Intent.CREATING: (
        frozenset({MemoryType.PREFERENCE, MemoryType.CONFIG}), 25.0,
        frozenset({"template", "example"}), 15.0,
    ),
    Intent.REVIEWING: (
        frozenset({MemoryType.CONVERSATION, MemoryType.PROJECT}), 20.0,
        frozenset({"summary", "progress"}), 15.0,
    ),
}


@dataclass
class ScoredMemory:
    memory: MemoryRecord
    score: float


def _rank_key(item: ScoredMemory):
    return (-item.score, -item.memory.created_at.timestamp(), item.memory.id)


@dataclass
class MemoryRetriever:
    store: MemoryStore
    config: RecallConfig = field(default_factory=RecallConfig)

    def recall(self, context: RecallContext, now: datetime | None = None) -> RecallResult:
        logger = logging.getLogger(__name__)
        started = time.perf_counter()
        now = now or self.store.clock()

        candidates = self._candidates(context)
        logger.debug(
            "Selected %d candidates",
            len(candidates),
            extra={"operation": "recall.candidates", "duration_ms": round((time.perf_counter() - started) * 1000, 2)},
        )
        scored = [ScoredMemory(memory, self._relevance(memory, context)) for memory in candidates]
        for item in scored:
            item.score = self._adjust_temporal(item.memory, item.score, context, now)
            item.score += self._intent_bonus(item.memory, context)
        expanded = self._expand(scored)

        expanded.sort(key=_rank_key)
        selected = [item.memory for item in expanded[: self._max_results(context)]]
        self.store.touch(selected, now)

        result = RecallResult(
            memories=selected,
            reasoning=self._reasoning(selected, context, now),
            confidence=self._confidence(selected, context),
            suggestions=self._suggestions(selected, context),
        )
        logger.info(
            "Adaptive recall completed in %.1fms, found %d relevant memories",
            (time.perf_counter() - started) * 1000,
            len(selected),
        )
        return result

    def _candidates(self, context: RecallContext) -> list[MemoryRecord]:
        ids: set[str] = set()
        for entity in context.entities:
            ids |= self.store.ids_for_entity(entity)
        if context.project:
            ids |= self.store.ids_for_project(context.project)
        if context.topic:
            for word in context.topic.lower().split(" "):
                if word:
                    ids |= self.store.ids_for_tag(word)
        if not ids:
            return self.store.recent(self.config.fallback_recent)
        candidates = self.store.get_many(ids)
        if len(candidates) > self.config.candidate_limit:
            candidates.sort(key=lambda r: (r.created_at, r.id), reverse=True)
            candidates = candidates[: self.config.candidate_limit]
        return candidates

    def _relevance(self, memory: MemoryRecord, context: RecallContext) -> float:
        score = memory.importance * 10.0

        memory_entities = [entity.lower() for entity in memory.context.entities]
        entity_matches = 0
        for entity in context.entities:
            needle = entity.lower()
            if any(needle in candidate or candidate in needle for candidate in memory_entities):
                entity_matches += 1
        score += entity_matches * 20

        if context.project and memory.context.project == context.project:
            score += 30
        if context.topic and memory.context.topic:
            score += text_similarity(context.topic, memory.context.topic) * 25
        score += text_similarity(context.query, memory.content) * 15

        query = context.query.lower()
        score += sum(1 for tag in memory.tags if tag.lower() in query) * 10
        score += min(memory.access_count * 2, 20)
        return score

    def _adjust_temporal(self, memory: MemoryRecord, score: float, context: RecallContext, now: datetime) -> float:
        days_created = days_between(memory.created_at, now)
        days_accessed = days_between(memory.last_accessed_at, now)

        multiplier = 1.0
        if context.timeframe == Timeframe.IMMEDIATE:
            if days_created < 1:
                multiplier = 1.5
            elif days_created < 7:
                multiplier = 1.2
            else:
                multiplier = 0.7
        elif context.timeframe == Timeframe.RECENT:
            if days_created < 7:
                multiplier = 1.3
            elif days_created < 30:
                multiplier = 1.1
            else:
                multiplier = 0.9
        elif context.timeframe == Timeframe.HISTORICAL:
            multiplier = 1.2 if days_created > 30 else 0.8
        elif context.timeframe == Timeframe.ALL:
            if days_accessed < 7:
                multiplier = 1.1

        # Stale memories decay regardless of timeframe.
        if days_accessed > 90:
            multiplier *= 0.8
        return score * multiplier

    def _intent_bonus(self, memory: MemoryRecord, context: RecallContext) -> float:
        rule = INTENT_BONUSES.get(context.intent)
        if rule is None:
            return 0.0
        types, type_bonus, tags, tag_bonus = rule
        bonus = type_bonus if memory.type in types else 0.0
        if memory.tags & tags:
            bonus += tag_bonus
        return bonus

    def _expand(self, scored: list[ScoredMemory]) -> list[ScoredMemory]:
        expanded = list(scored)
        seen = {item.memory.id for item in scored}
        for item in sorted(scored, key=_rank_key)[: self.config.expand_top]:
            for related_id in sorted(item.memory.relationships):
                if related_id in seen:
                    continue
                related = self.store.get(related_id)
                if related is None:
                    continue
                expanded.append(ScoredMemory(related, item.score * self.config.expand_decay))
                seen.add(related_id)
        return expanded

    def _max_results(self, context: RecallContext) -> int:
        return MAX_RESULTS.get(context.urgency, DEFAULT_MAX_RESULTS)

    def _reasoning(self, memories: list[MemoryRecord], context: RecallContext, now: datetime) -> str:
        if not memories:
            return EMPTY_REASONING

        types = {memory.type for memory in memories}
        projects = unique(memory.context.project for memory in memories if memory.context.project)
        recent = sum(1 for memory in memories if days_between(memory.created_at, now) < 7)

        reasons = []
        if context.intent == Intent.PLANNING and MemoryType.DEADLINE in types:
            reasons.append("surfaced deadline information for planning context")
        if context.intent == Intent.TROUBLESHOOTING and MemoryType.CONFIG in types:
            reasons.append("prioritized configuration details for troubleshooting")
        if projects:
            reasons.append(f"focused on {projects[0]} project context")
        if recent > len(memories) * 0.6:
            reasons.append("emphasized recent information for relevance")
        if context.entities:
            reasons.append(f"matched entities: {', '.join(context.entities[:3])}")
        if not reasons:
            reasons.append("overall relevance to the query")
        return f"Retrieved {len(memories)} memories by {', '.join(reasons)}."

    def _suggestions(self, memories: list[MemoryRecord], context: RecallContext) -> list[str]:
        suggestions = []
        projects = unique(memory.context.project for memory in memories if memory.context.project)
        if len(projects) > 1:
            suggestions.append(f"Tell me about {projects[1]} project")

        query = context.query.lower()
        tags = unique(tag for memory in memories for tag in sorted(memory.tags))
        for tag in [tag for tag in tags if tag.lower() not in query][:2]:
            suggestions.append(f"What do you remember about {tag}?")

        if context.intent == Intent.PLANNING and any(m.type == MemoryType.TASK for m in memories):
            suggestions.append("What are my upcoming deadlines?")
        elif context.intent == Intent.TROUBLESHOOTING and any(m.type == MemoryType.CONFIG for m in memories):
            suggestions.append("Show me similar issues I've encountered")
        return suggestions[:3]

    def _confidence(self, memories: list[MemoryRecord], context: RecallContext) -> float:
        if not memories:
            return 0.0
        count = len(memories)
        avg_importance = sum(memory.importance for memory in memories) / count
        avg_confidence = sum(memory.metadata.confidence for memory in memories) / count
        if context.entities:
            wanted = set(context.entities)
            matched = sum(1 for memory in memories if wanted.intersection(memory.context.entities))
            entity_ratio = matched / count
        else:
            entity_ratio = 0.5
        return min(avg_importance / 10 * 0.4 + avg_confidence * 0.4 + entity_ratio * 0.2, 1.0)
