"""Heuristic content analysis applied to every stored memory.

All functions are pure. The keyword vocabularies and weights are part of the
recall behaviour; changing them changes which memories surface.
"""

from __future__ import annotations

import re

from adaptmem.memory.models import MemoryContext, MemoryType, Sentiment
from adaptmem.utils import text_similarity, unique

CAPITALIZED_WORD = re.compile(r"\b[A-Z][a-z]+\b")
TECHNICAL_TERM = re.compile(r"\b\w+[._-]\w+\b")
DATE = re.compile(r"\b\d{1,2}/\d{1,2}/\d{4}\b|\b\d{4}-\d{2}-\d{2}\b")

TAG_KEYWORDS = (
    "deadline",
    "config",
    "error",
    "solution",
    "plan",
    "schedule",
    "meeting",
    "task",
    "bug",
    "feature",
    "api",
    "database",
    "frontend",
    "backend",
    "design",
    "testing",
    "deployment",
)

BASE_IMPORTANCE = {
    MemoryType.DEADLINE: 9,
    MemoryType.PROJECT: 8,
    MemoryType.CONFIG: 7,
    MemoryType.INSIGHT: 7,
    MemoryType.PREFERENCE: 6,
    MemoryType.TASK: 6,
    MemoryType.FACT: 5,
    MemoryType.CONVERSATION: 4,
}

# (keywords, boost) applied once per group on the lowercased content.
IMPORTANCE_BOOSTS = (
    (("critical", "urgent"), 2),
    (("important", "key"), 1),
    (("note", "remember"), 1),
)

TYPE_CATEGORIES = {
    MemoryType.PROJECT: "project",
    MemoryType.DEADLINE: "time-sensitive",
    MemoryType.CONFIG: "technical",
}

CONTENT_CATEGORIES = (
    (("error", "bug"), "troubleshooting"),
    (("plan", "schedule"), "planning"),
    (("learn", "understand"), "learning"),
    (("create", "build"), "development"),
)

POSITIVE_WORDS = ("good", "great", "excellent", "awesome", "perfect", "love", "like", "happy", "excited")
NEGATIVE_WORDS = (
    "bad", "terrible", "awful", "hate", "dislike", "frustrated", "angry", "problem", "issue", "error",
)

MIN_IMPORTANCE = 1
MAX_IMPORTANCE = 10


def extract_entities(text: str) -> list[str]:
    found: list[str] = []
    found.extend(CAPITALIZED_WORD.findall(text))
    found.extend(match.group(0) for match in TECHNICAL_TERM.finditer(text))
    found.extend(match.group(0) for match in DATE.finditer(text))
    return unique(found)


def categorize(content: str, memory_type: MemoryType) -> str:
    memory_type = MemoryType.coerce(memory_type)
    if memory_type in TYPE_CATEGORIES:
        return TYPE_CATEGORIES[memory_type]
    lowered = content.lower()
    for keywords, category in CONTENT_CATEGORIES:
        if any(keyword in lowered for keyword in keywords):
            return category
    return "general"


def generate_tags(content: str, memory_type: MemoryType, context: MemoryContext | None = None) -> set[str]:
    memory_type = MemoryType.coerce(memory_type)
    tags = {memory_type.value}
    if context is not None:
        if context.project:
            tags.add(context.project.lower())
        if context.topic:
            tags.update(word.lower() for word in context.topic.split(" ") if word)
    lowered = content.lower()
    tags.update(keyword for keyword in TAG_KEYWORDS if keyword in lowered)
    return tags


def score_importance(content: str, memory_type: MemoryType, context: MemoryContext | None = None) -> int:
    # context is accepted for parity with the other analyzers; no rule reads it yet.
    importance = BASE_IMPORTANCE.get(MemoryType.coerce(memory_type), 5)
    lowered = content.lower()
    for keywords, boost in IMPORTANCE_BOOSTS:
        if any(keyword in lowered for keyword in keywords):
            importance += boost
    return max(MIN_IMPORTANCE, min(importance, MAX_IMPORTANCE))


def detect_sentiment(text: str) -> Sentiment:
    lowered = text.lower()
    positive = sum(1 for word in POSITIVE_WORDS if word in lowered)
    negative = sum(1 for word in NEGATIVE_WORDS if word in lowered)
    if positive > negative:
        return Sentiment.POSITIVE
    if negative > positive:
        return Sentiment.NEGATIVE
    return Sentiment.NEUTRAL


__all__ = [
    "TAG_KEYWORDS",
    "categorize",
    "detect_sentiment",
    "extract_entities",
    "generate_tags",
    "score_importance",
    "text_similarity",
]
