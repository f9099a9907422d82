"""Turn a raw chat message into a RecallContext.

Keyword buckets are checked in a fixed order and the first hit wins, so a
message mentioning both a deadline and an error is treated as planning.
"""

from __future__ import annotations

import re
from typing import Any

from adaptmem.memory.models import Intent, RecallContext, Timeframe, Urgency
from adaptmem.utils import unique

INTENT_KEYWORDS: tuple[tuple[Intent, tuple[str, ...]], ...] = (
    (Intent.PLANNING, ("plan", "schedule", "deadline", "when", "timeline", "roadmap")),
    (
        Intent.TROUBLESHOOTING,
        ("error", "bug", "issue", "problem", "fix", "debug", "not working", "broken"),
    ),
    (
        Intent.LEARNING,
        ("how", "what", "why", "explain", "learn", "understand", "teach", "show me"),
    ),
    (Intent.CREATING, ("create", "build", "make", "generate", "design", "develop")),
    (Intent.REVIEWING, ("review", "check", "summary", "status", "progress", "update")),
)

URGENCY_KEYWORDS: tuple[tuple[Urgency, tuple[str, ...]], ...] = (
    (
        Urgency.HIGH,
        ("urgent", "asap", "immediately", "critical", "emergency", "now", "quickly", "deadline"),
    ),
    (Urgency.MEDIUM, ("soon", "today", "important", "priority")),
)

TIMEFRAME_KEYWORDS: tuple[tuple[Timeframe, tuple[str, ...]], ...] = (
    (Timeframe.RECENT, ("recent", "lately", "today", "yesterday")),
    (Timeframe.HISTORICAL, ("history", "past", "before", "previously")),
    (Timeframe.IMMEDIATE, ("now", "current", "immediate")),
)

INTENT_TIMEFRAMES = {
    Intent.TROUBLESHOOTING: Timeframe.RECENT,
    Intent.PLANNING: Timeframe.ALL,
    Intent.REVIEWING: Timeframe.RECENT,
}

PROJECT_KEYWORDS = (
    "project",
    "app",
    "website",
    "system",
    "platform",
    "service",
    "api",
    "dashboard",
    "frontend",
    "backend",
    "database",
)

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
        "of", "with", "by", "is", "are", "was", "were", "be", "been", "have",
        "has", "had", "do", "does", "did", "will", "would", "could", "should",
        "can", "may", "might", "must", "i", "you", "he", "she", "it", "we", "they",
    }
)

ENTITY_PATTERNS = (
    re.compile(r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*\b"),  # capitalized runs
    re.compile(r"\b\w+[._-]\w+\b"),  # technical terms
    re.compile(r"\.\w{2,4}\b"),  # file extensions
    re.compile(r"https?://\S+"),
    re.compile(r"\b\d{1,2}/\d{1,2}/\d{4}\b|\b\d{4}-\d{2}-\d{2}\b"),
    re.compile(r"v?\d+\.\d+(?:\.\d+)?"),  # versions
)

PROJECT_NAME = re.compile(r"\b[A-Z][a-zA-Z]*(?:\s+[A-Z][a-zA-Z]*)*\b")


def _first_bucket(text: str, buckets):
    for label, keywords in buckets:
        if any(keyword in text for keyword in keywords):
            return label
    return None


def detect_intent(message: str) -> Intent:
    return _first_bucket(message.lower(), INTENT_KEYWORDS) or Intent.GENERAL


def detect_urgency(message: str) -> Urgency:
    return _first_bucket(message.lower(), URGENCY_KEYWORDS) or Urgency.LOW


def determine_timeframe(message: str, intent: Intent) -> Timeframe:
    explicit = _first_bucket(message.lower(), TIMEFRAME_KEYWORDS)
    if explicit is not None:
        return explicit
    return INTENT_TIMEFRAMES.get(Intent(intent), Timeframe.ALL)


def extract_message_entities(message: str) -> list[str]:
    found: list[str] = []
    for pattern in ENTITY_PATTERNS:
        found.extend(match.group(0) for match in pattern.finditer(message))
    return unique(found)


def detect_project(message: str) -> str | None:
    for keyword in PROJECT_KEYWORDS:
        match = re.search(rf"\b(\w+)\s+{keyword}\b", message, re.IGNORECASE)
        if match:
            return match.group(1)
    match = PROJECT_NAME.search(message)
    return match.group(0) if match else None


def extract_topic(message: str) -> str | None:
    cleaned = re.sub(r"[^\w\s]", " ", message.lower())
    words = [word for word in cleaned.split() if len(word) > 2 and word not in STOP_WORDS]
    return " ".join(words[:3]) or None


def build_recall_context(message: str, **overrides: Any) -> RecallContext:
    intent = detect_intent(message)
    values: dict[str, Any] = {
        "query": message,
        "intent": intent,
        "timeframe": determine_timeframe(message, intent),
        "project": detect_project(message),
        "topic": extract_topic(message),
        "urgency": detect_urgency(message),
        "entities": extract_message_entities(message),
    }
    for key, value in overrides.items():
        if key not in values:
            raise TypeError(f"Unknown recall context field {key!r}")
        if value is not None:
            values[key] = value
    return RecallContext(**values)
