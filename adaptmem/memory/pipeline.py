from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from adaptmem.memory.analyzer import detect_sentiment
from adaptmem.memory.models import IngestResult, MemoryType, Source
from adaptmem.memory.store import MemoryStore

CODE_BLOCK = re.compile(r"```[\s\S]*?```")
DEFINITION_SENTENCE = re.compile(r"[^.!?]*(?:is|are|means|refers to|defined as)[^.!?]*[.!?]", re.IGNORECASE)
KEY_SENTENCE = re.compile(
    r"[^.!?]*(?:important|key|note|remember|crucial|essential)[^.!?]*[.!?]", re.IGNORECASE
)

# (pattern, memory type, confidence) for typed records found in either side of a turn.
SPECIALIZED_PATTERNS = (
    (
        re.compile(r"(?:deadline|due|by|before)\s+[^.!?]*(?:date|time|day|week|month)[^.!?]*", re.IGNORECASE),
        MemoryType.DEADLINE,
        0.8,
    ),
    (
        re.compile(r"(?:config|configuration|setting|parameter|option):\s*[^.!?\n]*", re.IGNORECASE),
        MemoryType.CONFIG,
        0.8,
    ),
    (
        re.compile(r"(?:task|todo|action|step):\s*[^.!?\n]*", re.IGNORECASE),
        MemoryType.TASK,
        0.7,
    ),
)


@dataclass(frozen=True)
class Insight:
    content: str
    type: MemoryType
    confidence: float


def extract_insights(response: str) -> list[Insight]:
    insights: list[Insight] = []
    for match in CODE_BLOCK.finditer(response):
        insights.append(Insight(match.group(0), MemoryType.CONFIG, 0.8))
    for match in DEFINITION_SENTENCE.finditer(response):
        text = match.group(0).strip()
        if text:
            insights.append(Insight(text, MemoryType.FACT, 0.7))
    for match in KEY_SENTENCE.finditer(response):
        text = match.group(0).strip()
        if text:
            insights.append(Insight(text, MemoryType.INSIGHT, 0.9))
    return insights


def extract_specialized(text: str) -> list[Insight]:
    found: list[Insight] = []
    for pattern, memory_type, confidence in SPECIALIZED_PATTERNS:
        for match in pattern.finditer(text):
            content = match.group(0).strip()
            if content:
                found.append(Insight(content, memory_type, confidence))
    return found


@dataclass
class MemoryPipeline:
    store: MemoryStore

    def ingest_turn(
        self,
        user_text: str,
        assistant_text: str | None = None,
        project: str | None = None,
        topic: str | None = None,
        intent: str | None = None,
    ) -> IngestResult:
        result = IngestResult([], [], [])
        context = {"project": project, "topic": topic, "intent": intent}

        result.conversation_ids.append(
            self.store.store(
                user_text,
                MemoryType.CONVERSATION,
                dict(context, sentiment=detect_sentiment(user_text)),
                {"source": Source.USER, "confidence": 0.9, "verified": True},
            )
        )
        result.extend(self._enrich(user_text, assistant_text or "", context))
        return result

    def _enrich(self, user_text: str, assistant_text: str, context: dict) -> IngestResult:
        logger = logging.getLogger(__name__)
        result = IngestResult([], [], [])
        try:
            for insight in extract_insights(assistant_text):
                result.insight_ids.append(self._store_insight(insight, context))
            combined = f"{user_text} {assistant_text}"
            for item in extract_specialized(combined):
                specialized_context = {"project": context["project"], "topic": context["topic"]}
                result.specialized_ids.append(self._store_insight(item, specialized_context))
        except Exception as exc:
            logger.warning("Insight extraction failed; keeping the conversation memory only: %s", exc)
        logger.debug(
            "Enriched turn with %d insights and %d specialized memories",
            len(result.insight_ids),
            len(result.specialized_ids),
        )
        return result

    def _store_insight(self, insight: Insight, context: dict) -> str:
        return self.store.store(
            insight.content,
            insight.type,
            dict(context),
            {"source": Source.AI, "confidence": insight.confidence, "verified": False},
        )
