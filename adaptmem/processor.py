from __future__ import annotations

import logging
from dataclasses import dataclass, field

from adaptmem.config import RecallConfig
from adaptmem.llm.client import CompletionClient
from adaptmem.llm.prompts import enhanced_prompt, format_memory_context
from adaptmem.memory.models import IngestResult, RecallContext, RecallResult
from adaptmem.memory.pipeline import MemoryPipeline
from adaptmem.memory.store import MemoryStore
from adaptmem.retrieval.context import build_recall_context
from adaptmem.retrieval.retriever import MemoryRetriever


@dataclass
class ProcessedMessage:
    enhanced_prompt: str
    memory_context: str
    recall: RecallResult
    context: RecallContext


@dataclass
class MemoryAwareProcessor:
    """Wraps a chat turn with recall before the LLM call and ingestion after it."""

    store: MemoryStore
    llm: CompletionClient | None = None
    config: RecallConfig = field(default_factory=RecallConfig)

    def __post_init__(self) -> None:
        self.retriever = MemoryRetriever(self.store, self.config)
        self.pipeline = MemoryPipeline(self.store)

    def process_message(
        self,
        message: str,
        project: str | None = None,
        topic: str | None = None,
        intent: str | None = None,
        urgency: str | None = None,
        entities: list[str] | None = None,
    ) -> ProcessedMessage:
        context = build_recall_context(
            message,
            project=project,
            topic=topic,
            intent=intent,
            urgency=urgency,
            entities=entities,
        )
        now = self.store.clock()
        recall = self.retriever.recall(context, now=now)
        memory_context = format_memory_context(recall, now)
        return ProcessedMessage(
            enhanced_prompt=enhanced_prompt(message, memory_context, recall.reasoning),
            memory_context=memory_context,
            recall=recall,
            context=context,
        )

    def store_conversation(
        self,
        user_message: str,
        ai_response: str,
        project: str | None = None,
        topic: str | None = None,
        intent: str | None = None,
    ) -> IngestResult:
        return self.pipeline.ingest_turn(user_message, ai_response, project=project, topic=topic, intent=intent)

    def respond(
        self,
        message: str,
        project: str | None = None,
        topic: str | None = None,
        intent: str | None = None,
        urgency: str | None = None,
        entities: list[str] | None = None,
    ) -> str:
        logger = logging.getLogger(__name__)
        if self.llm is None:
            raise RuntimeError("MemoryAwareProcessor.respond needs an LLM client")

        prompt = message
        try:
            processed = self.process_message(
                message, project=project, topic=topic, intent=intent, urgency=urgency, entities=entities
            )
            prompt = processed.enhanced_prompt
        except Exception as exc:
            logger.warning("Memory processing failed, using basic prompt: %s", exc)

        answer = self.llm.complete(prompt)

        try:
            self.store_conversation(message, answer, project=project, topic=topic, intent=intent)
        except Exception as exc:
            logger.warning("Failed to store conversation memory: %s", exc)
        return answer
