from adaptmem.memory import pipeline as pipeline_module
from adaptmem.memory.models import MemoryType, Sentiment, Source
from adaptmem.memory.pipeline import Insight, MemoryPipeline, extract_insights, extract_specialized


def test_extract_definition_sentence():
    assert extract_insights("Redis is an in-memory store.") == [
        Insight("Redis is an in-memory store.", MemoryType.FACT, 0.7)
    ]


def test_extract_key_sentence():
    assert extract_insights("Remember to rotate keys!") == [
        Insight("Remember to rotate keys!", MemoryType.INSIGHT, 0.9)
    ]


def test_extract_code_block():
    block = "```\nSET ttl 60\n```"
    assert extract_insights(block) == [Insight(block, MemoryType.CONFIG, 0.8)]


def test_extract_insights_empty():
    assert extract_insights("") == []


def test_extract_specialized():
    found = extract_specialized("The report is due by Friday this week. config: retries=3. todo: write docs")
    assert [(item.type, item.content) for item in found] == [
        (MemoryType.DEADLINE, "due by Friday this week"),
        (MemoryType.CONFIG, "config: retries=3"),
        (MemoryType.TASK, "todo: write docs"),
    ]
    assert [item.confidence for item in found] == [0.8, 0.8, 0.7]


def test_ingest_turn(store):
    result = MemoryPipeline(store).ingest_turn(
        "The launch deadline is next week, I love this plan",
        "Redis is our cache. Remember to warm it.",
        project="Apollo",
        topic="launch",
    )
    assert len(result.conversation_ids) == 1
    assert len(result.insight_ids) == 2
    assert len(result.specialized_ids) == 1
    assert result.total == 4
    assert len(store) == 4

    conversation = store.get(result.conversation_ids[0])
    assert conversation.type == MemoryType.CONVERSATION
    assert conversation.project == "Apollo"
    assert conversation.context.sentiment == Sentiment.POSITIVE
    assert conversation.metadata.source == Source.USER
    assert conversation.metadata.confidence == 0.9
    assert conversation.metadata.verified is True

    insight_types = sorted(store.get(i).type.value for i in result.insight_ids)
    assert insight_types == ["fact", "insight"]
    for memory_id in result.insight_ids:
        record = store.get(memory_id)
        assert record.metadata.source == Source.AI
        assert record.metadata.verified is False
        assert record.project == "Apollo"

    deadline = store.get(result.specialized_ids[0])
    assert deadline.type == MemoryType.DEADLINE
    assert deadline.metadata.confidence == 0.8


def test_ingest_turn_without_reply(store):
    result = MemoryPipeline(store).ingest_turn("Just saying hello")
    assert result.total == 1
    assert store.get(result.conversation_ids[0]).context.sentiment == Sentiment.NEUTRAL


def test_ingest_turn_survives_extraction_failure(store, monkeypatch):
    def _boom(text):
        raise RuntimeError("extractor exploded")

    monkeypatch.setattr(pipeline_module, "extract_insights", _boom)
    result = MemoryPipeline(store).ingest_turn("Hello", "Redis is our cache.")
    assert len(result.conversation_ids) == 1
    assert result.insight_ids == []
    assert len(store) == 1
