import pytest

from adaptmem.llm.prompts import enhanced_prompt, format_memory_context
from adaptmem.memory.models import MemoryType, RecallResult
from adaptmem.processor import MemoryAwareProcessor
from conftest import FakeLLM


def test_process_message_without_memories(store):
    processed = MemoryAwareProcessor(store).process_message("hello there")
    assert processed.memory_context == ""
    assert processed.enhanced_prompt == "hello there"
    assert processed.recall.memories == []


def test_process_message_injects_memory_context(store, clock):
    store.store("Deploy deadline is March 5", "deadline", {"project": "Alpha"})
    clock.advance(days=3)

    processed = MemoryAwareProcessor(store).process_message("What is the Alpha deadline?", project="Alpha")
    assert processed.context.project == "Alpha"
    assert processed.memory_context.startswith("## Deadline Context:\n")
    assert "1. Deploy deadline is March 5 (3 days ago, importance: 9/10)" in processed.memory_context
    assert "Current Question: What is the Alpha deadline?" in processed.enhanced_prompt
    assert f"Memory Recall Reasoning: {processed.recall.reasoning}" in processed.enhanced_prompt


def test_format_memory_context_groups_by_type(store, clock):
    store.store("Deploy deadline is March 5", "deadline", {"project": "Alpha"})
    store.store("Use Redis for caching", "config", {"project": "Alpha"})
    store.store("Release freeze deadline is March 1", "deadline", {"project": "Alpha"})
    memories = sorted(store.get_all(), key=lambda m: m.type != MemoryType.DEADLINE)
    result = RecallResult(memories=memories, reasoning="", confidence=0.0, suggestions=[])

    lines = format_memory_context(result, clock.now).splitlines()
    assert lines[0] == "## Deadline Context:"
    assert lines[1].startswith("1. ")
    assert lines[2].startswith("2. ")
    assert lines[3] == ""
    assert lines[4] == "## Config Context:"
    assert lines[5] == "1. Use Redis for caching (0 days ago, importance: 7/10)"


def test_enhanced_prompt_passthrough_without_context():
    assert enhanced_prompt("hi", "", "anything") == "hi"


def test_respond_stores_the_turn(store):
    llm = FakeLLM("Redis is the cache. Remember to warm it.")
    processor = MemoryAwareProcessor(store, llm=llm)
    store.store("Use Redis for caching", "config", {"project": "Alpha"})

    answer = processor.respond("Which cache does Alpha use?", project="Alpha")
    assert answer == "Redis is the cache. Remember to warm it."
    assert len(llm.prompts) == 1
    assert "Use Redis for caching" in llm.prompts[0]
    conversations = store.search(type="conversation")
    assert [c.content for c in conversations] == ["Which cache does Alpha use?"]
    assert len(store.search(type="insight")) == 1


def test_respond_requires_llm(store):
    with pytest.raises(RuntimeError):
        MemoryAwareProcessor(store).respond("hello")


def test_respond_propagates_llm_errors(store):
    class BrokenLLM:
        def complete(self, prompt):
            raise ConnectionError("offline")

    with pytest.raises(ConnectionError):
        MemoryAwareProcessor(store, llm=BrokenLLM()).respond("hello")
    assert len(store) == 0


def test_respond_falls_back_to_raw_message(store, monkeypatch):
    llm = FakeLLM("ok")
    processor = MemoryAwareProcessor(store, llm=llm)

    def _fail(*args, **kwargs):
        raise RuntimeError("recall exploded")

    monkeypatch.setattr(processor, "process_message", _fail)
    assert processor.respond("plain question") == "ok"
    assert llm.prompts == ["plain question"]
