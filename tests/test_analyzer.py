import pytest

from adaptmem.memory.analyzer import (
    categorize,
    detect_sentiment,
    extract_entities,
    generate_tags,
    score_importance,
)
from adaptmem.memory.models import MemoryContext, MemoryType, Sentiment


def test_extract_entities_capitalized_words():
    assert extract_entities("Deploy deadline is March 5") == ["Deploy", "March"]


def test_extract_entities_technical_terms_and_dates():
    entities = extract_entities("Bump config_loader on 2024-03-05 and 3/5/2024")
    assert "Bump" in entities
    assert "config_loader" in entities
    assert "2024-03-05" in entities
    assert "3/5/2024" in entities


def test_extract_entities_deduplicates():
    assert extract_entities("Redis and Redis again") == ["Redis"]


@pytest.mark.parametrize(
    "content,memory_type,expected",
    [
        ("anything at all", MemoryType.PROJECT, "project"),
        ("anything at all", MemoryType.DEADLINE, "time-sensitive"),
        ("anything at all", MemoryType.CONFIG, "technical"),
        ("Fix the bug in login", MemoryType.FACT, "troubleshooting"),
        ("We plan the launch", MemoryType.FACT, "planning"),
        ("I want to learn Rust", MemoryType.FACT, "learning"),
        ("Let's build a shed", MemoryType.TASK, "development"),
        ("I love pizza", MemoryType.PREFERENCE, "general"),
    ],
)
def test_categorize(content, memory_type, expected):
    assert categorize(content, memory_type) == expected


def test_generate_tags():
    context = MemoryContext(project="Beta", topic="Data Layer")
    tags = generate_tags("Fix the database bug before deployment", MemoryType.TASK, context)
    assert tags == {"task", "beta", "data", "layer", "database", "bug", "deployment"}


def test_generate_tags_without_context():
    assert generate_tags("I love pizza", "preference") == {"preference"}


def test_score_importance_base_and_boosts():
    assert score_importance("Deploy deadline is March 5", MemoryType.DEADLINE) == 9
    assert score_importance("hello there", MemoryType.CONVERSATION) == 4
    assert score_importance("an important fact", MemoryType.FACT) == 6
    assert score_importance("critical, remember this", MemoryType.FACT) == 8


@pytest.mark.parametrize("memory_type", list(MemoryType))
def test_score_importance_is_clamped(memory_type):
    score = score_importance("critical urgent important key note remember", memory_type)
    assert 1 <= score <= 10


def test_detect_sentiment():
    assert detect_sentiment("I love this, great work") == Sentiment.POSITIVE
    assert detect_sentiment("This error is terrible") == Sentiment.NEGATIVE
    assert detect_sentiment("The meeting is at noon") == Sentiment.NEUTRAL
