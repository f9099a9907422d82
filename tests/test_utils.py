from datetime import datetime, timezone

from adaptmem.utils import days_between, parse_iso, text_similarity, to_iso, unique


def test_text_similarity_basic():
    assert text_similarity("Redis cache", "redis CACHE") == 1.0
    assert text_similarity("a b", "b c") == 1 / 3


def test_text_similarity_empty():
    assert text_similarity("", "") == 0.0
    assert text_similarity("", "words") == 0.0


def test_iso_roundtrip_is_utc():
    value = datetime(2024, 3, 1, 12, 30, tzinfo=timezone.utc)
    encoded = to_iso(value)
    assert encoded == "2024-03-01T12:30:00Z"
    assert parse_iso(encoded) == value


def test_parse_iso_treats_naive_as_utc():
    assert parse_iso("2024-03-01T12:30:00").tzinfo is not None


def test_days_between():
    start = datetime(2024, 3, 1, tzinfo=timezone.utc)
    assert days_between(start, datetime(2024, 3, 4, 12, tzinfo=timezone.utc)) == 3.5


def test_unique_keeps_first_seen_order():
    assert unique(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]
