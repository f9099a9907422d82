from datetime import datetime, timedelta, timezone

import pytest

from adaptmem.memory.store import MemoryStore
from adaptmem.storage import InMemoryStorage


class FrozenClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeLLM:
    def __init__(self, reply: str = "ok"):
        self.reply = reply
        self.prompts: list[str] = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.reply


@pytest.fixture
def clock():
    return FrozenClock(datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def store(storage, clock):
    return MemoryStore(storage=storage, clock=clock)


def assert_links_symmetric(store: MemoryStore) -> None:
    ids = {record.id for record in store.get_all()}
    for record in store.get_all():
        assert record.relationships <= ids
        for other_id in record.relationships:
            assert record.id in store.get(other_id).relationships
