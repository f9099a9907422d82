from types import SimpleNamespace

import pytest

from adaptmem.config import LLMConfig
from adaptmem.llm.client import LLMClient


class _FakeCompletions:
    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        return self.replies.pop(0)


def _fake_openai(*replies):
    completions = _FakeCompletions(replies)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


def _reply(text):
    return {"choices": [{"message": {"content": text}}]}


def test_complete_sends_system_and_user_messages():
    client = LLMClient(LLMConfig(api_key="sk-test", max_retries=1))
    client._client, completions = _fake_openai(_reply("  hello  "))

    assert client.complete("What is up?") == "hello"
    [call] = completions.calls
    assert call["model"] == "gpt-4o-mini"
    assert [m["role"] for m in call["messages"]] == ["system", "user"]
    assert call["messages"][1]["content"] == "What is up?"


def test_complete_rejects_html():
    client = LLMClient(LLMConfig(api_key="sk-test", max_retries=1))
    client._client, _ = _fake_openai(_reply("<!DOCTYPE html><html></html>"))
    with pytest.raises(RuntimeError):
        client.complete("hi")


def test_complete_uses_fallback_client_on_html_from_proxy():
    client = LLMClient(LLMConfig(api_key="sk-test", base_url="http://proxy.local/v1", max_retries=1))
    client._client, _ = _fake_openai(_reply("<!DOCTYPE html>"))
    client._fallback_client, fallback = _fake_openai(_reply("from fallback"))
    assert client.complete("hi") == "from fallback"
    assert len(fallback.calls) == 1
