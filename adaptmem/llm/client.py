import logging
from dataclasses import dataclass
from typing import Any, Protocol

from openai import OpenAI
from tenacity import Retrying, stop_after_attempt, wait_exponential

from adaptmem.config import LLMConfig
from adaptmem.llm.prompts import assistant_system

HTML_PREFIX = "<!DOCTYPE html"


class CompletionClient(Protocol):
    def complete(self, prompt: str) -> str: ...


def _is_html(text: str) -> bool:
    return text.lstrip().startswith(HTML_PREFIX)


def _message_text(response: Any) -> str:
    if isinstance(response, str):
        return response
    if isinstance(response, dict):
        choices = response.get("choices") or []
        if not choices:
            return ""
        return (choices[0].get("message") or {}).get("content") or ""
    choices = getattr(response, "choices", None) or []
    if not choices or getattr(choices[0], "message", None) is None:
        return ""
    return choices[0].message.content or ""


@dataclass
class LLMClient:
    """Chat-completion client used to answer memory-augmented prompts."""

    config: LLMConfig

    def __post_init__(self) -> None:
        self._client = OpenAI(
            api_key=self.config.api_key,
            base_url=self.config.base_url,
            timeout=self.config.timeout_s,
        )
        self._fallback_client: OpenAI | None = None

    def _direct_client(self) -> OpenAI:
        # A misconfigured proxy answers with an HTML page; retry against the default endpoint.
        if self._fallback_client is None:
            self._fallback_client = OpenAI(api_key=self.config.api_key, timeout=self.config.timeout_s)
        return self._fallback_client

    def _send(self, client: OpenAI, messages: list[dict[str, str]]) -> str:
        response = client.chat.completions.create(
            model=self.config.model,
            messages=messages,
            temperature=self.config.temperature,
        )
        return _message_text(response)

    def _with_retry(self, fn):
        for attempt in Retrying(
            stop=stop_after_attempt(max(int(self.config.max_retries), 1)),
            wait=wait_exponential(min=1, max=4),
            reraise=True,
        ):
            with attempt:
                return fn()

    def complete(self, prompt: str) -> str:
        messages = [
            {"role": "system", "content": assistant_system()},
            {"role": "user", "content": prompt},
        ]

        def _call() -> str:
            text = self._send(self._client, messages)
            if _is_html(text) and self.config.base_url:
                text = self._send(self._direct_client(), messages)
            if _is_html(text):
                raise RuntimeError("LLM returned HTML instead of text. Check OPENAI_BASE_URL and OPENAI_API_KEY.")
            logging.getLogger(__name__).debug("Completion returned %d characters", len(text))
            return text.strip()

        return self._with_retry(_call)
