import os
from dataclasses import dataclass


def _get_env(key: str, default: str | None = None) -> str | None:
    value = os.getenv(key, default)
    if value is None or value == "":
        return default
    return value


def _get_env_str(key: str, default: str) -> str:
    return _get_env(key, default) or default


def _get_env_int(key: str, default: int) -> int:
    raw = _get_env(key, str(default))
    return int(raw) if raw is not None else default


def _get_env_float(key: str, default: float) -> float:
    raw = _get_env(key, str(default))
    return float(raw) if raw is not None else default


STORAGE_BACKENDS = ("memory", "json", "sqlite")


@dataclass(frozen=True)
class LLMConfig:
    model: str = "gpt-4o-mini"
    api_key: str | None = None
    base_url: str | None = None
    timeout_s: int = 30
    max_retries: int = 2
    temperature: float = 0.7

    @classmethod
    def from_env(cls) -> "LLMConfig":
        return cls(
            model=_get_env_str("ADAPTMEM_LLM_MODEL", "gpt-4o-mini"),
            api_key=_get_env("OPENAI_API_KEY"),
            base_url=_get_env("OPENAI_BASE_URL"),
            timeout_s=_get_env_int("ADAPTMEM_LLM_TIMEOUT_S", 30),
            max_retries=_get_env_int("ADAPTMEM_LLM_MAX_RETRIES", 2),
            temperature=_get_env_float("ADAPTMEM_LLM_TEMPERATURE", 0.7),
        )


@dataclass(frozen=True)
class StorageConfig:
    backend: str = "json"
    path: str = "adaptmem_memory.json"
    session_key: str = "default"

    def __post_init__(self) -> None:
        if self.backend not in STORAGE_BACKENDS:
            raise ValueError(
                f"Unknown storage backend {self.backend!r}; expected one of {', '.join(STORAGE_BACKENDS)}"
            )

    @classmethod
    def from_env(cls) -> "StorageConfig":
        return cls(
            backend=_get_env_str("ADAPTMEM_STORAGE_BACKEND", "json"),
            path=_get_env_str("ADAPTMEM_STORAGE_PATH", "adaptmem_memory.json"),
            session_key=_get_env_str("ADAPTMEM_SESSION_KEY", "default"),
        )


@dataclass(frozen=True)
class RecallConfig:
    # Upper bound on phase-one candidates.
    candidate_limit: int = 500
    fallback_recent: int = 20
    expand_top: int = 5
    expand_decay: float = 0.7

    @classmethod
    def from_env(cls) -> "RecallConfig":
        return cls(
            candidate_limit=_get_env_int("ADAPTMEM_CANDIDATE_LIMIT", 500),
            fallback_recent=_get_env_int("ADAPTMEM_FALLBACK_RECENT", 20),
            expand_top=_get_env_int("ADAPTMEM_EXPAND_TOP", 5),
            expand_decay=_get_env_float("ADAPTMEM_EXPAND_DECAY", 0.7),
        )


@dataclass(frozen=True)
class AdaptMemConfig:
    llm: LLMConfig
    storage: StorageConfig
    recall: RecallConfig

    @classmethod
    def from_env(cls) -> "AdaptMemConfig":
        return cls(
            llm=LLMConfig.from_env(),
            storage=StorageConfig.from_env(),
            recall=RecallConfig.from_env(),
        )
