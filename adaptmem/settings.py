import os
import re
from dataclasses import fields, replace
from pathlib import Path
from typing import Any

import yaml

from adaptmem.config import AdaptMemConfig

_ENV_REF = re.compile(r"^\$\{?(\w+)\}?$")


def _load_yaml(path: str) -> dict[str, Any]:
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("Config YAML must be a mapping")
    return data


def _resolve_value(value: Any) -> Any:
    # "$NAME" and "${NAME}" read from the environment; unset variables become "".
    if isinstance(value, str):
        match = _ENV_REF.match(value)
        if match:
            return os.getenv(match.group(1), "")
    return value


def _overlay(base, section: dict[str, Any] | None):
    if not section:
        return base
    known = {f.name for f in fields(base)}
    values = {key: _resolve_value(value) for key, value in section.items() if key in known}
    return replace(base, **values) if values else base


def build_config(config_path: str | None = None) -> AdaptMemConfig:
    """Environment defaults, optionally overlaid with the llm/storage/recall sections of a YAML file."""
    base = AdaptMemConfig.from_env()
    if not config_path:
        return base

    raw = _load_yaml(config_path)
    return AdaptMemConfig(
        llm=_overlay(base.llm, raw.get("llm")),
        storage=_overlay(base.storage, raw.get("storage")),
        recall=_overlay(base.recall, raw.get("recall")),
    )
