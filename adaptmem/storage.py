import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from adaptmem.config import StorageConfig


class BlobStorage(Protocol):
    def save(self, blob: str) -> None: ...

    def load(self) -> str | None: ...


@dataclass
class InMemoryStorage:
    blob: str | None = None

    def save(self, blob: str) -> None:
        self.blob = blob

    def load(self) -> str | None:
        return self.blob


@dataclass
class JsonFileStorage:
    path: str

    def save(self, blob: str) -> None:
        target = Path(self.path)
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp = target.with_name(target.name + ".tmp")
        tmp.write_text(blob, encoding="utf-8")
        tmp.replace(target)

    def load(self) -> str | None:
        target = Path(self.path)
        if not target.exists():
            return None
        return target.read_text(encoding="utf-8")


@dataclass
class SQLiteBlobStorage:
    """One row per session key, so a single database file can hold many users."""

    config: StorageConfig
    key: str = ""

    def __post_init__(self) -> None:
        if not self.key:
            self.key = self.config.session_key
        self._conn = sqlite3.connect(self.config.path)
        self._conn.execute(
            "CREATE TABLE IF NOT EXISTS memory_blobs ("
            "session_key TEXT PRIMARY KEY, "
            "blob TEXT NOT NULL, "
            "saved_at TEXT NOT NULL"
            ")"
        )
        self._conn.commit()

    def close(self) -> None:
        self._conn.close()

    def save(self, blob: str) -> None:
        self._conn.execute(
            "INSERT OR REPLACE INTO memory_blobs (session_key, blob, saved_at) VALUES (?, ?, ?)",
            (self.key, blob, datetime.now(timezone.utc).isoformat()),
        )
        self._conn.commit()

    def load(self) -> str | None:
        cursor = self._conn.execute(
            "SELECT blob FROM memory_blobs WHERE session_key = ?",
            (self.key,),
        )
        row = cursor.fetchone()
        if row is None:
            return None
        return row[0]

    def keys(self) -> list[str]:
        cursor = self._conn.execute("SELECT session_key FROM memory_blobs ORDER BY session_key")
        return [row[0] for row in cursor.fetchall()]


def build_storage(config: StorageConfig) -> BlobStorage:
    logger = logging.getLogger(__name__)
    if config.backend == "memory":
        return InMemoryStorage()
    if config.backend == "sqlite":
        logger.debug("Using SQLite storage at %s (session %s)", config.path, config.session_key)
        return SQLiteBlobStorage(config)
    logger.debug("Using JSON file storage at %s", config.path)
    return JsonFileStorage(config.path)
