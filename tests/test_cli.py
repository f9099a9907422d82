import logging

import pytest

from adaptmem.cli import main
from adaptmem.storage import SQLiteBlobStorage


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("ADAPTMEM_STORAGE_BACKEND", "json")
    monkeypatch.setenv("ADAPTMEM_STORAGE_PATH", str(tmp_path / "memory.json"))
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield tmp_path
    root.handlers[:] = handlers
    root.setLevel(level)


def _run(capsys, *argv):
    main(list(argv))
    return capsys.readouterr().out


def test_remember_recall_forget(cli_env, capsys):
    memory_id = _run(capsys, "remember", "Deploy deadline is March 5", "--type", "deadline", "--project", "Alpha")
    memory_id = memory_id.strip()
    assert memory_id.startswith("mem_")
    assert (cli_env / "memory.json").exists()

    out = _run(capsys, "recall", "what is the Alpha deadline?", "--project", "Alpha")
    assert "Deploy deadline is March 5" in out
    assert "reasoning: Retrieved 1 memories" in out

    out = _run(capsys, "prompt", "what is the Alpha deadline?", "--project", "Alpha")
    assert "## Deadline Context:" in out

    out = _run(capsys, "stats")
    assert "total: 1" in out
    assert "type deadline: 1" in out

    assert f"Deleted {memory_id}" in _run(capsys, "forget", memory_id)
    assert "No memory with id" in _run(capsys, "forget", memory_id)


def test_list_filters(cli_env, capsys):
    _run(capsys, "remember", "Fix the login bug", "--type", "task")
    _run(capsys, "remember", "Use Redis for caching", "--type", "config")
    out = _run(capsys, "list", "--type", "config")
    assert "Use Redis for caching" in out
    assert "Fix the login bug" not in out
    assert "Fix the login bug" in _run(capsys, "list", "--query", "bug")


def test_clear_expired(cli_env, capsys):
    _run(capsys, "remember", "Door code 1234", "--expires-in-days", "-1")
    _run(capsys, "remember", "Office is on floor three")
    assert "Cleared 1 expired memories" in _run(capsys, "clear-expired")
    assert "total: 1" in _run(capsys, "stats")


def test_config_file(cli_env, capsys):
    config_path = cli_env / "adaptmem.yaml"
    config_path.write_text(
        f"storage:\n  backend: sqlite\n  path: {cli_env / 'memory.sqlite'}\n  session_key: alice\n",
        encoding="utf-8",
    )
    _run(capsys, "--config", str(config_path), "remember", "Use Redis for caching", "--type", "config")
    assert (cli_env / "memory.sqlite").exists()
    assert "total: 1" in _run(capsys, "--config", str(config_path), "stats")
    assert "total: 0" in _run(capsys, "stats")


def test_sqlite_storage_is_closed(cli_env, capsys, monkeypatch):
    closed = []
    original_close = SQLiteBlobStorage.close

    def _recording_close(self):
        closed.append(self.key)
        original_close(self)

    monkeypatch.setattr(SQLiteBlobStorage, "close", _recording_close)
    monkeypatch.setenv("ADAPTMEM_STORAGE_BACKEND", "sqlite")
    monkeypatch.setenv("ADAPTMEM_STORAGE_PATH", str(cli_env / "memory.sqlite"))
    monkeypatch.setenv("ADAPTMEM_SESSION_KEY", "bob")

    _run(capsys, "remember", "Use Redis for caching", "--type", "config")
    _run(capsys, "stats")
    assert closed == ["bob", "bob"]


def test_storage_closed_when_command_fails(cli_env, capsys, monkeypatch):
    closed = []
    monkeypatch.setattr(SQLiteBlobStorage, "close", lambda self: closed.append(self.key))
    monkeypatch.setenv("ADAPTMEM_STORAGE_BACKEND", "sqlite")
    monkeypatch.setenv("ADAPTMEM_STORAGE_PATH", str(cli_env / "memory.sqlite"))
    monkeypatch.delenv("ADAPTMEM_SESSION_KEY", raising=False)

    with pytest.raises(ValueError):
        main(["remember", "Door code", "--confidence", "2.0"])
    assert closed == ["default"]
