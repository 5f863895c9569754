from __future__ import annotations

import importlib
import sys
from pathlib import Path
from typing import Any

import pytest
from pydantic import ValidationError

_ENV = ("REPOMAP_ADAPTER", "REPOMAP_DATABASE", "REPOMAP_STRICT_DELETE", "REPOMAP_LOG_FILE")


def _reload_settings() -> Any:
    # Remove cached module to force re-evaluation of settings on import
    if "repomap.config.settings" in sys.modules:
        del sys.modules["repomap.config.settings"]
    import repomap.config.settings as settings_module

    importlib.reload(settings_module)
    return settings_module


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # Prevent picking up values from a real .env during the test
    monkeypatch.setattr("dotenv.load_dotenv", lambda *a, **k: None, raising=False)
    for name in _ENV:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    settings_module = _reload_settings()
    s = settings_module.settings

    assert s.adapter == "memory"
    assert s.database == settings_module.DEFAULT_DATABASE
    assert s.strict_delete is False
    assert s.log_file == settings_module.DEFAULT_LOG_FILE


def test_sqlite_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REPOMAP_ADAPTER", "SQLite")
    monkeypatch.setenv("REPOMAP_DATABASE", "app.db")
    monkeypatch.setenv("REPOMAP_STRICT_DELETE", "yes")
    monkeypatch.setenv("REPOMAP_LOG_FILE", "var/log/repo.log")

    s = _reload_settings().settings

    assert s.adapter == "sqlite"
    assert s.database == "app.db"
    assert s.strict_delete is True
    assert s.log_file == Path("var/log/repo.log")


def test_empty_log_file_disables_file_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REPOMAP_LOG_FILE", "")
    assert _reload_settings().settings.log_file is None


@pytest.mark.parametrize(
    "env",
    [
        {"REPOMAP_ADAPTER": "postgres"},
        {"REPOMAP_ADAPTER": "sqlite", "REPOMAP_DATABASE": ""},
        {"REPOMAP_STRICT_DELETE": "sometimes"},
    ],
)
def test_invalid_environment_raises(monkeypatch: pytest.MonkeyPatch, env: dict[str, str]) -> None:
    for name, value in env.items():
        monkeypatch.setenv(name, value)
    with pytest.raises(RuntimeError):
        _reload_settings()


def test_settings_are_frozen() -> None:
    s = _reload_settings().settings
    with pytest.raises(ValidationError):
        s.adapter = "sqlite"
