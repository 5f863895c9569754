from __future__ import annotations

import importlib
import logging

import pytest

from repomap.adapters import MemoryAdapter, SqliteAdapter, build_adapter
from repomap.config.settings import Settings


def test_builds_memory_adapter() -> None:
    adapter = build_adapter(Settings(adapter="memory", strict_delete=True))
    assert isinstance(adapter, MemoryAdapter)
    assert adapter.strict_delete is True


def test_builds_sqlite_adapter() -> None:
    adapter = build_adapter(Settings(adapter="sqlite", database=":memory:"))
    assert isinstance(adapter, SqliteAdapter)
    assert adapter.strict_delete is False
    assert adapter.connection.execute("SELECT 1").fetchone() == (1,)
    adapter.close()


def test_defaults_to_module_settings(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    settings_module = importlib.import_module("repomap.config.settings")
    monkeypatch.setattr(settings_module, "settings", Settings(adapter="memory"))
    caplog.set_level(logging.INFO, logger="repomap.adapters.factory")
    adapter = build_adapter()
    assert isinstance(adapter, MemoryAdapter)
    assert any(r.getMessage() == "Adapter configured" for r in caplog.records)
