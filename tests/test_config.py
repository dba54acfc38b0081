# tests/test_config.py

from __future__ import annotations

from pathlib import Path

import pytest

from cubit_connect.config import DEFAULT_MODEL, Settings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("CUBIT_API_KEY", "GEMINI_API_KEY", "CUBIT_LLM_MODEL", "CUBIT_DATA_DIR", "CUBIT_DB_PATH"):
        monkeypatch.delenv(name, raising=False)

    s = Settings.from_env()
    assert s.api_key is None
    assert s.llm_model == DEFAULT_MODEL
    assert s.min_call_interval_s == 2.0
    assert s.transcript_char_cap == 30_000
    assert s.db_path == Path(".local/cubit") / "cubit.sqlite3"


def test_env_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("CUBIT_API_KEY", "abc")
    monkeypatch.setenv("CUBIT_LLM_MODEL", "gemini-2.0-flash")
    monkeypatch.setenv("CUBIT_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("CUBIT_OFFLINE", "yes")
    monkeypatch.setenv("CUBIT_TRANSCRIPT_CHAR_CAP", "not-a-number")

    s = Settings.from_env()
    assert s.api_key == "abc"
    assert s.llm_model == "gemini-2.0-flash"
    assert s.db_path == tmp_path / "cubit.sqlite3"
    assert s.offline_mode is True
    assert s.transcript_char_cap == 30_000
