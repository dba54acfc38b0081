# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from cubit_connect.core.state import AppState
from cubit_connect.extraction.extractor import TaskExtractor
from cubit_connect.llm.rate_gate import RateGate
from cubit_connect.storage.credentials import CredentialStore
from cubit_connect.tasks.task_store import TaskStore

from .fakes import MemoryKeyValueStore, ScriptedModel


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the task helpers.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the developer's environment.
    """
    return SimpleNamespace(
        app_name="cubit-test",
        llm_model="test-model",
        llm_base_url="http://localhost:9/v1",
        offline_mode=False,
        data_dir=tmp_path,
        db_path=tmp_path / "cubit.sqlite3",
    )


@pytest.fixture()
def kv() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture()
def model() -> ScriptedModel:
    return ScriptedModel()


@pytest.fixture()
def state(settings: SimpleNamespace, kv: MemoryKeyValueStore, model: ScriptedModel) -> AppState:
    """
    AppState wired with deterministic fakes and a zero-interval rate gate.
    """
    return AppState(
        settings=settings,
        extractor=TaskExtractor(model, gate=RateGate(0.0)),
        task_store=TaskStore(kv),
        credentials=CredentialStore(kv),
        api_key="test-key",
    )
