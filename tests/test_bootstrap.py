# tests/test_bootstrap.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from cubit_connect.cli.bootstrap import create_initial_state, restore_state
from cubit_connect.llm.offline import OfflineModel
from cubit_connect.llm.rate_gate import get_default_gate


def _settings(tmp_path: Path, **overrides) -> SimpleNamespace:
    values = dict(
        api_key=None,
        offline_mode=True,
        llm_base_url="",
        llm_connect_timeout_s=5.0,
        llm_read_timeout_s=60.0,
        min_call_interval_s=0.25,
        transcript_char_cap=1000,
        data_dir=tmp_path / "data",
        db_path=tmp_path / "data" / "cubit.sqlite3",
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def test_configured_interval_reaches_the_gate(tmp_path: Path) -> None:
    # An earlier default gate with another interval must not win.
    get_default_gate()

    state = create_initial_state(settings=_settings(tmp_path))

    assert state.extractor.gate.min_interval_seconds == 0.25
    assert state.extractor.gate is not get_default_gate()
    assert isinstance(state.extractor.model, OfflineModel)


@pytest.mark.asyncio
async def test_restore_state_reads_stored_key(tmp_path: Path) -> None:
    state = create_initial_state(settings=_settings(tmp_path))
    await state.credentials.set("stored-key")

    fresh = create_initial_state(settings=_settings(tmp_path))
    await restore_state(fresh)

    assert fresh.api_key == "stored-key"
    assert fresh.task_store.tasks == ()
