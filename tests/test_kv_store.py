# tests/test_kv_store.py

from __future__ import annotations

from pathlib import Path

import pytest

from cubit_connect.storage.credentials import CredentialStore
from cubit_connect.storage.kv_store import SqliteKeyValueStore
from cubit_connect.tasks.task_models import TaskRecord
from cubit_connect.tasks.task_store import TaskStore


@pytest.mark.asyncio
async def test_set_get_overwrite_delete(tmp_path: Path) -> None:
    kv = SqliteKeyValueStore(tmp_path / "nested" / "kv.sqlite3")

    assert await kv.get("missing") is None

    await kv.set("k", b"one")
    assert await kv.get("k") == b"one"

    await kv.set("k", b"two")
    assert await kv.get("k") == b"two"

    await kv.delete("k")
    assert await kv.get("k") is None
    await kv.delete("k")  # deleting a missing key is fine


@pytest.mark.asyncio
async def test_task_store_on_sqlite_survives_restart(tmp_path: Path) -> None:
    db = tmp_path / "cubit.sqlite3"
    store = TaskStore(SqliteKeyValueStore(db))
    task = TaskRecord(id="t1", task_name="Intro", timestamp_seconds=12.5, description="hello")
    await store.append(task)

    reopened = TaskStore(SqliteKeyValueStore(db))
    assert await reopened.load() == [task]


@pytest.mark.asyncio
async def test_credentials_slot(tmp_path: Path) -> None:
    creds = CredentialStore(SqliteKeyValueStore(tmp_path / "kv.sqlite3"))
    assert await creds.get() is None

    await creds.set("  abc123  ")
    assert await creds.get() == "abc123"

    with pytest.raises(ValueError):
        await creds.set("   ")

    await creds.clear()
    assert await creds.get() is None
