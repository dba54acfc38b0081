# tests/test_task_store.py

from __future__ import annotations

import json

import pytest

from cubit_connect.core.errors import PersistenceError
from cubit_connect.storage.credentials import CredentialStore
from cubit_connect.tasks.task_models import TaskRecord
from cubit_connect.tasks.task_store import PROJECT_KEY, TaskStore

from .fakes import MemoryKeyValueStore


def _task(task_id: str, name: str = "Topic", ts: float = 1.0) -> TaskRecord:
    return TaskRecord(id=task_id, task_name=name, timestamp_seconds=ts, description=f"about {name}")


@pytest.mark.asyncio
async def test_append_survives_reload(kv: MemoryKeyValueStore) -> None:
    store = TaskStore(kv)
    t = _task("t1")
    await store.append(t)

    reloaded = TaskStore(kv)
    assert await reloaded.load() == [t]
    assert reloaded.tasks == (t,)


@pytest.mark.asyncio
async def test_append_keeps_insertion_order(kv: MemoryKeyValueStore) -> None:
    store = TaskStore(kv)
    for i in range(3):
        await store.append(_task(f"t{i}", ts=10.0 - i))
    assert [t.id for t in store.tasks] == ["t0", "t1", "t2"]
    assert len(kv.writes) == 3


@pytest.mark.asyncio
async def test_append_rejects_duplicate_id(kv: MemoryKeyValueStore) -> None:
    store = TaskStore(kv)
    await store.append(_task("t1"))
    with pytest.raises(ValueError):
        await store.append(_task("t1", name="again"))
    assert len(store.tasks) == 1


@pytest.mark.asyncio
async def test_update_missing_id_still_persists_once(kv: MemoryKeyValueStore) -> None:
    store = TaskStore(kv)
    await store.append(_task("t1"))
    before = store.tasks
    writes_before = len(kv.writes)

    result = await store.update("nope", description="x")

    assert result is None
    assert store.tasks == before
    assert len(kv.writes) == writes_before + 1


@pytest.mark.asyncio
async def test_update_merges_in_place(kv: MemoryKeyValueStore) -> None:
    store = TaskStore(kv)
    await store.append(_task("a"))
    await store.append(_task("b"))
    await store.append(_task("c"))

    updated = await store.update("b", description="new", sub_steps=["one", "two"])

    assert updated is not None
    assert [t.id for t in store.tasks] == ["a", "b", "c"]
    assert store.get("b").description == "new"
    assert store.get("b").sub_steps == ("one", "two")
    assert store.get("b").task_name == "Topic"

    reloaded = TaskStore(kv)
    await reloaded.load()
    assert reloaded.get("b").sub_steps == ("one", "two")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "fields",
    [{"id": "other"}, {"unknown": 1}, {"sub_steps": []}, {"timestamp_seconds": -3}],
)
async def test_invalid_update_changes_nothing(kv: MemoryKeyValueStore, fields: dict) -> None:
    store = TaskStore(kv)
    await store.append(_task("a"))
    writes_before = len(kv.writes)

    with pytest.raises(ValueError):
        await store.update("a", **fields)

    assert store.tasks == (_task("a"),)
    assert len(kv.writes) == writes_before


@pytest.mark.asyncio
async def test_delete_removes_and_persists(kv: MemoryKeyValueStore) -> None:
    store = TaskStore(kv)
    await store.append(_task("a"))
    await store.append(_task("b"))

    assert await store.delete("a") is True
    assert [t.id for t in store.tasks] == ["b"]
    assert await store.delete("a") is False

    reloaded = TaskStore(kv)
    assert [t.id for t in await reloaded.load()] == ["b"]


@pytest.mark.asyncio
async def test_create_assigns_id(kv: MemoryKeyValueStore) -> None:
    store = TaskStore(kv)
    task = await store.create(task_name="Local", timestamp_seconds=4.0, description="mine")
    assert task.id
    assert store.tasks == (task,)


@pytest.mark.asyncio
async def test_replace_all(kv: MemoryKeyValueStore) -> None:
    store = TaskStore(kv)
    await store.append(_task("old"))

    await store.replace_all([_task("n1"), _task("n2")])
    assert [t.id for t in store.tasks] == ["n1", "n2"]

    with pytest.raises(ValueError):
        await store.replace_all([_task("d"), _task("d")])
    assert [t.id for t in store.tasks] == ["n1", "n2"]


@pytest.mark.asyncio
async def test_write_failure_surfaces_without_rollback(kv: MemoryKeyValueStore) -> None:
    store = TaskStore(kv)
    kv.fail_set = True

    with pytest.raises(PersistenceError) as exc_info:
        await store.append(_task("t1"))

    assert isinstance(exc_info.value.__cause__, OSError)
    # optimistic state stays
    assert [t.id for t in store.tasks] == ["t1"]
    assert PROJECT_KEY not in kv.data


@pytest.mark.asyncio
async def test_load_fails_open(kv: MemoryKeyValueStore) -> None:
    kv.fail_get = True
    store = TaskStore(kv)
    assert await store.load() == []


@pytest.mark.asyncio
async def test_load_ignores_unreadable_blob(kv: MemoryKeyValueStore) -> None:
    kv.data[PROJECT_KEY] = b"\xff not json"
    assert await TaskStore(kv).load() == []


@pytest.mark.asyncio
@pytest.mark.parametrize("updated", ["Infinity", "-Infinity", "NaN", "true", "\"soon\""])
async def test_load_tolerates_bad_updated_at(kv: MemoryKeyValueStore, updated: str) -> None:
    task = _task("a", "Kept")
    kv.data[PROJECT_KEY] = (
        '{"tasks": [' + json.dumps(task.to_dict()) + '], "updatedAt": ' + updated + "}"
    ).encode("utf-8")

    store = TaskStore(kv)
    assert await store.load() == [task]
    assert store.updated_at > 0


@pytest.mark.asyncio
async def test_load_drops_task_with_overflowing_timestamp(kv: MemoryKeyValueStore) -> None:
    kv.data[PROJECT_KEY] = (
        b'{"tasks": [{"id": "x", "task_name": "T", "timestamp_seconds": Infinity}], "updatedAt": 5}'
    )
    store = TaskStore(kv)
    assert await store.load() == []
    assert store.updated_at == 5


@pytest.mark.asyncio
async def test_load_drops_malformed_entries(kv: MemoryKeyValueStore) -> None:
    kv.data[PROJECT_KEY] = json.dumps(
        {
            "tasks": [
                {"id": "ok", "task_name": "A", "timestamp_seconds": 3, "description": "d", "screenshot_base64": ""},
                "garbage",
                {"task_name": "no id"},
                {"id": "neg", "task_name": "B", "timestamp_seconds": -1},
                {"id": "ok", "task_name": "dup", "timestamp_seconds": 1},
            ],
            "updatedAt": 1700000000000,
        }
    ).encode("utf-8")

    store = TaskStore(kv)
    tasks = await store.load()
    assert [t.id for t in tasks] == ["ok"]
    assert store.updated_at == 1700000000000


@pytest.mark.asyncio
async def test_snapshot_blob_format(kv: MemoryKeyValueStore) -> None:
    store = TaskStore(kv)
    await store.append(_task("a"))
    await store.update("a", sub_steps=["s"])
    await store.append(_task("b"))

    data = json.loads(kv.data[PROJECT_KEY].decode("utf-8"))
    assert set(data) == {"tasks", "updatedAt"}
    assert data["tasks"][0]["sub_steps"] == ["s"]
    assert "sub_steps" not in data["tasks"][1]
    assert set(data["tasks"][1]) == {"id", "task_name", "timestamp_seconds", "description", "screenshot_base64"}
    assert store.updated_at == data["updatedAt"]


@pytest.mark.asyncio
async def test_clear_is_best_effort(kv: MemoryKeyValueStore) -> None:
    store = TaskStore(kv)
    await store.append(_task("a"))
    kv.fail_delete = True

    await store.clear()  # must not raise
    assert PROJECT_KEY in kv.data


@pytest.mark.asyncio
async def test_reset_keeps_credentials(kv: MemoryKeyValueStore) -> None:
    store = TaskStore(kv)
    creds = CredentialStore(kv)
    await creds.set("my-key")
    await store.append(_task("a"))

    await store.reset()

    assert store.tasks == ()
    assert PROJECT_KEY not in kv.data
    assert await creds.get() == "my-key"
    assert await TaskStore(kv).load() == []
