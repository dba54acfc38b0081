# src/cubit_connect/tasks/task_store.py

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Iterable
from dataclasses import replace
from typing import Any

from ..core.errors import PersistenceError
from ..core.ports import KeyValueStore
from .task_models import MUTABLE_FIELDS, ProjectSnapshot, TaskRecord, new_task_id

logger = logging.getLogger(__name__)

PROJECT_KEY = "cubit_connect_project_v1"


class TaskStore:
    """
    Canonical task list + durable mirror.

    Every mutation is two phases:
    1. in-memory commit (always succeeds, visible immediately)
    2. durable commit: the FULL list is written as one snapshot blob

    If phase 2 fails, PersistenceError is raised and the in-memory list is kept
    as is (no rollback): displayed and persisted state may differ until the
    next successful write.

    Single writer: callers never mutate the list directly, and mutations are
    serialized by an asyncio.Lock so snapshots are written in mutation order.
    """

    def __init__(self, kv: KeyValueStore, *, key: str = PROJECT_KEY) -> None:
        self._kv = kv
        self._key = key
        self._tasks: tuple[TaskRecord, ...] = ()
        self._updated_at: int | None = None
        self._lock = asyncio.Lock()

    # ---- views ----

    @property
    def tasks(self) -> tuple[TaskRecord, ...]:
        return self._tasks

    @property
    def updated_at(self) -> int | None:
        """Epoch millis of the last snapshot loaded or written."""
        return self._updated_at

    def get(self, task_id: str) -> TaskRecord | None:
        for t in self._tasks:
            if t.id == task_id:
                return t
        return None

    # ---- low-level helpers ----

    async def _persist(self, tasks: tuple[TaskRecord, ...]) -> None:
        snapshot = ProjectSnapshot(tasks=tasks)
        blob = json.dumps(snapshot.to_dict(), ensure_ascii=False).encode("utf-8")
        try:
            await self._kv.set(self._key, blob)
        except Exception as e:
            logger.exception("Failed to save project (%d tasks).", len(tasks))
            raise PersistenceError("Failed to save project.") from e
        self._updated_at = snapshot.updated_at
        logger.debug("Project saved: %d tasks, %d bytes", len(tasks), len(blob))

    # ---- public API ----

    async def load(self) -> list[TaskRecord]:
        """
        Replace the in-memory list with the persisted snapshot.

        Fail-open: a storage or decoding failure yields an empty list.
        """
        async with self._lock:
            try:
                raw = await self._kv.get(self._key)
            except Exception:
                logger.exception("Failed to load project; starting empty.")
                raw = None

            snapshot = ProjectSnapshot()
            if raw:
                try:
                    snapshot = ProjectSnapshot.from_dict(json.loads(raw.decode("utf-8")))
                except Exception:
                    logger.exception("Stored project is unreadable; starting empty.")

            self._tasks = snapshot.tasks
            self._updated_at = snapshot.updated_at
            logger.info("Project loaded: %d tasks", len(self._tasks))
            return list(self._tasks)

    async def append(self, task: TaskRecord) -> None:
        async with self._lock:
            if self.get(task.id) is not None:
                raise ValueError(f"duplicate task id: {task.id}")
            self._tasks = (*self._tasks, task)
            await self._persist(self._tasks)

    async def create(
        self,
        *,
        task_name: str,
        timestamp_seconds: float,
        description: str = "",
    ) -> TaskRecord:
        """Add a locally authored task; the store assigns its id."""
        task = TaskRecord(
            id=new_task_id(),
            task_name=task_name,
            timestamp_seconds=timestamp_seconds,
            description=description,
        )
        await self.append(task)
        return task

    async def update(self, task_id: str, **fields: Any) -> TaskRecord | None:
        """
        Merge fields into the task with this id.

        A missing id is a no-op on content but still writes the (unchanged) list.
        Returns the updated record, or None if nothing matched.
        """
        unknown = set(fields) - MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"cannot update field(s): {', '.join(sorted(unknown))}")

        async with self._lock:
            updated: TaskRecord | None = None
            new_tasks: list[TaskRecord] = []
            for t in self._tasks:
                if t.id == task_id:
                    # replace() re-runs validation (timestamp >= 0, non-empty sub_steps).
                    updated = replace(t, **fields)
                    new_tasks.append(updated)
                else:
                    new_tasks.append(t)

            if updated is None:
                logger.debug("update: no task with id=%s", task_id)

            self._tasks = tuple(new_tasks)
            await self._persist(self._tasks)
            return updated

    async def delete(self, task_id: str) -> bool:
        async with self._lock:
            remaining = tuple(t for t in self._tasks if t.id != task_id)
            removed = len(remaining) != len(self._tasks)
            self._tasks = remaining
            await self._persist(self._tasks)
            return removed

    async def replace_all(self, tasks: Iterable[TaskRecord]) -> None:
        """Bulk import: the given list becomes the whole project."""
        new_tasks = tuple(tasks)
        ids = [t.id for t in new_tasks]
        if len(set(ids)) != len(ids):
            raise ValueError("imported tasks contain duplicate ids")

        async with self._lock:
            self._tasks = new_tasks
            await self._persist(self._tasks)

    async def clear(self) -> None:
        """Delete the persisted snapshot only. Best-effort: failures are logged."""
        try:
            await self._kv.delete(self._key)
        except Exception:
            logger.exception("Failed to clear project.")

    async def reset(self) -> None:
        """Drop all tasks, in storage and in memory. Credentials are not touched."""
        async with self._lock:
            await self.clear()
            self._tasks = ()
            self._updated_at = None
            logger.info("Project reset.")
