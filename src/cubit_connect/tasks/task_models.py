# src/cubit_connect/tasks/task_models.py

from __future__ import annotations

import logging
import math
import time
import uuid
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

# Field names a partial update may touch (id is identity and never changes).
MUTABLE_FIELDS = frozenset(
    {"task_name", "timestamp_seconds", "description", "screenshot_base64", "sub_steps"}
)


def new_task_id() -> str:
    return str(uuid.uuid4())


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True, slots=True)
class TaskRecord:
    """
    One topic segment of a video.

    Records are immutable; mutations produce a new record via dataclasses.replace.
    screenshot_base64 is filled in later by the screenshot collaborator.
    """

    id: str
    task_name: str
    timestamp_seconds: float
    description: str
    screenshot_base64: str = ""
    sub_steps: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("id is required")
        ts = float(self.timestamp_seconds)
        if not math.isfinite(ts) or ts < 0:
            raise ValueError(f"timestamp_seconds must be >= 0, got {self.timestamp_seconds!r}")
        object.__setattr__(self, "timestamp_seconds", ts)
        if self.sub_steps is not None:
            steps = tuple(str(s) for s in self.sub_steps)
            if not steps:
                raise ValueError("sub_steps must contain at least one entry")
            object.__setattr__(self, "sub_steps", steps)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "task_name": self.task_name,
            "timestamp_seconds": self.timestamp_seconds,
            "description": self.description,
            "screenshot_base64": self.screenshot_base64,
        }
        if self.sub_steps is not None:
            out["sub_steps"] = list(self.sub_steps)
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TaskRecord:
        steps = data.get("sub_steps")
        return cls(
            id=str(data["id"]),
            task_name=str(data.get("task_name") or ""),
            timestamp_seconds=float(data.get("timestamp_seconds") or 0.0),
            description=str(data.get("description") or ""),
            screenshot_base64=str(data.get("screenshot_base64") or ""),
            sub_steps=tuple(steps) if isinstance(steps, list) and steps else None,
        )


@dataclass(frozen=True, slots=True)
class ProjectSnapshot:
    """The unit of persistence: the whole task list, written as one blob."""

    tasks: tuple[TaskRecord, ...] = ()
    updated_at: int = field(default_factory=now_ms)

    def to_dict(self) -> dict[str, Any]:
        return {"tasks": [t.to_dict() for t in self.tasks], "updatedAt": self.updated_at}

    @classmethod
    def from_dict(cls, data: Any) -> ProjectSnapshot:
        """
        Best-effort decode: entries that are not objects or cannot be turned
        into a TaskRecord are dropped (logged), duplicate ids keep the first.
        """
        if not isinstance(data, dict):
            raise ValueError("project snapshot must be a JSON object")

        raw_tasks = data.get("tasks")
        if not isinstance(raw_tasks, list):
            raw_tasks = []

        tasks: list[TaskRecord] = []
        seen: set[str] = set()
        for i, item in enumerate(raw_tasks):
            if not isinstance(item, dict) or not item.get("id"):
                logger.warning("Snapshot: dropping entry #%d (not a task object)", i)
                continue
            try:
                task = TaskRecord.from_dict(item)
            except (TypeError, ValueError, OverflowError):
                logger.warning("Snapshot: dropping malformed task #%d", i, exc_info=True)
                continue
            if task.id in seen:
                logger.warning("Snapshot: dropping duplicate task id=%s", task.id)
                continue
            seen.add(task.id)
            tasks.append(task)

        updated = data.get("updatedAt")
        # json.loads accepts Infinity and NaN.
        numeric = isinstance(updated, (int, float)) and not isinstance(updated, bool)
        if numeric and math.isfinite(updated):
            updated_at = int(updated)
        else:
            updated_at = now_ms()
        return cls(tasks=tuple(tasks), updated_at=updated_at)
