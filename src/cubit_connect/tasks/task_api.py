# src/cubit_connect/tasks/task_api.py

from __future__ import annotations

import base64
import contextlib
import json
import logging
import os
from pathlib import Path

from ..core.errors import CredentialMissingError
from ..core.state import AppState
from ..transcript.cues import parse_cues, render_cues
from .task_models import ProjectSnapshot, TaskRecord

logger = logging.getLogger(__name__)

OFFLINE_CREDENTIAL = "offline"


def require_api_key(state: AppState) -> str:
    if getattr(state.settings, "offline_mode", False):
        return state.api_key or OFFLINE_CREDENTIAL
    if not state.api_key:
        raise CredentialMissingError("No API key configured. Use /key <api-key> or set CUBIT_API_KEY.")
    return state.api_key


def transcript_text(raw: str) -> str:
    """
    Subtitle files are rendered as "[MM:SS] text" lines so the model can pick
    timestamps; anything that yields no cues is passed through as plain text.
    """
    cues = parse_cues(raw)
    if not cues:
        logger.info("No subtitle cues found; using the text as-is.")
        return raw
    logger.info("Parsed %d cues (%.1fs .. %.1fs)", len(cues), cues[0].start, cues[-1].end)
    return render_cues(cues)


def resolve_task_id(state: AppState, id_or_prefix: str) -> str | None:
    """Exact id, or a prefix that matches exactly one task."""
    needle = (id_or_prefix or "").strip()
    if not needle:
        return None
    if state.task_store.get(needle) is not None:
        return needle
    matches = [t.id for t in state.task_store.tasks if t.id.startswith(needle)]
    return matches[0] if len(matches) == 1 else None


async def analyze_transcript_file(state: AppState, path: str | Path) -> list[TaskRecord]:
    """Read a transcript file, extract tasks and append them to the project."""
    credential = require_api_key(state)
    raw = Path(path).read_text("utf-8", errors="replace")

    state.is_processing = True
    try:
        tasks = await state.extractor.analyze_transcript(
            credential,
            transcript_text(raw),
            state.settings.llm_model,
        )
        for task in tasks:
            await state.task_store.append(task)
    finally:
        state.is_processing = False

    logger.info("Added %d tasks from %s", len(tasks), path)
    return tasks


async def expand_task(state: AppState, task_id: str) -> TaskRecord | None:
    """Generate sub-steps for one task and store them on it."""
    task = state.task_store.get(task_id)
    if task is None:
        return None

    credential = require_api_key(state)
    steps = await state.extractor.generate_sub_steps(
        credential,
        task.task_name,
        task.description,
        state.settings.llm_model,
    )
    return await state.task_store.update(task_id, sub_steps=steps)


async def attach_screenshot(state: AppState, task_id: str, image_path: str | Path) -> TaskRecord | None:
    encoded = base64.b64encode(Path(image_path).read_bytes()).decode("ascii")
    return await state.task_store.update(task_id, screenshot_base64=encoded)


async def set_api_key(state: AppState, api_key: str) -> None:
    await state.credentials.set(api_key)
    state.api_key = api_key.strip()


async def full_logout(state: AppState) -> None:
    """Factory reset: drop the project AND the stored API key."""
    await state.task_store.reset()
    try:
        await state.credentials.clear()
    except Exception:
        logger.exception("Failed to remove stored API key.")
    state.api_key = None


def export_tasks(state: AppState, path: str | Path) -> int:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    snapshot = ProjectSnapshot(tasks=state.task_store.tasks)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(snapshot.to_dict(), ensure_ascii=False, indent=2), "utf-8")
    os.replace(tmp, path)
    with contextlib.suppress(OSError):
        # Best-effort: the export may embed screenshots of private videos.
        os.chmod(path, 0o600)
    logger.info("Exported %d tasks to %s", len(snapshot.tasks), path)
    return len(snapshot.tasks)


async def import_tasks(state: AppState, path: str | Path) -> int:
    """
    Replace the project with tasks from a JSON file.

    Accepts an export ({"tasks": [...]}) or a bare list of task objects.
    """
    data = json.loads(Path(path).read_text("utf-8"))
    if isinstance(data, list):
        data = {"tasks": data}
    snapshot = ProjectSnapshot.from_dict(data)
    await state.task_store.replace_all(snapshot.tasks)
    logger.info("Imported %d tasks from %s", len(snapshot.tasks), path)
    return len(snapshot.tasks)
