# src/cubit_connect/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from ..core.state import AppState
from ..tasks import task_api
from ..tasks.task_models import TaskRecord
from ..transcript.cues import format_timestamp

CommandEmitter = Callable[[str], None]
CommandHandler = Callable[[AppState, list[str], CommandEmitter | None], Awaitable[str]]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /analyze, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return await handler(state, args, emit)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _short(task_id: str) -> str:
    return task_id[:8]


def _task_line(i: int, task: TaskRecord) -> str:
    steps = f" [{len(task.sub_steps)} steps]" if task.sub_steps else ""
    shot = " [img]" if task.screenshot_base64 else ""
    return f"{i}. {_short(task.id)} [{format_timestamp(task.timestamp_seconds)}] {task.task_name}{steps}{shot}"


def _resolve(state: AppState, args: list[str]) -> str | None:
    return task_api.resolve_task_id(state, args[0]) if args else None


async def cmd_help(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    return registry.build_help()


async def cmd_status(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    s = state.settings
    updated = state.task_store.updated_at
    updated_s = (
        datetime.fromtimestamp(updated / 1000).astimezone().strftime("%Y-%m-%d %H:%M:%S")
        if updated
        else "never"
    )
    return (
        "Status:\n"
        f"  Model: {s.llm_model}{' (offline)' if s.offline_mode else ''}\n"
        f"  Endpoint: {s.llm_base_url}\n"
        f"  API key: {'set' if state.api_key else 'missing'}\n"
        f"  Tasks: {len(state.task_store.tasks)} (saved: {updated_s})"
    )


async def cmd_key(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /key <api-key>"
    await task_api.set_api_key(state, args[0])
    return "API key saved."


async def cmd_analyze(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /analyze <transcript-file>"
    if state.is_processing:
        return "An analysis is already running."
    path = " ".join(args)
    if emit:
        emit(f"[AI] Analyzing {path}...")
    tasks = await task_api.analyze_transcript_file(state, path)
    if not tasks:
        return "No tasks found in this transcript."
    start = len(state.task_store.tasks) - len(tasks) + 1
    lines = [f"Added {len(tasks)} task(s):"]
    lines += [_task_line(start + i, t) for i, t in enumerate(tasks)]
    return "\n".join(lines)


async def cmd_tasks(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    tasks = state.task_store.tasks
    if not tasks:
        return "No tasks yet. Use /analyze <transcript-file>."
    return "\n".join(_task_line(i, t) for i, t in enumerate(tasks, start=1))


async def cmd_show(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    task_id = _resolve(state, args)
    task = state.task_store.get(task_id) if task_id else None
    if task is None:
        return "Usage: /show <task-id> (unknown or ambiguous id)"
    lines = [
        f"{task.task_name}  [{format_timestamp(task.timestamp_seconds)}]",
        f"  id: {task.id}",
        f"  {task.description}",
    ]
    for i, step in enumerate(task.sub_steps or (), start=1):
        lines.append(f"  {i}) {step}")
    return "\n".join(lines)


async def cmd_add(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/add <seconds> <name> [| description]"""
    usage = "Usage: /add <seconds> <name> [| description]"
    if len(args) < 2:
        return usage
    try:
        seconds = float(args[0])
    except ValueError:
        return usage
    name, _, description = " ".join(args[1:]).partition("|")
    if seconds < 0 or not name.strip():
        return usage
    task = await state.task_store.create(
        task_name=name.strip(),
        timestamp_seconds=seconds,
        description=description.strip(),
    )
    return f"Added {_short(task.id)} {task.task_name}"


async def cmd_steps(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    task_id = _resolve(state, args)
    if task_id is None:
        return "Usage: /steps <task-id> (unknown or ambiguous id)"
    if emit:
        emit("[AI] Generating sub-steps...")
    task = await task_api.expand_task(state, task_id)
    if task is None:
        return "Task disappeared while generating steps."
    return "\n".join(f"  {i}) {s}" for i, s in enumerate(task.sub_steps or (), start=1))


async def cmd_delete(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    task_id = _resolve(state, args)
    if task_id is None:
        return "Usage: /delete <task-id> (unknown or ambiguous id)"
    await state.task_store.delete(task_id)
    return f"Deleted {_short(task_id)}."


async def cmd_shot(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if len(args) < 2:
        return "Usage: /shot <task-id> <image-file>"
    task_id = _resolve(state, args)
    if task_id is None:
        return "Unknown or ambiguous task id."
    await task_api.attach_screenshot(state, task_id, " ".join(args[1:]))
    return f"Screenshot attached to {_short(task_id)}."


async def cmd_export(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /export <file.json>"
    n = task_api.export_tasks(state, " ".join(args))
    return f"Exported {n} task(s)."


async def cmd_import(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /import <file.json>"
    n = await task_api.import_tasks(state, " ".join(args))
    return f"Imported {n} task(s); the previous list was replaced."


async def cmd_reset(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    await state.task_store.reset()
    return "Project cleared. API key kept."


async def cmd_logout(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    await task_api.full_logout(state)
    return "Project and API key removed."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show model, key and project status.")
registry.register("key", cmd_key, help_text="Store the API key: /key <api-key>.")
registry.register("analyze", cmd_analyze, help_text="Extract tasks from a transcript: /analyze <file>.")
registry.register("tasks", cmd_tasks, help_text="List tasks.", aliases=["ls"])
registry.register("show", cmd_show, help_text="Show one task: /show <id>.")
registry.register("add", cmd_add, help_text="Add a task: /add <seconds> <name> [| description].")
registry.register("steps", cmd_steps, help_text="Generate sub-steps: /steps <id>.")
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <id>.", aliases=["rm"])
registry.register("shot", cmd_shot, help_text="Attach a screenshot: /shot <id> <image-file>.")
registry.register("export", cmd_export, help_text="Export tasks to JSON: /export <file>.")
registry.register("import", cmd_import, help_text="Replace tasks from JSON: /import <file>.")
registry.register("reset", cmd_reset, help_text="Delete all tasks (keeps the API key).")
registry.register("logout", cmd_logout, help_text="Delete all tasks and the API key.")
