# src/cubit_connect/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..extraction.extractor import TaskExtractor
from ..storage.credentials import CredentialStore
from ..tasks.task_store import TaskStore


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules.
    settings: Any

    extractor: TaskExtractor
    task_store: TaskStore
    credentials: CredentialStore

    api_key: str | None = None
    is_processing: bool = False
