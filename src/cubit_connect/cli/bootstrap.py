# src/cubit_connect/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (model/gate/storage),
- restores the stored API key and the saved project.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import GenerativeModel
from ..core.state import AppState
from ..extraction.extractor import TaskExtractor
from ..llm.client import OpenAICompatibleModel
from ..llm.offline import OfflineModel
from ..llm.rate_gate import RateGate
from ..storage.credentials import CredentialStore
from ..storage.kv_store import SqliteKeyValueStore
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)


def _build_model(settings) -> GenerativeModel:
    if settings.offline_mode:
        logger.info("Offline mode: using the deterministic demo model.")
        return OfflineModel()
    try:
        return OpenAICompatibleModel(
            base_url=settings.llm_base_url,
            connect_timeout_s=settings.llm_connect_timeout_s,
            read_timeout_s=settings.llm_read_timeout_s,
        )
    except ValueError:
        # Fallback for demos / local runs without external services.
        logger.warning("LLM endpoint is not configured; falling back to the offline model.")
        return OfflineModel()


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    kv = SqliteKeyValueStore(settings.db_path)
    extractor = TaskExtractor(
        _build_model(settings),
        gate=RateGate(settings.min_call_interval_s),
        transcript_char_cap=settings.transcript_char_cap,
    )

    return AppState(
        settings=settings,
        extractor=extractor,
        task_store=TaskStore(kv),
        credentials=CredentialStore(kv),
        api_key=settings.api_key,
    )


async def restore_state(state: AppState) -> None:
    """Read the stored key (env wins) and load the saved project. Never raises."""
    if not state.api_key:
        state.api_key = await state.credentials.get()
    await state.task_store.load()
    logger.info(
        "State restored: tasks=%d api_key=%s",
        len(state.task_store.tasks),
        "set" if state.api_key else "missing",
    )
