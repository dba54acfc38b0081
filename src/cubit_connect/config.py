# src/cubit_connect/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time (the API key may also come from the credential slot).
- The model identifier lives here, never as a default at call sites.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

ENV_PREFIX = "CUBIT"

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
DEFAULT_MODEL = "gemini-1.5-flash-001"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except ImportError:
        return
    load_dotenv(override=False)


_load_dotenv_if_available()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Generative model (OpenAI-compatible endpoint) ----
    api_key: Optional[str]
    llm_base_url: str
    llm_model: str
    llm_connect_timeout_s: float
    llm_read_timeout_s: float
    offline_mode: bool

    # ---- Extraction tuning ----
    min_call_interval_s: float
    transcript_char_cap: int

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    db_path: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "cubit")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        # Accept the provider-native name too, so an existing GEMINI_API_KEY just works.
        api_key = _first_env(_k("API_KEY"), "GEMINI_API_KEY", default=None)
        llm_base_url = _env(_k("LLM_BASE_URL"), DEFAULT_BASE_URL)
        llm_model = (_env(_k("LLM_MODEL"), DEFAULT_MODEL) or "").strip() or DEFAULT_MODEL

        connect_timeout = _env_float(_k("LLM_CONNECT_TIMEOUT_SECONDS"), 5.0)
        read_timeout = _env_float(_k("LLM_READ_TIMEOUT_SECONDS"), 60.0)

        offline_mode = _env_bool(_k("OFFLINE"), False)

        min_call_interval_s = max(0.0, _env_float(_k("MIN_CALL_INTERVAL_SECONDS"), 2.0))
        transcript_char_cap = max(1, _env_int(_k("TRANSCRIPT_CHAR_CAP"), 30_000))

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/cubit"))
        db_path = _env_path(_k("DB_PATH"), data_dir / "cubit.sqlite3")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            api_key=api_key,
            llm_base_url=llm_base_url,
            llm_model=llm_model,
            llm_connect_timeout_s=connect_timeout,
            llm_read_timeout_s=max(read_timeout, connect_timeout),
            offline_mode=offline_mode,
            min_call_interval_s=min_call_interval_s,
            transcript_char_cap=transcript_char_cap,
            data_dir=data_dir,
            db_path=db_path,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
