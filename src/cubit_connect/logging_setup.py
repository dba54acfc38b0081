# src/cubit_connect/logging_setup.py

from __future__ import annotations

import logging
import re
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FILE_NAME = "cubit.log"

# Lowest level a logger family may show on the console; the longest matching
# prefix wins, anything unlisted needs ERROR. The log file still gets everything.
CONSOLE_FLOORS: dict[str, int] = {
    "cubit_connect": logging.INFO,
    "cubit_connect.storage": logging.WARNING,  # one line per KV read/write
    "cubit_connect.llm.rate_gate": logging.WARNING,
    "openai": logging.WARNING,
    "py.warnings": logging.ERROR,
}
_UNLISTED_FLOOR = logging.ERROR

# Gemini keys, OpenAI-style keys, bearer tokens.
_SECRET = re.compile(r"AIza[0-9A-Za-z_\-]{20,}|sk-[0-9A-Za-z_\-]{16,}|(?<=Bearer )[^\s'\",}]+")
_MASK = "***"


def console_floor(logger_name: str) -> int:
    best = ""
    floor = _UNLISTED_FLOOR
    for prefix, level in CONSOLE_FLOORS.items():
        matches = logger_name == prefix or logger_name.startswith(prefix + ".")
        if matches and len(prefix) > len(best):
            best, floor = prefix, level
    return floor


class _ConsoleNoiseFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= console_floor(record.name)


class _RedactSecretsFilter(logging.Filter):
    """
    Mask API keys in the rendered message.

    The openai SDK logs request options (headers included) at DEBUG, and the
    file handler keeps DEBUG.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            # Bad format args: leave the record for the handler to report.
            return True
        redacted = _SECRET.sub(_MASK, message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def _level(value: int | str) -> int:
    if isinstance(value, int):
        return value
    resolved = logging.getLevelName(str(value).strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(
    *,
    log_dir: str | Path = ".local/cubit",
    console_level: int | str = logging.INFO,
    file_level: int | str = logging.DEBUG,
    max_bytes: int = 2_000_000,
    backup_count: int = 3,
) -> Path:
    """
    Console: filtered per logger family (see CONSOLE_FLOORS).
    File: full DEBUG trace, rotated, since every model call logs a reply excerpt.

    Both handlers redact API keys. Call once, before the first log line.
    Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    redact = _RedactSecretsFilter()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(_level(console_level))
    console.setFormatter(fmt)
    console.addFilter(redact)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    file_handler = RotatingFileHandler(
        str(log_file),
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.setLevel(_level(file_level))
    file_handler.setFormatter(fmt)
    file_handler.addFilter(redact)
    root.addHandler(file_handler)

    logging.captureWarnings(True)

    # httpx/httpcore log every request and connection event.
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)

    return log_file
