# src/cubit_connect/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, restores the saved project and runs
the console REPL on a single asyncio event loop.
"""

from __future__ import annotations

import asyncio
import logging

from ..cli.bootstrap import create_initial_state, restore_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def _run(settings) -> None:
    state = create_initial_state(settings=settings)
    await restore_state(state)
    try:
        await run_console_loop(state)
    finally:
        close = getattr(state.extractor.model, "close", None)
        if close is not None:
            try:
                await close()
            except Exception:
                logger.debug("Model client close failed.", exc_info=True)


def main() -> None:
    settings = get_settings()

    setup_logging(log_dir=settings.data_dir, console_level=settings.log_level)

    logger.info("Starting %s (model=%s)...", settings.app_name, settings.llm_model)
    try:
        asyncio.run(_run(settings))
    except KeyboardInterrupt:
        pass
    logger.info("Bye.")


if __name__ == "__main__":
    main()
