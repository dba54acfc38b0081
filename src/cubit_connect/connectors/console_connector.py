# src/cubit_connect/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

import openai

from ..cli.commands import registry as command_registry
from ..core.errors import CubitError
from ..core.state import AppState
from ..llm.client import friendly_llm_error_message

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


async def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Use /help for commands. Use /exit to quit.\n")

    while True:
        try:
            # input() blocks; keep the event loop free for in-flight writes.
            user_input = (await asyncio.to_thread(input, ">>> ")).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        if not user_input.startswith("/"):
            _print_ts("Commands start with '/'. Use /help to list them.")
            continue

        try:
            reply = await command_registry.handle(state, user_input, emit=_print_ts)
        except openai.OpenAIError as e:
            msg = friendly_llm_error_message(e)
            logger.info("LLM error: %s", msg)
            reply = f"[LLM] {msg}"
        except CubitError as e:
            logger.info("Command failed: %s", e)
            reply = f"[ERROR] {e}"
        except (OSError, ValueError) as e:
            logger.info("Command failed: %s", e)
            reply = f"[ERROR] {e}"
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        if reply is not None:
            _print_ts(reply)

    logger.info("Console connector finished.")
