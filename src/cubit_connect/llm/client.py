# src/cubit_connect/llm/client.py

from __future__ import annotations

import logging
import time
from typing import Any

import httpx
import openai
from openai import AsyncOpenAI

from ..core.ports import ModelReply

logger = logging.getLogger(__name__)

CONTENT_FILTER = "content_filter"


def _is_auth_error(exc: Exception) -> bool:
    return exc.__class__.__name__ in {
        "AuthenticationError",
        "PermissionDeniedError",
        "UnauthorizedError",
    }


def _is_rate_limit_error(exc: Exception) -> bool:
    if isinstance(exc, openai.RateLimitError):
        return True
    return exc.__class__.__name__ in {"RateLimitError", "TooManyRequestsError"}


def _is_connection_error(exc: Exception) -> bool:
    return exc.__class__.__name__ in {
        "APIConnectionError",
        "APITimeoutError",
        "Timeout",
        "ConnectTimeout",
        "ReadTimeout",
        "WriteTimeout",
    }


def _is_not_found_error(exc: Exception) -> bool:
    # OpenAI-compatible SDK uses NotFoundError for HTTP 404 (unknown model name)
    return exc.__class__.__name__ in {"NotFoundError"}


def friendly_llm_error_message(err: Exception) -> str:
    """One-line, user-facing description of a failed model call."""
    if _is_auth_error(err):
        return "LLM authentication failed. Check your API key (/key <api-key> or CUBIT_API_KEY)."
    if _is_rate_limit_error(err):
        return "LLM is rate-limited. Try again later."
    if _is_connection_error(err):
        return "LLM network/timeout error. Check your connection and try again."
    if _is_not_found_error(err):
        return "LLM model not found. Check CUBIT_LLM_MODEL."
    msg = str(err).strip()
    return msg or "LLM error."


def _field(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def _block_reason(completion: Any) -> str | None:
    """
    Detect a policy block.

    - OpenAI-style: choices[0].finish_reason == "content_filter"
    - Gemini-style (passed through as an extra field): prompt_feedback.block_reason
    """
    feedback = _field(completion, "prompt_feedback")
    reason = _field(feedback, "block_reason")
    if reason:
        return str(reason)

    choices = _field(completion, "choices") or []
    if choices and _field(choices[0], "finish_reason") == CONTENT_FILTER:
        return CONTENT_FILTER
    return None


def _reply_text(completion: Any) -> str:
    choices = _field(completion, "choices") or []
    if not choices:
        return ""
    message = _field(choices[0], "message")
    content = _field(message, "content")
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = [p.get("text", "") for p in content if isinstance(p, dict)]
        return "".join(p for p in parts if isinstance(p, str))
    return ""


class OpenAICompatibleModel:
    """
    GenerativeModel backed by any OpenAI-compatible chat-completions endpoint.

    The credential is passed per call (the user can change it at runtime), so
    clients are cached per API key. SDK retries are disabled: pacing is the
    RateGate's job and failures must reach the caller unmodified.
    """

    def __init__(
        self,
        *,
        base_url: str,
        connect_timeout_s: float = 5.0,
        read_timeout_s: float = 60.0,
    ) -> None:
        if not base_url or not base_url.strip():
            raise ValueError("LLM base URL is not set. Set CUBIT_LLM_BASE_URL in your .env.")
        self._base_url = base_url.strip()
        self._timeout = httpx.Timeout(
            connect=connect_timeout_s,
            read=read_timeout_s,
            write=10.0,
            pool=connect_timeout_s,
        )
        self._clients: dict[str, AsyncOpenAI] = {}

    def _get_client(self, credential: str) -> AsyncOpenAI:
        client = self._clients.get(credential)
        if client is None:
            client = AsyncOpenAI(
                base_url=self._base_url,
                api_key=credential,
                timeout=self._timeout,
                max_retries=0,
            )
            self._clients[credential] = client
        return client

    async def generate(self, *, credential: str, model: str, prompt: str) -> ModelReply:
        client = self._get_client(credential)

        t0 = time.monotonic()
        logger.info("LLM: calling model=%s prompt_chars=%d", model, len(prompt))
        try:
            completion = await client.chat.completions.create(
                model=model,
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as e:
            logger.info(
                "LLM: call failed model=%s (%s) after %.2fs",
                model,
                e.__class__.__name__,
                time.monotonic() - t0,
            )
            raise

        reason = _block_reason(completion)
        text = "" if reason else _reply_text(completion)
        logger.info(
            "LLM: reply from model=%s chars=%d blocked=%s (%.2fs)",
            model,
            len(text),
            bool(reason),
            time.monotonic() - t0,
        )
        return ModelReply(text=text, block_reason=reason)

    async def close(self) -> None:
        for client in self._clients.values():
            await client.close()
        self._clients.clear()
