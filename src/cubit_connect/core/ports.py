# src/cubit_connect/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps the model provider and the storage engine swappable and makes testing easier.
"""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True)
class ModelReply:
    """
    Result of one generation call.

    block_reason is set when the provider withheld the content by policy;
    text is then usually empty and must not be parsed.
    """

    text: str
    block_reason: str | None = None

    @property
    def blocked(self) -> bool:
        return bool(self.block_reason)


class GenerativeModel(Protocol):
    """Single-prompt text generation client (OpenAI-compatible or offline)."""

    async def generate(self, *, credential: str, model: str, prompt: str) -> ModelReply: ...


class KeyValueStore(Protocol):
    """
    Async key-value blob store.

    get() returns None for a missing key; delete() of a missing key is a no-op.
    """

    async def get(self, key: str) -> bytes | None: ...

    async def set(self, key: str, value: bytes) -> None: ...

    async def delete(self, key: str) -> None: ...
