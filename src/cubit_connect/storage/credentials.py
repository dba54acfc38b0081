# src/cubit_connect/storage/credentials.py

from __future__ import annotations

import logging

from ..core.ports import KeyValueStore

logger = logging.getLogger(__name__)

API_KEY_SLOT = "cubit_api_key"


class CredentialStore:
    """
    Flat slot holding the API key, kept apart from the project snapshot
    (a project reset keeps the key, a full logout removes it).
    """

    def __init__(self, kv: KeyValueStore, *, key: str = API_KEY_SLOT) -> None:
        self._kv = kv
        self._key = key

    async def get(self) -> str | None:
        """Read the stored key. Best-effort: a storage failure reads as "no key"."""
        try:
            raw = await self._kv.get(self._key)
        except Exception:
            logger.exception("Failed to read API key slot.")
            return None
        if not raw:
            return None
        value = raw.decode("utf-8", errors="replace").strip()
        return value or None

    async def set(self, api_key: str) -> None:
        value = (api_key or "").strip()
        if not value:
            raise ValueError("api key must not be empty")
        await self._kv.set(self._key, value.encode("utf-8"))
        logger.info("API key updated.")

    async def clear(self) -> None:
        await self._kv.delete(self._key)
        logger.info("API key removed.")
