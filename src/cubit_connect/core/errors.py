# src/cubit_connect/core/errors.py

"""
Error taxonomy.

Failures of the external model call itself are NOT wrapped here: the openai SDK
exceptions reach the caller unmodified (see llm.client.friendly_llm_error_message).
"""

from __future__ import annotations


class CubitError(Exception):
    """Base class for errors raised by cubit_connect itself."""


class ResponseParseError(CubitError):
    """The model reply was not valid JSON or did not have the expected shape."""

    def __init__(self, message: str, *, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw


class PersistenceError(CubitError):
    """Writing the project snapshot failed. In-memory state is already updated."""


class CredentialMissingError(CubitError):
    """An operation needs an API key but none is configured."""
