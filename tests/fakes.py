# tests/fakes.py

from __future__ import annotations

from dataclasses import dataclass, field

from cubit_connect.core.ports import ModelReply


@dataclass(slots=True)
class ModelCall:
    credential: str
    model: str
    prompt: str


class ScriptedModel:
    """
    Deterministic GenerativeModel for unit tests.

    - Captures calls for assertions
    - Returns (or raises) the scripted replies in order; the last one repeats
    """

    def __init__(self, *replies: ModelReply | str | BaseException) -> None:
        self.replies = list(replies) or ["[]"]
        self.calls: list[ModelCall] = []

    async def generate(self, *, credential: str, model: str, prompt: str) -> ModelReply:
        self.calls.append(ModelCall(credential=credential, model=model, prompt=prompt))
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, str):
            return ModelReply(text=reply)
        return reply


@dataclass(slots=True)
class MemoryKeyValueStore:
    """
    In-memory KeyValueStore that counts writes and can be told to fail.
    """

    data: dict[str, bytes] = field(default_factory=dict)
    writes: list[str] = field(default_factory=list)
    fail_get: bool = False
    fail_set: bool = False
    fail_delete: bool = False

    async def get(self, key: str) -> bytes | None:
        if self.fail_get:
            raise OSError("storage read failed")
        return self.data.get(key)

    async def set(self, key: str, value: bytes) -> None:
        if self.fail_set:
            raise OSError("storage write failed")
        self.writes.append(key)
        self.data[key] = value

    async def delete(self, key: str) -> None:
        if self.fail_delete:
            raise OSError("storage delete failed")
        self.data.pop(key, None)


class FakeClock:
    """Monotonic clock + sleep pair for RateGate tests; sleeping advances time."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
