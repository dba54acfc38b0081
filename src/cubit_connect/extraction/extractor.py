# src/cubit_connect/extraction/extractor.py

"""
Transcript -> tasks extraction.

Both operations follow the same path:
rate gate -> model call -> strip code fences -> json.loads -> shape validation.

analyze_transcript surfaces every failure (the user has to act: retry, fix the
key). generate_sub_steps never raises: sub-steps are a nice-to-have and a
failure must not interrupt the task feed, so it answers with a fixed fallback.
"""

from __future__ import annotations

import asyncio
import json
import logging
import math
from typing import Any

from ..core.errors import ResponseParseError
from ..core.ports import GenerativeModel
from ..llm.rate_gate import RateGate, get_default_gate
from ..llm.sanitize import sanitize
from ..tasks.task_models import TaskRecord, new_task_id

logger = logging.getLogger(__name__)

TRANSCRIPT_CHAR_CAP = 30_000
MAX_SUB_STEPS = 4

BLOCKED_TASK_NAME = "Content Blocked"
BLOCKED_DESCRIPTION = "This content was blocked by AI safety policies."

SHAPE_FALLBACK_STEPS = ("Could not generate steps.", "Please try again.")
CALL_FALLBACK_STEPS = ("Error generating steps.", "Check API Key or Network.")

ANALYZE_PROMPT = """
You are an expert video analyst.
Analyze the following transcript and extract distinct "Tasks" or "Topics" discussed.
For each task, provide a timestamp (find the closest match in the text), a name, and a description.

RETURN ONLY A JSON ARRAY. NO MARKDOWN.
Format: [{{ "task_name": "...", "timestamp_seconds": 12.5, "description": "..." }}]

TRANSCRIPT:
{transcript}
""".strip()

SUB_STEPS_PROMPT = """
TASK: "{task_name}"
CONTEXT: "{context}"

INSTRUCTION: Break this task down into exactly 4 clear, actionable sub-steps for a beginner.
RETURN ONLY A JSON ARRAY OF STRINGS. NO MARKDOWN.
Example: ["Step 1...", "Step 2...", "Step 3...", "Step 4..."]
""".strip()


def _parse_json(text: str) -> Any:
    try:
        return json.loads(sanitize(text))
    # Deeply nested input exhausts the decoder's recursion limit.
    except (ValueError, RecursionError) as e:
        raise ResponseParseError("Failed to parse AI response.", raw=text) from e


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v)


def validate_task_array(parsed: Any, *, raw: str = "") -> list[dict[str, Any]]:
    """
    Check the decoded reply is a list of task objects and keep only the known fields.

    Rejects the whole reply on the first mismatch; values are never coerced.
    Any id / screenshot_base64 supplied by the model is dropped here.
    """
    if not isinstance(parsed, list):
        raise ResponseParseError("AI response is not a JSON array.", raw=raw)

    out: list[dict[str, Any]] = []
    for i, item in enumerate(parsed):
        if not isinstance(item, dict):
            raise ResponseParseError(f"Task #{i} is not an object.", raw=raw)

        name = item.get("task_name")
        if not isinstance(name, str):
            raise ResponseParseError(f"Task #{i} has no string task_name.", raw=raw)

        ts = item.get("timestamp_seconds")
        if not _is_number(ts) or ts < 0:
            raise ResponseParseError(f"Task #{i} has an invalid timestamp_seconds: {ts!r}", raw=raw)

        description = item.get("description", "")
        if not isinstance(description, str):
            raise ResponseParseError(f"Task #{i} has a non-string description.", raw=raw)

        out.append({"task_name": name, "timestamp_seconds": float(ts), "description": description})
    return out


def blocked_task() -> TaskRecord:
    return TaskRecord(
        id=new_task_id(),
        task_name=BLOCKED_TASK_NAME,
        timestamp_seconds=0.0,
        description=BLOCKED_DESCRIPTION,
        screenshot_base64="",
    )


class TaskExtractor:
    """
    Extraction client.

    The model identifier is a required argument of each operation; the
    configured default lives in Settings.llm_model.
    """

    def __init__(
        self,
        model: GenerativeModel,
        *,
        gate: RateGate | None = None,
        transcript_char_cap: int = TRANSCRIPT_CHAR_CAP,
    ) -> None:
        self._model = model
        self._gate = gate if gate is not None else get_default_gate()
        self._cap = max(1, int(transcript_char_cap))

    @property
    def model(self) -> GenerativeModel:
        return self._model

    @property
    def gate(self) -> RateGate:
        return self._gate

    async def analyze_transcript(
        self,
        credential: str,
        transcript_text: str,
        model: str,
    ) -> list[TaskRecord]:
        """
        Segment a transcript into tasks.

        Raises ResponseParseError for an unusable reply; model call errors
        propagate unmodified. A policy block is a successful result holding a
        single "Content Blocked" task.
        """
        await self._gate.acquire()

        text = transcript_text or ""
        if len(text) > self._cap:
            logger.info("Transcript truncated from %d to %d chars", len(text), self._cap)
            text = text[: self._cap]

        reply = await self._model.generate(
            credential=credential,
            model=model,
            prompt=ANALYZE_PROMPT.format(transcript=text),
        )

        if reply.blocked:
            logger.warning("Model safety block: %s", reply.block_reason)
            return [blocked_task()]

        try:
            fields = validate_task_array(_parse_json(reply.text), raw=reply.text)
        except ResponseParseError:
            logger.error("Unusable analysis reply: %r", reply.text[:500])
            raise

        tasks = [TaskRecord(id=new_task_id(), screenshot_base64="", **f) for f in fields]
        logger.info("Extracted %d tasks", len(tasks))
        return tasks

    async def generate_sub_steps(
        self,
        credential: str,
        task_name: str,
        context_description: str,
        model: str,
    ) -> list[str]:
        """Up to 4 actionable steps for one task. Never raises; failures map to a fixed pair."""
        try:
            await self._gate.acquire()
            reply = await self._model.generate(
                credential=credential,
                model=model,
                prompt=SUB_STEPS_PROMPT.format(task_name=task_name, context=context_description),
            )
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Sub-step generation failed for task %r", task_name)
            return list(CALL_FALLBACK_STEPS)

        if reply.blocked:
            logger.warning("Model safety block on sub-steps: %s", reply.block_reason)
            return list(SHAPE_FALLBACK_STEPS)

        try:
            steps = _parse_json(reply.text)
        except ResponseParseError:
            logger.warning("Sub-step reply is not JSON: %r", reply.text[:200])
            return list(CALL_FALLBACK_STEPS)

        if isinstance(steps, list) and steps:
            return [str(s) for s in steps[:MAX_SUB_STEPS]]

        logger.warning("Sub-step reply has the wrong shape: %r", reply.text[:200])
        return list(SHAPE_FALLBACK_STEPS)
