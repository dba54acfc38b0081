# src/cubit_connect/llm/offline.py

from __future__ import annotations

import json
import re

from ..core.ports import ModelReply

_STAMPED_LINE = re.compile(r"^\[(?:(\d+):)?(\d{2}):(\d{2})\]\s+(.+)$")
_MAX_TASKS = 5


class OfflineModel:
    """
    Offline deterministic model used for demos when no external API is configured.

    Behavior:
    - Sub-step prompts -> four generic steps
    - Transcript prompts -> one task per evenly spaced "[MM:SS] text" line
    """

    async def generate(self, *, credential: str, model: str, prompt: str) -> ModelReply:
        if "sub-steps" in prompt:
            steps = [
                "Watch this part of the video once without pausing.",
                "Gather the tools and materials mentioned.",
                "Repeat the action shown, pausing after each move.",
                "Compare your result with the video and adjust.",
            ]
            return ModelReply(text=json.dumps(steps))

        stamped: list[tuple[float, str]] = []
        for line in prompt.splitlines():
            m = _STAMPED_LINE.match(line.strip())
            if not m:
                continue
            h, mm, ss, text = m.groups()
            seconds = int(h or 0) * 3600 + int(mm) * 60 + int(ss)
            stamped.append((float(seconds), text.strip()))

        if not stamped:
            return ModelReply(text="[]")

        step = max(1, len(stamped) // _MAX_TASKS)
        tasks = []
        for ts, text in stamped[::step][:_MAX_TASKS]:
            words = text.split()
            tasks.append(
                {
                    "task_name": " ".join(words[:6]),
                    "timestamp_seconds": ts,
                    "description": f"Offline demo mode: {text}",
                }
            )
        return ModelReply(text="```json\n" + json.dumps(tasks) + "\n```")
