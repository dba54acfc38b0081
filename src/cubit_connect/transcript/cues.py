# src/cubit_connect/transcript/cues.py

"""
Subtitle cue parser (WebVTT, tolerant of SRT-style timestamps).

Pure functions, no I/O. Malformed input never raises: bad lines are skipped,
so the worst case is fewer cues (or none).
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

# [HH:]MM:SS[.mmm] --> [HH:]MM:SS[.mmm]  (cue settings after the end time are ignored)
_TIME = r"(?:\d+:)?\d{1,2}:\d{1,2}(?:[.,]\d+)?"
_TIME_RANGE = re.compile(rf"^({_TIME})\s*-->\s*({_TIME})(?:\s|$)")

_SIGNATURE = "WEBVTT"


@dataclass(frozen=True, slots=True)
class Cue:
    start: float
    end: float
    text: str


def _to_seconds(stamp: str) -> float:
    parts = stamp.replace(",", ".").split(":")
    if len(parts) == 3:
        h, m, s = parts
        return int(h) * 3600 + int(m) * 60 + float(s)
    m, s = parts
    return int(m) * 60 + float(s)


def _is_note_start(line: str) -> bool:
    return line == "NOTE" or line.startswith(("NOTE ", "NOTE\t"))


def parse_cues(raw_text: str) -> list[Cue]:
    """
    Parse subtitle text into ordered cues.

    - header (WEBVTT ...) and empty lines are skipped
    - a time range line closes the cue being accumulated and opens a new one
    - text lines are trimmed and joined with a single space
    - cues without any text are dropped
    - cue identifiers (first line of a block, right before the time range) and
      NOTE blocks are not cue text
    - a cue that would break ordering (end < start, or start earlier than the
      previous cue) is dropped
    """
    lines = (raw_text or "").splitlines()
    cues: list[Cue] = []

    start: float | None = None
    end: float | None = None
    buf: list[str] = []

    def flush() -> None:
        if start is None or end is None or not buf:
            return
        if end < start:
            return
        if cues and start < cues[-1].start:
            return
        cues.append(Cue(start=start, end=end, text=" ".join(buf)))

    prev_blank = True
    in_note = False

    for i, raw in enumerate(lines):
        line = raw.strip()
        if not line:
            prev_blank = True
            in_note = False
            continue

        block_start = prev_blank
        prev_blank = False

        if in_note:
            continue
        if block_start and _is_note_start(line):
            in_note = True
            continue
        if line.startswith(_SIGNATURE):
            continue

        m = _TIME_RANGE.match(line)
        if m:
            flush()
            start = _to_seconds(m.group(1))
            end = _to_seconds(m.group(2))
            buf = []
            continue

        # Cue identifier: "intro" / "12" on its own line right above the timing line.
        if block_start and i + 1 < len(lines) and _TIME_RANGE.match(lines[i + 1].strip()):
            continue

        if start is not None:
            buf.append(line)

    flush()
    return cues


def format_timestamp(seconds: float) -> str:
    total = int(seconds)
    hh, rem = divmod(total, 3600)
    mm, ss = divmod(rem, 60)
    if hh:
        return f"{hh}:{mm:02d}:{ss:02d}"
    return f"{mm:02d}:{ss:02d}"


def render_cues(cues: Sequence[Cue]) -> str:
    """Render cues as "[MM:SS] text" lines (the transcript text handed to the model)."""
    return "\n".join(f"[{format_timestamp(c.start)}] {c.text}" for c in cues)
