# src/cubit_connect/llm/sanitize.py

from __future__ import annotations

import re

# "```json", "```JSON\n", bare "```". A tag only counts when whitespace follows it
# ("```true```" keeps its payload); a glued "```json" is always a tag.
_FENCE = re.compile(r"```(?:[A-Za-z0-9_+-]+(?=\s)|json)?")


def sanitize(raw: str) -> str:
    """Strip markdown code-fence markers from a model reply and trim it."""
    text = raw or ""
    # Removing one marker can join stray backticks into a new one ("``" + "```x" + "`").
    while True:
        cleaned = _FENCE.sub("", text)
        if cleaned == text:
            return cleaned.strip()
        text = cleaned
