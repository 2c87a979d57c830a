"""Dialogue extraction for dialogue-only read mode.

Responsibilities:
- Collect quoted speech from roleplay-style chat messages.
- Select the text to read for a message according to the configured read mode.
"""

from __future__ import annotations

import re


READ_MODE_DIALOGUE = "dialogue"
READ_MODE_FULL = "full"
READ_MODES = frozenset({READ_MODE_DIALOGUE, READ_MODE_FULL})

# Scanned one pattern at a time, so results follow declaration order, not
# document order.
_DIALOGUE_PATTERNS = (
    re.compile(r'"([^"]+)"'),
    re.compile("“([^”]+)”"),
    re.compile("「([^」]+)」"),
    re.compile("『([^』]+)』"),
)


def extract_dialogues(text: str | None) -> list[str]:
    """Return unique, trimmed quoted passages found in `text`.

    Supported quote styles are ASCII double quotes, curly double quotes, and
    the corner-bracket styles `「…」` and `『…』`.
    """

    source = text or ""
    dialogues: list[str] = []
    for pattern in _DIALOGUE_PATTERNS:
        for match in pattern.finditer(source):
            dialogue = match.group(1).strip()
            if dialogue:
                dialogues.append(dialogue)
    return list(dict.fromkeys(dialogues))


def select_text_for_reading(text: str | None, read_mode: str) -> str:
    """Return the portion of a message to speak for a read mode.

    Raises:
        ValueError: If `read_mode` is not `dialogue` or `full`.
    """

    if read_mode == READ_MODE_FULL:
        return text or ""
    if read_mode == READ_MODE_DIALOGUE:
        return " ".join(extract_dialogues(text))
    supported = ", ".join(sorted(READ_MODES))
    raise ValueError(f"Unsupported read mode `{read_mode}`; supported: {supported}.")
