"""Markup cleanup rules applied before speech synthesis.

Responsibilities:
- Provide composable, pure cleanup rules for chat-message markup.
- Define the canonical TTS preprocessing order.

Notes:
- Bold must be unwrapped before single-asterisk stage directions are removed;
  otherwise `*action*` spans would be unwrapped as italics and spoken.
- Markdown stripping is not idempotent on nested-asterisk input such as
  `***a* b**`.
"""

from __future__ import annotations

import re
from typing import Protocol


_FENCED_CODE_RE = re.compile(r"```[\s\S]*?```")
_INLINE_CODE_RE = re.compile(r"`([^`]+)`")
_BOLD_ASTERISK_RE = re.compile(r"\*\*([^*]+)\*\*")
_ITALIC_ASTERISK_RE = re.compile(r"\*([^*]+)\*")
_BOLD_UNDERSCORE_RE = re.compile(r"__([^_]+)__")
_ITALIC_UNDERSCORE_RE = re.compile(r"(?<!\w)_([^_]+)_(?!\w)")
_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
_HEADING_MARKER_RE = re.compile(r"(?m)^\s{0,3}#{1,6}\s+")
_LIST_MARKER_RE = re.compile(r"(?m)^\s*[-*+]\s+")
_EMOJI_RE = re.compile("[\U0001F000-\U0001FAFF]")
_STAGE_DIRECTION_RE = re.compile(r"\*[^*]+\*")
_WHITESPACE_RE = re.compile(r"\s+")


class TextRule(Protocol):
    """Protocol for text cleanup rules."""

    def apply(self, text: str) -> str:
        """Apply a single cleanup transformation."""


class StripMarkdown:
    """Remove markdown syntax while keeping readable content.

    Attributes:
        unwrap_asterisk_italics: Whether `*text*` spans are unwrapped. The TTS
            preprocessor disables this so those spans can be dropped as stage
            directions instead.
    """

    def __init__(self, unwrap_asterisk_italics: bool = True) -> None:
        """Initialize markdown stripping behavior."""

        self.unwrap_asterisk_italics = unwrap_asterisk_italics

    def apply(self, text: str) -> str:
        """Strip code, emphasis, links, headings, and bullets."""

        text = _FENCED_CODE_RE.sub(" ", text)
        text = _INLINE_CODE_RE.sub(r"\1", text)
        text = _BOLD_ASTERISK_RE.sub(r"\1", text)
        if self.unwrap_asterisk_italics:
            text = _ITALIC_ASTERISK_RE.sub(r"\1", text)
        text = _BOLD_UNDERSCORE_RE.sub(r"\1", text)
        text = _ITALIC_UNDERSCORE_RE.sub(r"\1", text)
        text = _LINK_RE.sub(r"\1", text)
        text = _HEADING_MARKER_RE.sub("", text)
        return _LIST_MARKER_RE.sub("", text)


class StripEmoji:
    """Remove pictographic emoji code points (U+1F000 to U+1FAFF)."""

    def apply(self, text: str) -> str:
        """Apply emoji removal."""

        return _EMOJI_RE.sub("", text)


class StripStageDirections:
    """Drop `*...*` action spans that narrate rather than speak."""

    def apply(self, text: str) -> str:
        """Replace each single-asterisk span with a space."""

        return _STAGE_DIRECTION_RE.sub(" ", text)


class CollapseWhitespace:
    """Collapse whitespace runs to single spaces and trim the result."""

    def apply(self, text: str) -> str:
        """Apply whitespace collapsing."""

        return _WHITESPACE_RE.sub(" ", text).strip()


class TtsTextPreprocessor:
    """Apply an ordered sequence of cleanup rules to message text."""

    def __init__(self, rules: list[TextRule] | None = None) -> None:
        """Initialize with custom rules or the canonical TTS rule sequence."""

        self.rules = rules or [
            StripMarkdown(unwrap_asterisk_italics=False),
            StripEmoji(),
            StripStageDirections(),
            CollapseWhitespace(),
        ]

    def process(self, text: str | None) -> str:
        """Apply all configured rules in order."""

        current = text or ""
        for rule in self.rules:
            current = rule.apply(current)
        return current


def strip_markdown(text: str | None) -> str:
    """Remove markdown markup, unwrapping emphasis, code, and links."""

    return StripMarkdown().apply(text or "")


def strip_emoji(text: str | None) -> str:
    """Remove emoji code points. Idempotent."""

    return StripEmoji().apply(text or "")


def preprocess_for_tts(text: str | None) -> str:
    """Normalize chat text for synthesis.

    Example:
        `preprocess_for_tts("**bold** *action* plain")` returns `"bold plain"`.
    """

    return TtsTextPreprocessor().process(text)
