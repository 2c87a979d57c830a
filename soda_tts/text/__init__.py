"""Text normalization components.

This package provides pure markup cleanup, dialogue extraction, and
length-based chunking used before TTS provider calls.
"""

from .chunking import split_text_by_length
from .dialogue import (
    READ_MODE_DIALOGUE,
    READ_MODE_FULL,
    READ_MODES,
    extract_dialogues,
    select_text_for_reading,
)
from .markup import (
    CollapseWhitespace,
    StripEmoji,
    StripMarkdown,
    StripStageDirections,
    TtsTextPreprocessor,
    preprocess_for_tts,
    strip_emoji,
    strip_markdown,
)

__all__ = [
    "CollapseWhitespace",
    "READ_MODES",
    "READ_MODE_DIALOGUE",
    "READ_MODE_FULL",
    "StripEmoji",
    "StripMarkdown",
    "StripStageDirections",
    "TtsTextPreprocessor",
    "extract_dialogues",
    "preprocess_for_tts",
    "select_text_for_reading",
    "split_text_by_length",
    "strip_emoji",
    "strip_markdown",
]
