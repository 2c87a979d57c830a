"""Unit tests for markdown, emoji, and stage-direction normalization."""

from soda_tts.text.markup import (
    CollapseWhitespace,
    StripEmoji,
    TtsTextPreprocessor,
    preprocess_for_tts,
    strip_emoji,
    strip_markdown,
)


def test_preprocess_drops_single_asterisk_span_after_unwrapping_bold() -> None:
    """Bold is unwrapped while the remaining `*action*` span is removed."""

    assert preprocess_for_tts("**bold** *action* plain") == "bold plain"


def test_preprocess_handles_code_links_headings_and_emoji() -> None:
    """Code blocks vanish, links keep their label, and emoji are removed."""

    text = "# Title\n```python\nprint('x')\n```\nSee [docs](https://example.com) 😀 now *waves*"

    assert preprocess_for_tts(text) == "Title See docs now"


def test_preprocess_empty_and_markup_only_inputs_become_empty() -> None:
    """Inputs with nothing speakable normalize to an empty string."""

    assert preprocess_for_tts(None) == ""
    assert preprocess_for_tts("   ") == ""
    assert preprocess_for_tts("*sighs*  🙂") == ""


def test_strip_markdown_unwraps_italics_and_keeps_snake_case() -> None:
    """Standalone markdown stripping unwraps emphasis without touching identifiers."""

    assert strip_markdown("*soft* and _quiet_ and __loud__") == "soft and quiet and loud"
    assert strip_markdown("use snake_case_name here") == "use snake_case_name here"
    assert strip_markdown("- first\n* second") == "first\nsecond"


def test_strip_emoji_is_idempotent() -> None:
    """Removing emoji twice yields the same result as once."""

    samples = ["hi 👋 there 🎉", "", "plain", "🀄🃏🫠"]
    for sample in samples:
        once = strip_emoji(sample)
        assert strip_emoji(once) == once
    assert strip_emoji("hi 👋 there") == "hi  there"


def test_custom_rule_sequence_is_applied_in_order() -> None:
    """Preprocessor accepts an explicit rule list."""

    preprocessor = TtsTextPreprocessor([StripEmoji(), CollapseWhitespace()])

    assert preprocessor.process("  *kept*  🎉 text ") == "*kept* text"
