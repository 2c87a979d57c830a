"""Length-bounded text splitting for provider input limits."""

from __future__ import annotations


def split_text_by_length(text: str | None, max_length: int = 500) -> list[str]:
    """Split text into contiguous chunks of at most `max_length` characters.

    Boundaries are positional, so words may be split. Each chunk is trimmed and
    empty chunks are dropped. Text that already fits is returned as-is as the
    only element.

    Raises:
        ValueError: If `max_length` is not positive.
    """

    if max_length <= 0:
        raise ValueError("`max_length` must be a positive integer.")

    source = text or ""
    if len(source) <= max_length:
        return [source]

    chunks: list[str] = []
    for start in range(0, len(source), max_length):
        chunk = source[start : start + max_length].strip()
        if chunk:
            chunks.append(chunk)
    return chunks
