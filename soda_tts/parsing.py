"""Shared parsing helpers for settings and CLI value normalization."""

from __future__ import annotations


_TRUE_BOOLEAN_TOKENS = frozenset({"1", "true", "yes", "on"})
_FALSE_BOOLEAN_TOKENS = frozenset({"0", "false", "no", "off"})


def normalize_optional_string(value: object) -> str | None:
    """Normalize an optional value to a stripped non-empty string.

    Args:
        value: Arbitrary input value.

    Returns:
        Stripped string value, or `None` when the value is empty after trimming.
    """

    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return text


def parse_permissive_boolean(value: object) -> bool | None:
    """Parse a permissive boolean token and return `None` for invalid values."""

    if isinstance(value, bool):
        return value

    normalized = normalize_optional_string(value)
    if normalized is None:
        return None

    token = normalized.lower()
    if token in _TRUE_BOOLEAN_TOKENS:
        return True
    if token in _FALSE_BOOLEAN_TOKENS:
        return False
    return None


def parse_optional_float(value: object, field_name: str) -> float | None:
    """Parse an optional numeric setting, treating blank values as unset.

    Raises:
        ValueError: If the value is present but not a finite number.
    """

    if isinstance(value, bool):
        raise ValueError(f"`{field_name}` must be a number, not a boolean.")
    if isinstance(value, int | float):
        number = float(value)
    else:
        normalized = normalize_optional_string(value)
        if normalized is None:
            return None
        try:
            number = float(normalized)
        except ValueError as exc:
            raise ValueError(f"`{field_name}` must be a number, got `{normalized}`.") from exc
    if number != number or number in (float("inf"), float("-inf")):
        raise ValueError(f"`{field_name}` must be a finite number.")
    return number
