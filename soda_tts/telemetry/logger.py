"""Structured event logging utilities.

Responsibilities:
- Emit concise, deterministic one-line events for synthesis and playback activity.
- Keep credential values and raw payloads out of log context.
"""

from __future__ import annotations

import sys
from typing import TextIO

from loguru import logger as _loguru_logger


_REDACTED_CONTEXT_KEYS = frozenset({"api_key", "credential", "authorization"})


def _sanitize_context_value(value: object) -> str:
    """Convert context values into stable, shell-safe tokens."""

    raw = str(value).strip()
    if not raw:
        return "none"
    return "".join(
        character if character.isalnum() or character in {"-", "_", ".", ":", "/"} else "_"
        for character in raw
    )


def _format_context(context: dict[str, object]) -> str:
    """Serialize context key/value pairs in deterministic key order."""

    if not context:
        return ""
    tokens = [
        f"{key}=redacted"
        if key.lower() in _REDACTED_CONTEXT_KEYS
        else f"{key}={_sanitize_context_value(context[key])}"
        for key in sorted(context.keys())
    ]
    return " " + " ".join(tokens)


def configure_logging(sink: TextIO | None = None, level: str = "INFO") -> None:
    """Route loguru output to one sink with plain deterministic formatting.

    Only hosts (the CLI) call this; library code never reconfigures loguru.
    """

    _loguru_logger.remove()
    _loguru_logger.add(sink or sys.stderr, format="{message}", level=level, colorize=False)


class EventLogger:
    """Emit deterministic component events for TTS dispatch and provider calls."""

    def __init__(self, component: str) -> None:
        """Initialize an event logger bound to one component name."""

        self.component = component

    def _emit(self, level: str, event: str, **context: object) -> None:
        """Emit one structured runtime log line."""

        line = (
            f"[soda] level={level} component={self.component} "
            f"event={event}{_format_context(context)}"
        )
        _loguru_logger.log(level, line)

    def debug(self, event: str, **context: object) -> None:
        """Emit a debug-level event."""

        self._emit("DEBUG", event, **context)

    def info(self, event: str, **context: object) -> None:
        """Emit an info-level event."""

        self._emit("INFO", event, **context)

    def warning(self, event: str, **context: object) -> None:
        """Emit a warning-level event."""

        self._emit("WARNING", event, **context)

    def error(self, event: str, **context: object) -> None:
        """Emit an error-level event without sensitive payload details."""

        self._emit("ERROR", event, **context)

    def failure(self, event: str, exc: BaseException, **context: object) -> None:
        """Emit an error event describing an exception by type only."""

        self._emit("ERROR", event, error_type=type(exc).__name__, **context)
