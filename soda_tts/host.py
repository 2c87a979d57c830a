"""Capabilities the TTS core needs from its host application.

Responsibilities:
- Declare the settings persistence, notification, and request-header hooks
  the core depends on, so hosts inject them explicitly at startup.
- Provide simple in-process implementations for embedding and tests.

Key types:
- `SettingsBackend`: JSON-like settings blob with fire-and-forget `save()`.
- `Notifier`: user-visible message surface.
- `HostServices`: relay and request-header hooks used by provider transports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from typing import Any, Callable, Mapping, MutableMapping, Protocol

from .credentials import CredentialStore
from .parsing import normalize_optional_string
from .telemetry.logger import EventLogger


RELAY_URL_ENV_KEY = "SODA_TTS_RELAY_URL"


class SettingsBackend(Protocol):
    """Host-owned settings persistence."""

    def load(self) -> MutableMapping[str, Any]:
        """Return the live, mutable settings blob."""

    def save(self) -> None:
        """Request persistence; may be debounced and may complete later."""


class Notifier(Protocol):
    """Surface for user-visible status and error messages."""

    def notify(self, message: str, level: str = "warning") -> None:
        """Show one message to the user."""


class InMemorySettingsBackend:
    """Settings backend holding the blob in memory and counting save requests."""

    def __init__(self, blob: MutableMapping[str, Any] | None = None) -> None:
        """Initialize with an optional pre-populated settings blob."""

        self.blob: MutableMapping[str, Any] = blob if blob is not None else {}
        self.save_count = 0

    def load(self) -> MutableMapping[str, Any]:
        """Return the in-memory settings blob."""

        return self.blob

    def save(self) -> None:
        """Record one save request."""

        self.save_count += 1


class LoggingNotifier:
    """Notifier that writes user messages to the event log."""

    def __init__(self) -> None:
        self._logger = EventLogger("notify")

    def notify(self, message: str, level: str = "warning") -> None:
        """Log a user-visible message at the requested level."""

        if level == "error":
            self._logger.error("message", text=message)
        elif level == "info":
            self._logger.info("message", text=message)
        else:
            self._logger.warning("message", text=message)


def _no_extra_headers() -> Mapping[str, str]:
    return {}


@dataclass(slots=True)
class HostServices:
    """Host hooks consumed by provider transports and the CLI.

    Attributes:
        relay_base_url: Same-origin relay prefix such as `http://127.0.0.1:8000/proxy`;
            `None` disables relay fallback.
        request_headers: Returns extra headers (for example CSRF tokens) the
            relay requires.
        credential_store: Optional secure store consulted for API keys.
    """

    relay_base_url: str | None = None
    request_headers: Callable[[], Mapping[str, str]] = field(default=_no_extra_headers)
    credential_store: CredentialStore | None = None

    @classmethod
    def from_env(
        cls,
        env: Mapping[str, str] | None = None,
        credential_store: CredentialStore | None = None,
    ) -> HostServices:
        """Create host services from environment variables."""

        env_map: Mapping[str, str] = os.environ if env is None else env
        return cls(
            relay_base_url=normalize_optional_string(env_map.get(RELAY_URL_ENV_KEY)),
            credential_store=credential_store,
        )
