"""HTTP transport shared by provider adapters.

Responsibilities:
- Send vendor JSON requests with `requests` and map failures consistently.
- Cap and redact error-body excerpts so diagnostics stay bounded and secret-free.
- Build same-origin relay URLs for adapters that support relay fallback.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Mapping
from urllib.parse import quote

import requests

from ..errors import HttpError, TransportError
from ..host import HostServices
from ..telemetry.logger import EventLogger


_RELAY_MARKER_HEADERS = {"X-Requested-With": "XMLHttpRequest"}


def _no_extra_headers() -> Mapping[str, str]:
    return {}


class HttpTransport:
    """Minimal requests-based POST transport with relay URL helpers."""

    MAX_EXCERPT_CHARS = 200

    def __init__(
        self,
        *,
        relay_base_url: str | None = None,
        request_headers: Callable[[], Mapping[str, str]] | None = None,
        timeout_seconds: float = 60.0,
    ) -> None:
        """Initialize transport settings and host relay hooks."""

        self.relay_base_url = relay_base_url.rstrip("/") if relay_base_url else None
        self.request_headers = request_headers or _no_extra_headers
        self.timeout_seconds = timeout_seconds
        self._logger = EventLogger("transport")

    @classmethod
    def from_host(cls, host: HostServices, timeout_seconds: float = 60.0) -> HttpTransport:
        """Create a transport wired to the host relay and header hooks."""

        return cls(
            relay_base_url=host.relay_base_url,
            request_headers=host.request_headers,
            timeout_seconds=timeout_seconds,
        )

    @property
    def relay_enabled(self) -> bool:
        """Return whether a relay endpoint is configured."""

        return self.relay_base_url is not None

    def relay_candidates(self, target_url: str) -> list[str]:
        """Return relay URL shapes to try, in order: path-embedded, then query."""

        if self.relay_base_url is None:
            return []
        return [
            f"{self.relay_base_url}/{target_url}",
            f"{self.relay_base_url}?url={quote(target_url, safe='')}",
        ]

    def relay_headers(self, headers: Mapping[str, str]) -> dict[str, str]:
        """Return vendor headers augmented with relay marker and host headers."""

        merged = dict(headers)
        merged.update(_RELAY_MARKER_HEADERS)
        merged.update(self.request_headers() or {})
        return merged

    def post_json(
        self,
        url: str,
        *,
        headers: Mapping[str, str],
        payload: dict[str, Any],
        provider: str,
    ) -> requests.Response:
        """POST a JSON payload and return the successful response.

        Raises:
            HttpError: If the server answers with a non-2xx status.
            TransportError: If the request fails below HTTP.
        """

        try:
            response = requests.post(
                url,
                headers=dict(headers),
                json=payload,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise self._http_error_to_provider_error(exc, provider) from exc
        except requests.RequestException as exc:
            timed_out = isinstance(exc, requests.Timeout)
            self._logger.error(
                "transport_failure",
                provider=provider,
                error_type=type(exc).__name__,
            )
            detail = (
                "request timed out."
                if timed_out
                else f"request transport error: {self.excerpt(str(exc))}"
            )
            raise TransportError(detail, timed_out=timed_out, provider=provider) from exc
        return response

    @classmethod
    def redact_sensitive_tokens(cls, text: str) -> str:
        """Redact API-key-like tokens from provider error content."""

        redacted = re.sub(r"\bsk-[A-Za-z0-9_-]{8,}\b", "[redacted-key]", text)
        redacted = re.sub(
            r"(?i)bearer\s+[A-Za-z0-9._-]{12,}",
            "Bearer [redacted-token]",
            redacted,
        )
        return redacted

    @classmethod
    def excerpt(cls, text: str) -> str:
        """Normalize, redact, and cap an error body for messages and logs."""

        compact = " ".join(cls.redact_sensitive_tokens(text).split())
        if len(compact) <= cls.MAX_EXCERPT_CHARS:
            return compact
        return f"{compact[: cls.MAX_EXCERPT_CHARS - 3]}..."

    @staticmethod
    def _decode_error_body(exc: requests.HTTPError) -> str:
        """Decode an HTTP error body into a best-effort UTF-8 payload string."""

        response = exc.response
        if response is None:
            return ""
        content = getattr(response, "content", b"") or b""
        return bytes(content).decode("utf-8", errors="replace").strip()

    def _http_error_to_provider_error(
        self, exc: requests.HTTPError, provider: str
    ) -> HttpError:
        """Convert HTTP errors into normalized provider exceptions with metadata."""

        status_code = exc.response.status_code if exc.response is not None else 0
        body = self.redact_sensitive_tokens(self._decode_error_body(exc))
        excerpt = self.excerpt(body)
        self._logger.error("http_error", provider=provider, status=status_code, excerpt=excerpt)
        if excerpt:
            detail = f"HTTP {status_code}: {excerpt}"
        else:
            detail = f"HTTP {status_code}."
        return HttpError(
            detail, status_code=status_code, excerpt=excerpt, body=body, provider=provider
        )
