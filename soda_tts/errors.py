"""Domain exceptions for provider, playback, and CLI diagnostics.

Responsibilities:
- Define the typed failure taxonomy shared by provider adapters and the controller.
- Map failures to concise user-facing messages with optional remediation hints.
"""

from __future__ import annotations


_QUOTA_MARKERS = (
    "quota_exceeded",
    "insufficient_quota",
    "quota",
    "arrearage",
    "credits",
)


class SodaTTSError(RuntimeError):
    """Base class for every failure raised by the TTS core."""

    def __init__(
        self,
        detail: str,
        *,
        provider: str | None = None,
        hint: str | None = None,
    ) -> None:
        """Initialize a provider-scoped error with optional remediation hint."""

        super().__init__(detail)
        self.detail = detail
        self.provider = provider
        self.hint = hint


class MissingCredentialError(SodaTTSError):
    """Raised before any network call when no API key is configured."""


class HttpError(SodaTTSError):
    """Raised when a vendor or relay responds with a non-2xx HTTP status."""

    def __init__(
        self,
        detail: str,
        *,
        status_code: int,
        excerpt: str = "",
        body: str = "",
        provider: str | None = None,
        hint: str | None = None,
    ) -> None:
        """Initialize HTTP failure metadata.

        `excerpt` is the capped text shown to users and logs; `body` keeps the
        full decoded payload for vendor-specific classification.
        """

        super().__init__(detail, provider=provider, hint=hint)
        self.status_code = status_code
        self.excerpt = excerpt
        self.body = body


class VendorError(SodaTTSError):
    """Raised when the vendor reports a semantic failure, usually inside a 2xx body."""

    def __init__(
        self,
        detail: str,
        *,
        code: str | None = None,
        status_code: int | None = None,
        provider: str | None = None,
        hint: str | None = None,
    ) -> None:
        """Initialize vendor failure metadata."""

        super().__init__(detail, provider=provider, hint=hint)
        self.code = code
        self.status_code = status_code

    @property
    def is_quota_exhausted(self) -> bool:
        """Return whether the vendor failure looks like exhausted credits or quota."""

        haystack = f"{self.code or ''} {self.detail}".lower()
        return any(marker in haystack for marker in _QUOTA_MARKERS)


class MalformedResponseError(SodaTTSError):
    """Raised when a response parses but the expected audio field is absent."""


class TransportError(SodaTTSError):
    """Raised when a request fails below HTTP (connection refused, timeout, DNS)."""

    def __init__(
        self,
        detail: str,
        *,
        timed_out: bool = False,
        provider: str | None = None,
        hint: str | None = None,
    ) -> None:
        """Initialize transport failure metadata."""

        super().__init__(detail, provider=provider, hint=hint)
        self.timed_out = timed_out


class UnsupportedInputError(SodaTTSError):
    """Raised when text is empty after normalization or exceeds the provider limit."""


class ProviderNotSelectedError(SodaTTSError):
    """Raised when no (or an unknown) provider is configured."""


class PlaybackError(SodaTTSError):
    """Raised when the audio player cannot start playback."""


def describe_error(exc: BaseException) -> str:
    """Return a user-facing message for a failure caught at the dispatch boundary."""

    provider = getattr(exc, "provider", None) or "TTS provider"
    if isinstance(exc, ProviderNotSelectedError):
        if exc.detail.startswith("Unknown"):
            return exc.detail
        return "Select a TTS provider first."
    if isinstance(exc, MissingCredentialError):
        return f"{provider} API key is not configured."
    if isinstance(exc, VendorError):
        if exc.is_quota_exhausted:
            return (
                f"{provider} credits or quota are exhausted. "
                "Check your account dashboard and try again."
            )
        return f"{provider} error: {exc.detail}"
    if isinstance(exc, HttpError):
        if exc.excerpt:
            return f"{provider} request failed (HTTP {exc.status_code}): {exc.excerpt}"
        return f"{provider} request failed (HTTP {exc.status_code})."
    if isinstance(exc, TransportError):
        if exc.timed_out:
            return f"{provider} request timed out."
        return f"Could not reach {provider}: {exc.detail}"
    if isinstance(exc, SodaTTSError):
        return exc.detail
    return f"TTS failed: {exc}"
