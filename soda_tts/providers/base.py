"""Provider adapter contract and shared adapter behavior.

Responsibilities:
- Define the uniform `synthesize(text, settings) -> AudioArtifact` contract.
- Enforce credential and input preconditions before any network call.
- Run the direct call and optional relay fallback in one place, driven by
  per-adapter capability flags.
- Describe each adapter as an immutable `ProviderDescriptor`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import json
from typing import Any, ClassVar, Mapping

import requests

from ..audio.artifact import AudioArtifact
from ..errors import (
    HttpError,
    MalformedResponseError,
    MissingCredentialError,
    SodaTTSError,
    TransportError,
    UnsupportedInputError,
)
from ..models.datatypes import ModelOption, ProviderSettings, Voice
from ..telemetry.logger import EventLogger
from .transport import HttpTransport


@dataclass(frozen=True, slots=True)
class ProviderDescriptor:
    """Immutable registry entry binding provider metadata to its adapter.

    Attributes:
        id: Provider identifier used in settings.
        name: Human-readable provider name.
        voices: Ordered voice catalogue.
        models: Optional model catalogue (empty when the vendor has one model family).
        default_voice: Voice used when settings leave it blank.
        default_model: Model used when settings leave it blank.
        max_chars: Maximum accepted input length in characters.
        default_settings: Tuning defaults seeded into new settings blocks.
        adapter: Adapter implementing synthesis for this provider.
    """

    id: str
    name: str
    voices: tuple[Voice, ...]
    models: tuple[ModelOption, ...]
    default_voice: str
    default_model: str
    max_chars: int
    default_settings: Mapping[str, Any] = field(default_factory=dict)
    adapter: ProviderAdapter | None = field(default=None, compare=False, repr=False)

    def synthesize(self, text: str, settings: ProviderSettings) -> AudioArtifact:
        """Synthesize `text` with the bound adapter."""

        if self.adapter is None:
            raise SodaTTSError(f"Provider `{self.id}` has no adapter.", provider=self.name)
        return self.adapter.synthesize(text, settings)

    def voice_ids(self) -> list[str]:
        """Return voice identifiers in catalogue order."""

        return [voice.id for voice in self.voices]

    def find_voice(self, voice_id: str) -> Voice | None:
        """Return the catalogue voice with `voice_id`, if listed."""

        return next((voice for voice in self.voices if voice.id == voice_id), None)

    def as_dict(self) -> dict[str, Any]:
        """Return the registry surface consumed by settings UIs."""

        return {
            "id": self.id,
            "name": self.name,
            "voices": [
                {
                    "id": voice.id,
                    "name": voice.name,
                    "language": voice.language,
                    "category": voice.category,
                }
                for voice in self.voices
            ],
            "models": [{"id": model.id, "name": model.name} for model in self.models],
            "default_voice": self.default_voice,
            "default_model": self.default_model,
            "max_chars": self.max_chars,
        }


class ProviderAdapter(ABC):
    """Base class for vendor adapters.

    Subclasses declare catalogue metadata as class attributes and implement
    `_synthesize`. Capability flags control transport strategy:

    - `direct_call`: call the vendor endpoint directly first.
    - `relay_fallback`: after a direct `HttpError`/`TransportError`, retry via
      each relay URL shape before re-raising the original error.
    """

    provider_id: ClassVar[str]
    display_name: ClassVar[str]
    voices: ClassVar[tuple[Voice, ...]] = ()
    models: ClassVar[tuple[ModelOption, ...]] = ()
    default_voice: ClassVar[str]
    default_model: ClassVar[str]
    max_chars: ClassVar[int]
    default_settings: ClassVar[Mapping[str, Any]] = {}
    direct_call: ClassVar[bool] = True
    relay_fallback: ClassVar[bool] = False

    def __init__(
        self,
        transport: HttpTransport | None = None,
        *,
        direct_call: bool | None = None,
        relay_fallback: bool | None = None,
    ) -> None:
        """Initialize with a transport and optional capability overrides."""

        self.transport = transport if transport is not None else HttpTransport()
        if direct_call is not None:
            self.direct_call = direct_call
        if relay_fallback is not None:
            self.relay_fallback = relay_fallback
        self._logger = EventLogger(f"provider.{self.provider_id}")

    def describe(self) -> ProviderDescriptor:
        """Return this adapter's immutable registry descriptor."""

        return ProviderDescriptor(
            id=self.provider_id,
            name=self.display_name,
            voices=tuple(self.voices),
            models=tuple(self.models),
            default_voice=self.default_voice,
            default_model=self.default_model,
            max_chars=self.max_chars,
            default_settings=dict(self.default_settings),
            adapter=self,
        )

    def synthesize(self, text: str, settings: ProviderSettings) -> AudioArtifact:
        """Synthesize `text` and return a playable artifact.

        Raises:
            MissingCredentialError: If no API key is configured (no network call).
            UnsupportedInputError: If `text` is blank (no network call).
            HttpError, VendorError, MalformedResponseError, TransportError:
                On vendor or network failures.
        """

        if not settings.credential:
            raise MissingCredentialError(
                f"{self.display_name} API key is not configured.",
                provider=self.display_name,
                hint=f"Run `soda-tts credentials {self.provider_id} --set-api-key`.",
            )
        if not text or not text.strip():
            raise UnsupportedInputError(
                "Nothing to synthesize: text is empty.",
                provider=self.display_name,
            )
        self._logger.info(
            "synthesize_start",
            chars=len(text),
            model=self.resolve_model(settings),
            voice=self.resolve_voice(settings),
        )
        artifact = self._synthesize(text, settings)
        self._logger.info("synthesize_complete", mime=artifact.mime_type, remote=artifact.remote)
        return artifact

    @abstractmethod
    def _synthesize(self, text: str, settings: ProviderSettings) -> AudioArtifact:
        """Vendor-specific request/response translation."""

    def resolve_model(self, settings: ProviderSettings) -> str:
        """Return the configured model or the provider default."""

        return settings.model or self.default_model

    def resolve_voice(self, settings: ProviderSettings) -> str:
        """Return the configured voice or the provider default."""

        return settings.voice or self.default_voice

    def _post(
        self,
        url: str,
        *,
        headers: Mapping[str, str],
        payload: dict[str, Any],
    ) -> requests.Response:
        """POST with the direct-then-relay strategy from the capability flags."""

        if not self.direct_call:
            if not self.transport.relay_enabled:
                raise TransportError(
                    "direct calls are disabled and no relay is configured.",
                    provider=self.display_name,
                    hint="Set `SODA_TTS_RELAY_URL` to the host relay endpoint.",
                )
            return self._post_via_relay(url, headers=headers, payload=payload, original=None)

        try:
            return self._post_once(url, headers=headers, payload=payload)
        except (HttpError, TransportError) as exc:
            if not (self.relay_fallback and self.transport.relay_enabled):
                raise
            self._logger.warning("direct_failed_trying_relay", error_type=type(exc).__name__)
            return self._post_via_relay(url, headers=headers, payload=payload, original=exc)

    def _post_via_relay(
        self,
        url: str,
        *,
        headers: Mapping[str, str],
        payload: dict[str, Any],
        original: SodaTTSError | None,
    ) -> requests.Response:
        """Try each relay URL shape in order; surface the original error if all fail."""

        relay_headers = self.transport.relay_headers(headers)
        last_error: SodaTTSError | None = None
        for relay_url in self.transport.relay_candidates(url):
            try:
                return self._post_once(relay_url, headers=relay_headers, payload=payload)
            except (HttpError, TransportError) as exc:
                self._logger.warning("relay_attempt_failed", error_type=type(exc).__name__)
                last_error = exc
        error = original or last_error
        if error is None:
            raise TransportError("no relay candidates available.", provider=self.display_name)
        raise error

    def _post_once(
        self,
        url: str,
        *,
        headers: Mapping[str, str],
        payload: dict[str, Any],
    ) -> requests.Response:
        """Issue one POST and let the adapter refine HTTP failures."""

        try:
            return self.transport.post_json(
                url,
                headers=headers,
                payload=payload,
                provider=self.display_name,
            )
        except HttpError as exc:
            refined = self._refine_http_error(exc)
            if refined is exc:
                raise
            raise refined from exc

    def _refine_http_error(self, exc: HttpError) -> SodaTTSError:
        """Hook for vendors whose HTTP error bodies carry semantic failures."""

        return exc

    def _json_body(self, response: requests.Response) -> dict[str, Any]:
        """Decode a JSON object response body.

        Raises:
            MalformedResponseError: If the body is not a JSON object.
        """

        try:
            payload = json.loads(bytes(response.content).decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            self._logger.error(
                "malformed_json",
                excerpt=HttpTransport.excerpt(
                    bytes(response.content).decode("utf-8", errors="replace")
                ),
            )
            raise MalformedResponseError(
                "Response is not valid JSON.", provider=self.display_name
            ) from exc
        if not isinstance(payload, dict):
            raise MalformedResponseError(
                "Response JSON is not an object.", provider=self.display_name
            )
        return payload

    def _binary_body(self, response: requests.Response) -> bytes:
        """Return a non-empty binary response body.

        Raises:
            MalformedResponseError: If the body is empty.
        """

        content = bytes(response.content)
        if not content:
            raise MalformedResponseError(
                "Response audio body is empty.", provider=self.display_name
            )
        return content
