"""Shared fakes for Soda TTS tests: HTTP responses, players, stores, adapters."""

from __future__ import annotations

import json
import threading
from typing import Any, Callable

import requests

from soda_tts.audio.artifact import AudioArtifact
from soda_tts.errors import PlaybackError
from soda_tts.models.datatypes import ModelOption, ProviderSettings, Voice
from soda_tts.providers.base import ProviderAdapter


class MockRequestsResponse:
    """Minimal requests response mock for HTTP transport patching."""

    def __init__(
        self,
        *,
        payload: bytes | dict[str, Any] = b"",
        status_code: int = 200,
        headers: dict[str, str] | None = None,
    ) -> None:
        """Initialize response with raw bytes (or a JSON object) and HTTP status."""

        if isinstance(payload, dict):
            payload = json.dumps(payload).encode("utf-8")
        self.content = payload
        self.status_code = status_code
        self.headers = headers or {}

    def raise_for_status(self) -> None:
        """Raise HTTPError when the response status represents a failure."""

        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code} error", response=self)


class RecordingPost:
    """Stand-in for `requests.post` replaying queued responses or exceptions."""

    def __init__(self, *outcomes: MockRequestsResponse | Exception) -> None:
        """Queue outcomes returned (or raised) in call order."""

        self._outcomes = list(outcomes)
        self.calls: list[dict[str, Any]] = []

    def __call__(self, url: str, **kwargs: Any) -> MockRequestsResponse:
        """Record one call and return or raise the next queued outcome."""

        self.calls.append({"url": url, **kwargs})
        if not self._outcomes:
            raise AssertionError(f"Unexpected POST to {url}")
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    @property
    def urls(self) -> list[str]:
        """Return requested URLs in call order."""

        return [call["url"] for call in self.calls]


class FakePlaybackHandle:
    """Playback handle whose completion is driven by the test."""

    def __init__(
        self,
        artifact: AudioArtifact,
        on_finished: Callable[[], None],
        on_error: Callable[[Exception], None],
    ) -> None:
        """Capture the artifact and player callbacks."""

        self.artifact = artifact
        self._on_finished = on_finished
        self._on_error = on_error
        self.stopped = False
        self.ended = False

    @property
    def is_playing(self) -> bool:
        """Return whether playback is neither stopped nor ended."""

        return not (self.stopped or self.ended)

    def stop(self) -> None:
        """Stop playback without firing callbacks."""

        self.stopped = True

    def finish(self) -> None:
        """Simulate playback reaching its natural end."""

        self.ended = True
        self._on_finished()

    def fail(self, exc: Exception) -> None:
        """Simulate a playback error."""

        self.ended = True
        self._on_error(exc)


class FakePlayer:
    """Audio player recording started playbacks.

    With `auto_finish`, playback ends shortly after starting on a worker thread.
    """

    def __init__(self, *, fail_with: PlaybackError | None = None, auto_finish: bool = False) -> None:
        """Configure start failure and automatic completion behavior."""

        self.fail_with = fail_with
        self.auto_finish = auto_finish
        self.handles: list[FakePlaybackHandle] = []

    def play(
        self,
        artifact: AudioArtifact,
        on_finished: Callable[[], None],
        on_error: Callable[[Exception], None],
    ) -> FakePlaybackHandle:
        """Start fake playback or raise the configured failure."""

        if self.fail_with is not None:
            raise self.fail_with
        handle = FakePlaybackHandle(artifact, on_finished, on_error)
        self.handles.append(handle)
        if self.auto_finish:
            threading.Timer(0.01, handle.finish).start()
        return handle


class InMemoryCredentialStore:
    """Simple in-memory per-provider credential store."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        """Initialize the store with optional pre-seeded API keys."""

        self.keys = dict(initial or {})

    def is_available(self) -> bool:
        """Return availability flag expected by the CLI status command."""

        return True

    def get_api_key(self, provider_id: str) -> str | None:
        """Return the stored key for `provider_id`."""

        return self.keys.get(provider_id)

    def set_api_key(self, provider_id: str, api_key: str) -> None:
        """Persist a normalized API key value."""

        self.keys[provider_id] = api_key.strip()

    def clear_api_key(self, provider_id: str) -> bool:
        """Clear an API key and return whether one existed."""

        return self.keys.pop(provider_id, None) is not None


class FakeAdapter(ProviderAdapter):
    """Adapter producing fixed MP3 bytes without network access."""

    provider_id = "fake"
    display_name = "Fake TTS"
    voices = (Voice("v1", "Voice One"), Voice("v2", "Voice Two"))
    models = (ModelOption("m1", "Model One"),)
    default_voice = "v1"
    default_model = "m1"
    max_chars = 50
    default_settings = {"speed": 1.0}

    def __init__(self) -> None:
        """Initialize call recording and optional behavior hooks."""

        super().__init__()
        self.calls: list[tuple[str, ProviderSettings]] = []
        self.error: Exception | None = None
        self.remote_url: str | None = None
        self.during_synthesis: Callable[[], None] | None = None

    def _synthesize(self, text: str, settings: ProviderSettings) -> AudioArtifact:
        """Record the call, run the hook once, and return fixed audio."""

        self.calls.append((text, settings))
        hook, self.during_synthesis = self.during_synthesis, None
        if hook is not None:
            hook()
        if self.error is not None:
            raise self.error
        if self.remote_url is not None:
            return AudioArtifact.from_remote_url(self.remote_url, "audio/wav", self.provider_id)
        return AudioArtifact.from_bytes(b"ID3fake-audio", "audio/mpeg", self.provider_id)
