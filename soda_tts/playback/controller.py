"""Dispatch controller: the single entry point for read-aloud requests.

Responsibilities:
- Resolve the active provider, normalize text, and invoke synthesis.
- Enforce one active synthesis and one active playback at a time.
- Treat a repeated request from the playing trigger as a stop (toggle).
- Catch every failure at the boundary, notify the user, and return to idle.

Key types:
- `ControllerState`: `IDLE`, `SYNTHESIZING`, or `PLAYING`.
- `PlaybackOutcome`: result reported to callers of `play` and `read_message`.
- `SpeechController`: state machine over `PlaybackSession`.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
import threading
import time
from typing import Hashable

from ..audio.artifact import AudioArtifact
from ..config import SettingsManager
from ..errors import (
    PlaybackError,
    SodaTTSError,
    TransportError,
    UnsupportedInputError,
    describe_error,
)
from ..host import LoggingNotifier, Notifier
from ..models.datatypes import ProviderSettings, SynthesisRequest
from ..providers.base import ProviderDescriptor
from ..providers.registry import ProviderRegistry
from ..telemetry.logger import EventLogger
from ..text.dialogue import READ_MODE_DIALOGUE, select_text_for_reading
from ..text.markup import preprocess_for_tts
from .session import PlaybackSession, SessionHandle


TEST_PHRASE = "Hello! Soda TTS is working."
TEST_TRIGGER = "soda-tts:test"


class ControllerState(str, Enum):
    """Dispatch state machine states."""

    IDLE = "idle"
    SYNTHESIZING = "synthesizing"
    PLAYING = "playing"


class PlaybackOutcome(str, Enum):
    """Result of one dispatch request."""

    PLAYING = "playing"
    STOPPED = "stopped"
    FAILED = "failed"
    ABANDONED = "abandoned"
    SKIPPED = "skipped"


class SpeechController:
    """Coordinate synthesis and playback for read-aloud requests."""

    def __init__(
        self,
        registry: ProviderRegistry,
        settings: SettingsManager,
        session: PlaybackSession,
        notifier: Notifier | None = None,
        logger: EventLogger | None = None,
        materialize_remote: bool = True,
    ) -> None:
        """Initialize an idle controller over shared session state.

        Args:
            registry: Provider catalogue used to resolve the selected provider.
            settings: Settings manager; provider settings are read per request.
            session: Playback session shared with player callbacks.
            notifier: User-visible message surface (defaults to the event log).
            logger: Event logger for dispatch diagnostics.
            materialize_remote: Download remote vendor audio after synthesis so
                it stays available for `save_last_audio`.
        """

        self.registry = registry
        self.settings = settings
        self.session = session
        self.notifier = notifier if notifier is not None else LoggingNotifier()
        self.logger = logger if logger is not None else EventLogger("controller")
        self.materialize_remote = materialize_remote
        self._lock = threading.RLock()
        self._idle = threading.Event()
        self._idle.set()
        self._state = ControllerState.IDLE
        self._trigger: Hashable | None = None
        self._generation = 0
        self._session_id: int | None = None

    @property
    def state(self) -> ControllerState:
        """Return the current dispatch state."""

        with self._lock:
            return self._state

    @property
    def active_trigger(self) -> Hashable | None:
        """Return the trigger of the request being synthesized or played."""

        with self._lock:
            return self._trigger

    def play(self, text: str | None, trigger: Hashable | None = None) -> PlaybackOutcome:
        """Synthesize `text` with the selected provider and start playback.

        A request from the trigger that is currently synthesizing or playing
        stops it instead. Any other active request is stopped first.
        """

        with self._lock:
            if self._toggle_off(trigger):
                return PlaybackOutcome.STOPPED
            try:
                if not self.settings.is_enabled():
                    self.logger.debug("skipped_disabled")
                    return PlaybackOutcome.SKIPPED
                self._stop_locked()
                descriptor = self.registry.require(self.settings.selected_provider_id())
                normalized = self._prepare_text(text, descriptor)
                request = SynthesisRequest(
                    text=normalized,
                    provider_id=descriptor.id,
                    settings=self.settings.provider_settings(descriptor.id) or ProviderSettings(),
                )
            except Exception as exc:
                self._stop_locked()
                self._report(exc)
                return PlaybackOutcome.FAILED

            self._generation += 1
            generation = self._generation
            self._trigger = trigger
            self._set_state(ControllerState.SYNTHESIZING)

        self.logger.info("dispatch", provider=request.provider_id, chars=len(request.text))
        try:
            artifact = descriptor.synthesize(request.text, request.settings)
        except Exception as exc:
            with self._lock:
                if generation != self._generation:
                    self.logger.debug("abandoned_failure", provider=descriptor.id)
                    return PlaybackOutcome.ABANDONED
                self._to_idle()
            self._report(exc)
            return PlaybackOutcome.FAILED

        if self.materialize_remote and artifact.remote:
            self._materialize(artifact)

        with self._lock:
            if generation != self._generation:
                artifact.release()
                self.logger.info("abandoned", provider=descriptor.id)
                return PlaybackOutcome.ABANDONED
            self.session.retain_artifact(artifact)
            try:
                handle = self.session.start_session(
                    artifact,
                    trigger=trigger,
                    on_finished=self._on_session_finished,
                )
            except PlaybackError as exc:
                self._to_idle()
                self._report(exc)
                return PlaybackOutcome.FAILED
            self._session_id = handle.id
            self._set_state(ControllerState.PLAYING)
        return PlaybackOutcome.PLAYING

    def read_message(
        self,
        text: str | None,
        trigger: Hashable | None = None,
        read_mode: str | None = None,
    ) -> PlaybackOutcome:
        """Read a chat message using the configured (or given) read mode.

        In `dialogue` mode only quoted speech is read; messages without any
        are skipped with a notice.
        """

        with self._lock:
            if self._toggle_off(trigger):
                return PlaybackOutcome.STOPPED
        try:
            mode = read_mode or self.settings.read_mode()
            selected = select_text_for_reading(text, mode)
        except Exception as exc:
            self._report(exc)
            return PlaybackOutcome.FAILED
        if not selected:
            if mode == READ_MODE_DIALOGUE:
                self.notifier.notify("No dialogue found in this message.", "info")
            return PlaybackOutcome.SKIPPED
        return self.play(selected, trigger)

    def test_provider(self) -> PlaybackOutcome:
        """Synthesize and play a short phrase with the selected provider."""

        return self.play(TEST_PHRASE, TEST_TRIGGER)

    def stop(self) -> bool:
        """Stop playback and abandon any in-flight synthesis.

        Returns:
            `True` if something was synthesizing or playing.
        """

        with self._lock:
            return self._stop_locked()

    def on_provider_changed(self, provider_id: str) -> None:
        """Select `provider_id` and reset the session.

        Raises:
            ValueError: If `provider_id` is not registered.
        """

        with self._lock:
            self._stop_locked()
            self.settings.select_provider(provider_id)
        self.logger.info("provider_changed", provider=provider_id or "none")

    def set_enabled(self, enabled: bool) -> None:
        """Toggle the feature; turning it off stops any playback."""

        with self._lock:
            self.settings.set_enabled(enabled)
            if not enabled:
                self._stop_locked()

    def save_last_audio(self, path: Path) -> Path:
        """Write the last produced audio to `path` and return the written file.

        When `path` is an existing directory a timestamped file name is used.

        Raises:
            SodaTTSError: If no audio has been produced yet.
            TransportError: If remote audio cannot be downloaded.
        """

        artifact = self.session.last_artifact
        if artifact is None:
            raise SodaTTSError(
                "No audio has been generated yet.",
                hint="Play a message first, then download it.",
            )
        target = path
        if path.is_dir():
            target = path / f"soda-tts-{int(time.time() * 1000)}{artifact.file_extension}"
        written = artifact.save(target)
        self.logger.info("audio_saved", provider=artifact.provider, bytes=len(artifact.data or b""))
        return written

    def wait_until_idle(self, timeout: float | None = None) -> bool:
        """Block until the controller returns to `IDLE`; return whether it did."""

        return self._idle.wait(timeout)

    def _toggle_off(self, trigger: Hashable | None) -> bool:
        """Stop the active request when `trigger` started it."""

        if trigger is None or self._state is ControllerState.IDLE:
            return False
        if self._trigger != trigger:
            return False
        self._stop_locked()
        self.logger.info("toggled_off")
        return True

    def _stop_locked(self) -> bool:
        """Stop the active session and abandon in-flight synthesis (lock held)."""

        was_active = self._state is not ControllerState.IDLE
        if self._state is ControllerState.SYNTHESIZING:
            self._generation += 1
        stopped = self.session.stop_session()
        self._to_idle()
        return was_active or stopped

    def _prepare_text(self, text: str | None, descriptor: ProviderDescriptor) -> str:
        """Normalize `text` and validate it against the provider limit."""

        normalized = preprocess_for_tts(text)
        if not normalized:
            raise UnsupportedInputError(
                "Nothing to read after removing markup.",
                provider=descriptor.name,
            )
        if len(normalized) > descriptor.max_chars:
            raise UnsupportedInputError(
                f"Text is {len(normalized)} characters; {descriptor.name} accepts at most "
                f"{descriptor.max_chars}.",
                provider=descriptor.name,
                hint="Shorten the message or use `soda-tts synthesize --split`.",
            )
        return normalized

    def _materialize(self, artifact: AudioArtifact) -> None:
        """Cache remote audio bytes; failures never block playback."""

        try:
            artifact.materialize()
        except TransportError as exc:
            self.logger.warning(
                "materialize_failed",
                provider=artifact.provider,
                error_type=type(exc).__name__,
            )

    def _on_session_finished(self, handle: SessionHandle, error: Exception | None) -> None:
        """Return to idle when the current session ends on its own."""

        with self._lock:
            if handle.id != self._session_id:
                return
            self._to_idle()
        if error is not None:
            self._report(error)

    def _to_idle(self) -> None:
        """Clear request bookkeeping and enter `IDLE` (lock held)."""

        self._trigger = None
        self._session_id = None
        self._set_state(ControllerState.IDLE)

    def _set_state(self, state: ControllerState) -> None:
        """Transition to `state` (lock held)."""

        if state is not self._state:
            self.logger.debug("state", previous=self._state.value, current=state.value)
        self._state = state
        if state is ControllerState.IDLE:
            self._idle.set()
        else:
            self._idle.clear()

    def _report(self, exc: BaseException) -> None:
        """Log a dispatch failure and show its user-facing message."""

        self.logger.failure("dispatch_failed", exc, provider=getattr(exc, "provider", None) or "none")
        self.notifier.notify(describe_error(exc), "error")
