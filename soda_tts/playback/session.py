"""Single-slot playback session state.

Responsibilities:
- Hold at most one active playback and at most one "last produced" artifact.
- Tear down the previous session before a new one becomes active.
- Release playback references on stop, natural end, and playback errors.

Key types:
- `SessionHandle`: one started playback correlated with its trigger.
- `PlaybackSession`: the session state shared by the dispatch controller.
"""

from __future__ import annotations

from dataclasses import dataclass
import itertools
import threading
from typing import Callable, Hashable

from ..audio.artifact import AudioArtifact
from ..audio.player import AudioPlayer, PlaybackHandle
from ..errors import PlaybackError
from ..telemetry.logger import EventLogger


SessionCallback = Callable[["SessionHandle", "Exception | None"], None]


@dataclass(frozen=True, slots=True)
class SessionHandle:
    """One started playback session.

    Attributes:
        id: Monotonic session identifier.
        artifact: Audio being played.
        trigger: Caller-supplied identifier of the UI element that started playback.
        playback: Player handle controlling the audio.
    """

    id: int
    artifact: AudioArtifact
    trigger: Hashable | None
    playback: PlaybackHandle


class PlaybackSession:
    """Track the active playback and the last produced artifact."""

    def __init__(self, player: AudioPlayer) -> None:
        """Initialize an idle session bound to one audio player."""

        self.player = player
        self._lock = threading.RLock()
        self._ids = itertools.count(1)
        self._active: SessionHandle | None = None
        self._last_artifact: AudioArtifact | None = None
        self._logger = EventLogger("session")

    @property
    def active(self) -> SessionHandle | None:
        """Return the active session handle, if any."""

        with self._lock:
            return self._active

    @property
    def current_trigger(self) -> Hashable | None:
        """Return the trigger of the active session, if any."""

        with self._lock:
            return self._active.trigger if self._active is not None else None

    @property
    def is_playing(self) -> bool:
        """Return whether a session is active."""

        with self._lock:
            return self._active is not None

    @property
    def last_artifact(self) -> AudioArtifact | None:
        """Return the last produced artifact, kept across stop transitions."""

        with self._lock:
            return self._last_artifact

    def get_current_audio(self) -> AudioArtifact | None:
        """Return the artifact of the active session, if any."""

        with self._lock:
            return self._active.artifact if self._active is not None else None

    def retain_artifact(self, artifact: AudioArtifact) -> None:
        """Record `artifact` as the last produced one."""

        with self._lock:
            self._last_artifact = artifact

    def start_session(
        self,
        artifact: AudioArtifact,
        trigger: Hashable | None = None,
        on_finished: SessionCallback | None = None,
    ) -> SessionHandle:
        """Stop any active session, then start playing `artifact`.

        `on_finished` receives the handle and `None` on natural end, or the
        playback exception on error. It is never called after `stop_session()`.

        Raises:
            PlaybackError: If the player cannot start; the artifact is released
                and no session is left active.
        """

        with self._lock:
            self.stop_session()
            session_id = next(self._ids)
            def finished() -> None:
                self._finish(session_id, None, on_finished)

            def failed(exc: Exception) -> None:
                self._finish(session_id, exc, on_finished)

            try:
                playback = self.player.play(artifact, finished, failed)
            except PlaybackError:
                artifact.release()
                raise
            handle = SessionHandle(
                id=session_id,
                artifact=artifact,
                trigger=trigger,
                playback=playback,
            )
            self._active = handle
            self._logger.debug("started", session=session_id, provider=artifact.provider)
            return handle

    def stop_session(self) -> bool:
        """Stop the active session and release its playback reference.

        Returns:
            `True` when a session was stopped, `False` when already idle.
        """

        with self._lock:
            handle = self._active
            if handle is None:
                return False
            self._active = None
        handle.playback.stop()
        handle.artifact.release()
        self._logger.debug("stopped", session=handle.id)
        return True

    def reset(self) -> None:
        """Stop any active session; the last produced artifact is kept."""

        self.stop_session()

    def _finish(
        self,
        session_id: int,
        error: Exception | None,
        on_finished: SessionCallback | None,
    ) -> None:
        """Finish `session_id` if it is still the active session."""

        with self._lock:
            if self._active is None or self._active.id != session_id:
                return
            handle = self._active
            self._active = None
        handle.artifact.release()
        if error is None:
            self._logger.debug("finished", session=session_id)
        else:
            self._logger.failure("playback_failed", error, session=session_id)
        if on_finished is not None:
            on_finished(handle, error)
