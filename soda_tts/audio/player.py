"""Audio playback backends.

Responsibilities:
- Define the player interface the playback session depends on.
- Provide a subprocess-backed player using platform command-line tools.

Key types:
- `AudioPlayer`: starts playback of an artifact and reports completion.
- `PlaybackHandle`: controls one started playback.
- `SubprocessAudioPlayer`: `afplay`/`ffplay`/`paplay`/`aplay` backend.
"""

from __future__ import annotations

import platform
import shutil
import subprocess
import threading
from typing import Callable, Protocol

from ..errors import PlaybackError
from .artifact import AudioArtifact


FinishedCallback = Callable[[], None]
ErrorCallback = Callable[[Exception], None]


class PlaybackHandle(Protocol):
    """Control surface for one started playback."""

    def stop(self) -> None:
        """Stop playback; must be safe to call more than once."""

    @property
    def is_playing(self) -> bool:
        """Return whether audio is still playing."""


class AudioPlayer(Protocol):
    """Protocol for playback backends."""

    def play(
        self,
        artifact: AudioArtifact,
        on_finished: FinishedCallback,
        on_error: ErrorCallback,
    ) -> PlaybackHandle:
        """Start playing `artifact` and return a handle.

        Exactly one of `on_finished` or `on_error` fires when playback ends on
        its own; neither fires after `PlaybackHandle.stop()`.

        Raises:
            PlaybackError: If playback cannot be started.
        """


_PLAYER_COMMANDS: dict[str, tuple[str, ...]] = {
    "afplay": ("afplay",),
    "ffplay": ("ffplay", "-nodisp", "-autoexit", "-loglevel", "quiet"),
    "paplay": ("paplay",),
    "aplay": ("aplay", "-q"),
}


def _default_candidates() -> tuple[str, ...]:
    """Return candidate player executables in platform preference order."""

    if platform.system() == "Darwin":
        return ("afplay", "ffplay")
    return ("ffplay", "paplay", "aplay")


class SubprocessPlaybackHandle:
    """Playback handle wrapping one player subprocess and its watcher thread."""

    def __init__(
        self,
        process: subprocess.Popen[bytes],
        on_finished: FinishedCallback,
        on_error: ErrorCallback,
    ) -> None:
        """Start watching the player process for natural completion."""

        self._process = process
        self._on_finished = on_finished
        self._on_error = on_error
        self._stopped = threading.Event()
        self._watcher = threading.Thread(
            target=self._watch,
            name="soda-tts-playback",
            daemon=True,
        )
        self._watcher.start()

    @property
    def is_playing(self) -> bool:
        """Return whether the player process is still running."""

        return not self._stopped.is_set() and self._process.poll() is None

    def stop(self) -> None:
        """Terminate the player process without firing completion callbacks."""

        if self._stopped.is_set():
            return
        self._stopped.set()
        if self._process.poll() is None:
            self._process.terminate()
            try:
                self._process.wait(timeout=2.0)
            except subprocess.TimeoutExpired:
                self._process.kill()

    def wait(self, timeout: float | None = None) -> None:
        """Block until the watcher observes the process exit."""

        self._watcher.join(timeout)

    def _watch(self) -> None:
        """Wait for the process and report how playback ended."""

        return_code = self._process.wait()
        if self._stopped.is_set():
            return
        self._stopped.set()
        if return_code == 0:
            self._on_finished()
        else:
            self._on_error(PlaybackError(f"Audio player exited with status {return_code}."))


class SubprocessAudioPlayer:
    """Play artifacts through the first available command-line audio player."""

    def __init__(self, candidates: tuple[str, ...] | None = None) -> None:
        """Initialize with explicit player executables or platform defaults."""

        self.candidates = candidates if candidates is not None else _default_candidates()

    def resolve_command(self, artifact: AudioArtifact) -> list[str]:
        """Return the argv used to play `artifact`.

        Remote URLs need a network-capable player, so only `ffplay` is
        considered for them.

        Raises:
            PlaybackError: If no suitable player executable is installed.
        """

        for name in self.candidates:
            if artifact.remote and name != "ffplay":
                continue
            if name in {"aplay", "paplay"} and artifact.file_extension != ".wav":
                continue
            executable = shutil.which(name)
            if executable is None:
                continue
            base = _PLAYER_COMMANDS.get(name, (name,))
            return [executable, *base[1:], artifact.url]
        raise PlaybackError(
            "No audio player found for this audio format.",
            hint="Install ffmpeg (ffplay) or use `--save` to write the audio to a file.",
        )

    def play(
        self,
        artifact: AudioArtifact,
        on_finished: FinishedCallback,
        on_error: ErrorCallback,
    ) -> SubprocessPlaybackHandle:
        """Spawn the player process for `artifact`."""

        command = self.resolve_command(artifact)
        try:
            process = subprocess.Popen(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as exc:
            raise PlaybackError(f"Failed to start audio player: {exc}") from exc
        return SubprocessPlaybackHandle(process, on_finished, on_error)
