"""Playable audio artifacts produced by provider adapters.

Responsibilities:
- Hold synthesized audio bytes together with their MIME type.
- Expose a revocable playback reference (a temp file, or a remote vendor URL).
- Keep payload bytes available for download after the reference is released.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
import tempfile

import requests

from ..errors import TransportError


_MIME_EXTENSIONS = {
    "audio/mpeg": ".mp3",
    "audio/mp3": ".mp3",
    "audio/wav": ".wav",
    "audio/x-wav": ".wav",
    "audio/wave": ".wav",
    "audio/ogg": ".ogg",
    "audio/opus": ".opus",
    "audio/aac": ".aac",
    "audio/flac": ".flac",
}


def extension_for_mime(mime_type: str) -> str:
    """Return a file extension for an audio MIME type, ignoring parameters."""

    base = mime_type.split(";", 1)[0].strip().lower()
    return _MIME_EXTENSIONS.get(base, ".bin")


@dataclass(slots=True)
class AudioArtifact:
    """Synthesized audio plus a revocable playback reference.

    Attributes:
        data: Audio payload bytes, or `None` for a remote URL not yet fetched.
        mime_type: MIME type of `data` (or of the remote resource).
        url: Playback reference: a local temp-file path or a remote URL.
        provider: Provider identifier that produced the audio.
    """

    data: bytes | None
    mime_type: str
    url: str
    provider: str = ""
    remote: bool = False
    _temp_path: Path | None = field(default=None, repr=False)
    _released: bool = field(default=False, repr=False)

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str, provider: str = "") -> AudioArtifact:
        """Create an artifact whose playback reference is a private temp file."""

        handle, raw_path = tempfile.mkstemp(
            prefix="soda_tts_",
            suffix=extension_for_mime(mime_type),
        )
        with os.fdopen(handle, "wb") as temp_file:
            temp_file.write(data)
        path = Path(raw_path)
        return cls(
            data=bytes(data),
            mime_type=mime_type,
            url=str(path),
            provider=provider,
            _temp_path=path,
        )

    @classmethod
    def from_remote_url(
        cls,
        url: str,
        mime_type: str = "audio/wav",
        provider: str = "",
    ) -> AudioArtifact:
        """Create an artifact that plays directly from vendor-hosted audio."""

        return cls(data=None, mime_type=mime_type, url=url, provider=provider, remote=True)

    @property
    def released(self) -> bool:
        """Return whether the playback reference has been revoked."""

        return self._released

    @property
    def file_extension(self) -> str:
        """Return a file extension matching the artifact MIME type."""

        return extension_for_mime(self.mime_type)

    def release(self) -> None:
        """Revoke the playback reference. Idempotent; payload bytes are kept."""

        if self._released:
            return
        self._released = True
        if self._temp_path is not None:
            self._temp_path.unlink(missing_ok=True)
            self._temp_path = None

    def materialize(self, timeout_seconds: float = 60.0) -> bytes:
        """Return payload bytes, downloading remote audio once when needed.

        Raises:
            TransportError: If remote audio cannot be fetched.
        """

        if self.data is not None:
            return self.data
        try:
            response = requests.get(self.url, timeout=timeout_seconds)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise TransportError(
                f"Failed to download generated audio: {type(exc).__name__}",
                timed_out=isinstance(exc, requests.Timeout),
                provider=self.provider or None,
            ) from exc
        self.data = bytes(response.content)
        content_type = response.headers.get("Content-Type", "")
        if content_type.startswith("audio/"):
            self.mime_type = content_type
        return self.data

    def save(self, path: Path) -> Path:
        """Write payload bytes to `path`, creating parent directories."""

        payload = self.materialize()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(payload)
        return path
