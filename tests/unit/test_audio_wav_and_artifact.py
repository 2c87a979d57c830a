"""Unit tests for PCM-to-WAV conversion and audio artifacts."""

from __future__ import annotations

from pathlib import Path
import struct

import pytest

from soda_tts.audio import artifact as artifact_module
from soda_tts.audio.artifact import AudioArtifact, extension_for_mime
from soda_tts.audio.wav import is_raw_pcm_mime, parse_sample_rate, pcm_to_wav
from soda_tts.errors import TransportError
from tests.support import MockRequestsResponse


def test_pcm_to_wav_two_seconds_of_silence() -> None:
    """Container length is header plus samples, with RIFF/WAVE tags."""

    sample_count = 24000 * 2
    wav = pcm_to_wav(b"\x00\x00" * sample_count, 24000)

    assert len(wav) == 44 + sample_count * 2
    assert wav[0:4] == b"RIFF"
    assert wav[8:12] == b"WAVE"
    assert wav[12:16] == b"fmt "
    assert wav[36:40] == b"data"


def test_pcm_to_wav_header_fields_are_little_endian() -> None:
    """Format fields describe mono 16-bit PCM at the requested rate."""

    wav = pcm_to_wav(b"\x01\x00\x02\x00", 16000)

    riff_size, = struct.unpack("<I", wav[4:8])
    fmt_size, audio_format, channels, rate, byte_rate, block_align, bits = struct.unpack(
        "<IHHIIHH", wav[16:36]
    )
    data_size, = struct.unpack("<I", wav[40:44])
    assert riff_size == len(wav) - 8
    assert (fmt_size, audio_format, channels) == (16, 1, 1)
    assert (rate, byte_rate, block_align, bits) == (16000, 32000, 2, 16)
    assert data_size == 4


def test_parse_sample_rate_and_pcm_detection() -> None:
    """Rate parameters are parsed with a 24 kHz fallback."""

    assert parse_sample_rate("audio/L16;codec=pcm;rate=16000") == 16000
    assert parse_sample_rate("audio/L16;codec=pcm") == 24000
    assert parse_sample_rate(None) == 24000
    assert is_raw_pcm_mime("audio/L16;codec=pcm;rate=24000") is True
    assert is_raw_pcm_mime("audio/mpeg") is False


def test_artifact_release_removes_temp_file_and_keeps_bytes(tmp_path: Path) -> None:
    """Releasing revokes the playback file but the payload stays downloadable."""

    artifact = AudioArtifact.from_bytes(b"ID3abc", "audio/mpeg", "openai")
    playback_path = Path(artifact.url)
    assert playback_path.read_bytes() == b"ID3abc"
    assert playback_path.suffix == ".mp3"

    artifact.release()
    artifact.release()

    assert artifact.released is True
    assert not playback_path.exists()
    saved = artifact.save(tmp_path / "nested" / "last.mp3")
    assert saved.read_bytes() == b"ID3abc"


def test_remote_artifact_materializes_once(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remote audio is downloaded on first access and cached."""

    calls: list[str] = []

    def _mock_get(url: str, **kwargs: object) -> MockRequestsResponse:
        calls.append(url)
        return MockRequestsResponse(payload=b"RIFFdata", headers={"Content-Type": "audio/wav"})

    monkeypatch.setattr(artifact_module.requests, "get", _mock_get)
    artifact = AudioArtifact.from_remote_url("https://cdn.example.com/a.wav", provider="qwen")

    assert artifact.materialize() == b"RIFFdata"
    assert artifact.materialize() == b"RIFFdata"
    assert calls == ["https://cdn.example.com/a.wav"]


def test_remote_artifact_download_failure_maps_to_transport_error(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Failed downloads raise a transport error."""

    def _mock_get(url: str, **kwargs: object) -> MockRequestsResponse:
        return MockRequestsResponse(payload=b"gone", status_code=404)

    monkeypatch.setattr(artifact_module.requests, "get", _mock_get)
    artifact = AudioArtifact.from_remote_url("https://cdn.example.com/a.wav", provider="qwen")

    with pytest.raises(TransportError):
        artifact.materialize()


def test_extension_for_mime_ignores_parameters() -> None:
    """MIME parameters do not affect the chosen extension."""

    assert extension_for_mime("audio/wav; codecs=1") == ".wav"
    assert extension_for_mime("audio/unknown") == ".bin"
