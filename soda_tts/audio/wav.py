"""Minimal PCM to WAV container conversion.

Responsibilities:
- Wrap raw little-endian PCM samples in a canonical 44-byte RIFF/WAVE header.
- Parse sample-rate parameters from vendor audio MIME types.
"""

from __future__ import annotations

import re
import struct


WAV_HEADER_SIZE = 44
DEFAULT_PCM_SAMPLE_RATE = 24000

_RATE_PARAMETER_RE = re.compile(r"rate=(\d+)")
_PCM_FORMAT_TAG = 1
_FMT_CHUNK_SIZE = 16


def parse_sample_rate(mime_type: str | None, default: int = DEFAULT_PCM_SAMPLE_RATE) -> int:
    """Parse `rate=` from a MIME type such as `audio/L16;codec=pcm;rate=24000`."""

    if not mime_type:
        return default
    match = _RATE_PARAMETER_RE.search(mime_type)
    if match is None:
        return default
    rate = int(match.group(1))
    return rate if rate > 0 else default


def is_raw_pcm_mime(mime_type: str | None) -> bool:
    """Return whether a vendor MIME type denotes headerless PCM samples."""

    if not mime_type:
        return False
    lowered = mime_type.lower()
    return "l16" in lowered or "pcm" in lowered


def pcm_to_wav(
    pcm_data: bytes,
    sample_rate: int = DEFAULT_PCM_SAMPLE_RATE,
    num_channels: int = 1,
    bits_per_sample: int = 16,
) -> bytes:
    """Return a WAV file: 44-byte PCM header immediately followed by `pcm_data`.

    All multi-byte header fields are little-endian.

    Raises:
        ValueError: If the audio format parameters are not positive.
    """

    if sample_rate <= 0 or num_channels <= 0 or bits_per_sample <= 0:
        raise ValueError("WAV sample rate, channel count, and bit depth must be positive.")

    bytes_per_sample = bits_per_sample // 8
    block_align = num_channels * bytes_per_sample
    byte_rate = sample_rate * block_align
    data_size = len(pcm_data)
    header = struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        WAV_HEADER_SIZE + data_size - 8,
        b"WAVE",
        b"fmt ",
        _FMT_CHUNK_SIZE,
        _PCM_FORMAT_TAG,
        num_channels,
        sample_rate,
        byte_rate,
        block_align,
        bits_per_sample,
        b"data",
        data_size,
    )
    return header + bytes(pcm_data)
