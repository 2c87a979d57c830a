"""Gemini native-audio adapter (`generateContent`, nested base64 PCM response).

Gemini returns headerless 16-bit mono PCM (`audio/L16;codec=pcm;rate=24000`),
which is wrapped in a WAV container so ordinary players accept it.
"""

from __future__ import annotations

import base64
import binascii
from typing import Any

from ..audio.artifact import AudioArtifact
from ..audio.wav import is_raw_pcm_mime, parse_sample_rate, pcm_to_wav
from ..errors import MalformedResponseError
from ..models.datatypes import ModelOption, ProviderSettings, Voice
from .base import ProviderAdapter
from .transport import HttpTransport


GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"
_DEFAULT_PCM_MIME = "audio/L16;codec=pcm;rate=24000"

GEMINI_VOICES = (
    Voice("Zephyr", "Zephyr (bright)", "multi"),
    Voice("Puck", "Puck (upbeat)", "multi"),
    Voice("Charon", "Charon (informative)", "multi"),
    Voice("Kore", "Kore (firm)", "multi"),
    Voice("Fenrir", "Fenrir (excitable)", "multi"),
    Voice("Leda", "Leda (youthful)", "multi"),
    Voice("Orus", "Orus (firm)", "multi"),
    Voice("Aoede", "Aoede (breezy)", "multi"),
)

GEMINI_MODELS = (
    ModelOption("gemini-2.5-flash-preview-tts", "Gemini 2.5 Flash TTS (preview)"),
    ModelOption("gemini-2.5-pro-preview-tts", "Gemini 2.5 Pro TTS (preview)"),
)


def _find_audio_part(body: dict[str, Any]) -> dict[str, Any] | None:
    """Return the first `inlineData` block with an audio MIME type."""

    candidates = body.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None
    first = candidates[0]
    if not isinstance(first, dict):
        return None
    content = first.get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return None
    for part in parts:
        inline = part.get("inlineData") if isinstance(part, dict) else None
        if not isinstance(inline, dict):
            continue
        mime_type = inline.get("mimeType")
        if isinstance(mime_type, str) and mime_type.startswith("audio/"):
            return inline
    return None


class GeminiAdapter(ProviderAdapter):
    """Structured multimodal adapter requiring PCM to WAV transcoding."""

    provider_id = "gemini"
    display_name = "Gemini (Google)"
    voices = GEMINI_VOICES
    models = GEMINI_MODELS
    default_voice = "Kore"
    default_model = "gemini-2.5-flash-preview-tts"
    max_chars = 5000

    def _synthesize(self, text: str, settings: ProviderSettings) -> AudioArtifact:
        """Request audio-only generation and convert the PCM payload."""

        endpoint = f"{GEMINI_BASE_URL}/{self.resolve_model(settings)}:generateContent"
        payload = {
            "contents": [{"parts": [{"text": text}]}],
            "generationConfig": {
                "responseModalities": ["AUDIO"],
                "speechConfig": {
                    "voiceConfig": {
                        "prebuiltVoiceConfig": {"voiceName": self.resolve_voice(settings)},
                    },
                },
            },
        }
        response = self._post(
            endpoint,
            headers={
                "Content-Type": "application/json",
                "x-goog-api-key": settings.credential,
            },
            payload=payload,
        )
        body = self._json_body(response)

        inline = _find_audio_part(body)
        encoded = inline.get("data") if inline is not None else None
        if not isinstance(encoded, str) or not encoded:
            self._logger.error(
                "audio_missing",
                excerpt=HttpTransport.excerpt(bytes(response.content).decode("utf-8", "replace")),
            )
            raise MalformedResponseError(
                "Response contains no audio data.", provider=self.display_name
            )
        try:
            audio_bytes = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise MalformedResponseError(
                "Response audio data is not valid base64.", provider=self.display_name
            ) from exc

        mime_type = inline.get("mimeType") or _DEFAULT_PCM_MIME
        if is_raw_pcm_mime(mime_type):
            sample_rate = parse_sample_rate(mime_type)
            self._logger.debug("pcm_to_wav", sample_rate=sample_rate, pcm_bytes=len(audio_bytes))
            return AudioArtifact.from_bytes(
                pcm_to_wav(audio_bytes, sample_rate), "audio/wav", self.provider_id
            )
        return AudioArtifact.from_bytes(audio_bytes, mime_type, self.provider_id)
