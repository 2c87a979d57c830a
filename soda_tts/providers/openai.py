"""OpenAI speech adapter (`/v1/audio/speech`, binary MP3 response)."""

from __future__ import annotations

from typing import Any

from ..audio.artifact import AudioArtifact
from ..models.datatypes import ModelOption, ProviderSettings, Voice
from .base import ProviderAdapter


OPENAI_ENDPOINT = "https://api.openai.com/v1/audio/speech"

OPENAI_VOICES = (
    Voice("alloy", "Alloy (neutral)", "multi"),
    Voice("ash", "Ash (male)", "multi"),
    Voice("coral", "Coral (female)", "multi"),
    Voice("echo", "Echo (male)", "multi"),
    Voice("fable", "Fable (British male)", "multi"),
    Voice("onyx", "Onyx (deep male)", "multi"),
    Voice("nova", "Nova (female)", "multi"),
    Voice("sage", "Sage (neutral)", "multi"),
    Voice("shimmer", "Shimmer (female)", "multi"),
)

OPENAI_MODELS = (
    ModelOption("tts-1", "TTS-1 (fast)"),
    ModelOption("tts-1-hd", "TTS-1 HD"),
    ModelOption("gpt-4o-mini-tts", "GPT-4o mini TTS (supports instructions)"),
)

# Models that accept the `instructions` style prompt.
_INSTRUCTION_MODELS = frozenset({"gpt-4o-mini-tts"})


class OpenAIAdapter(ProviderAdapter):
    """Binary-direct adapter: the response body is the MP3 file."""

    provider_id = "openai"
    display_name = "OpenAI TTS"
    voices = OPENAI_VOICES
    models = OPENAI_MODELS
    default_voice = "nova"
    default_model = "tts-1"
    max_chars = 4096
    default_settings = {"speed": 1.0, "instructions": ""}
    relay_fallback = True

    def _synthesize(self, text: str, settings: ProviderSettings) -> AudioArtifact:
        """Request MP3 speech and wrap the body bytes."""

        model = self.resolve_model(settings)
        payload: dict[str, Any] = {
            "model": model,
            "input": text,
            "voice": self.resolve_voice(settings),
            "speed": max(0.25, min(4.0, settings.speed or 1.0)),
            "response_format": "mp3",
        }
        if settings.instructions and model in _INSTRUCTION_MODELS:
            payload["instructions"] = settings.instructions
        response = self._post(
            OPENAI_ENDPOINT,
            headers={
                "Authorization": f"Bearer {settings.credential}",
                "Content-Type": "application/json",
            },
            payload=payload,
        )
        return AudioArtifact.from_bytes(self._binary_body(response), "audio/mpeg", self.provider_id)
