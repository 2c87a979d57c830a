"""Qwen adapter (Alibaba DashScope multimodal generation, remote audio URL)."""

from __future__ import annotations

from ..audio.artifact import AudioArtifact
from ..errors import MalformedResponseError, VendorError
from ..models.datatypes import ModelOption, ProviderSettings, Voice
from .base import ProviderAdapter


QWEN_ENDPOINT = (
    "https://dashscope-intl.aliyuncs.com/api/v1/services/aigc/multimodal-generation/generation"
)

QWEN_VOICES = tuple(
    Voice(name, name, "multi")
    for name in (
        "Cherry",
        "Serena",
        "Ethan",
        "Chelsie",
        "Momo",
        "Vivian",
        "Moon",
        "Maia",
        "Kai",
        "Nofish",
        "Bella",
    )
)

QWEN_MODELS = (ModelOption("qwen3-tts-flash", "Qwen3 TTS Flash"),)

_DEFAULT_LANGUAGE_TYPE = "Auto"


class QwenAdapter(ProviderAdapter):
    """JSON-envelope adapter returning a vendor-hosted URL (valid about 24 hours)."""

    provider_id = "qwen"
    display_name = "Qwen (Alibaba)"
    voices = QWEN_VOICES
    models = QWEN_MODELS
    default_voice = "Cherry"
    default_model = "qwen3-tts-flash"
    max_chars = 600
    default_settings = {"language_hint": _DEFAULT_LANGUAGE_TYPE}
    relay_fallback = True

    def _synthesize(self, text: str, settings: ProviderSettings) -> AudioArtifact:
        """Request speech and return the hosted audio URL without fetching it."""

        response = self._post(
            QWEN_ENDPOINT,
            headers={
                "Authorization": f"Bearer {settings.credential}",
                "Content-Type": "application/json",
            },
            payload={
                "model": self.resolve_model(settings),
                "input": {
                    "text": text,
                    "voice": self.resolve_voice(settings),
                    "language_type": settings.language_hint or _DEFAULT_LANGUAGE_TYPE,
                },
            },
        )
        body = self._json_body(response)

        if body.get("code") or body.get("message"):
            code = str(body.get("code") or "") or None
            message = str(body.get("message") or body.get("code"))
            self._logger.error("vendor_error", code=code or "none")
            raise VendorError(f"API error: {message}", code=code, provider=self.display_name)

        output = body.get("output")
        audio = output.get("audio") if isinstance(output, dict) else None
        audio_url = audio.get("url") if isinstance(audio, dict) else None
        if not isinstance(audio_url, str) or not audio_url.strip():
            raise MalformedResponseError(
                "Response has no audio URL.", provider=self.display_name
            )
        return AudioArtifact.from_remote_url(audio_url.strip(), "audio/wav", self.provider_id)
