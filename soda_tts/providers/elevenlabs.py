"""ElevenLabs adapter (`/v1/text-to-speech/{voice}`, binary MP3 response)."""

from __future__ import annotations

from ..audio.artifact import AudioArtifact
from ..errors import HttpError, SodaTTSError, VendorError
from ..models.datatypes import ModelOption, ProviderSettings, Voice
from .base import ProviderAdapter


ELEVENLABS_ENDPOINT = "https://api.elevenlabs.io/v1/text-to-speech"

ELEVENLABS_VOICES = (
    Voice("21m00Tcm4TlvDq8ikWAM", "Rachel (female, calm)", "en"),
    Voice("EXAVITQu4vr4xnSDxMaL", "Bella (female, soft)", "en"),
    Voice("MF3mGyEYCl7XYWbV9V6O", "Elli (female, young)", "en"),
    Voice("jBpfuIE2acCO8z3wKNLl", "Gigi (female, animated)", "en"),
    Voice("oWAxZDx7w5VEj9dCyTzz", "Grace (female, southern)", "en"),
    Voice("ThT5KcBeYPX3keUQqHPh", "Dorothy (female, British)", "en"),
    Voice("AZnzlk1XvdvUeBnXmlld", "Domi (female, strong)", "en"),
    Voice("ErXwobaYiN019PkySvjV", "Antoni (male, friendly)", "en"),
    Voice("VR6AewLTigWG4xSOukaG", "Arnold (male, crisp)", "en"),
    Voice("pNInz6obpgDQGcFmaJgB", "Adam (male, narration)", "en"),
    Voice("yoZ06aMxZJJ28mfd3POQ", "Sam (male, raspy)", "en"),
    Voice("TxGEqnHWrfWFTfGW9XjX", "Josh (male, young)", "en"),
    Voice("onwK4e9ZLuTAKqWW03F9", "Daniel (male, British)", "en"),
    Voice("ZQe5CZNOzWyzPSCn5a3c", "James (male, news)", "en"),
    Voice("Zlb1dXrM653N07WRdFW3", "Callum (neutral, video)", "en"),
    Voice("GBv7mTt0atIp3Br8iCZE", "Thomas (male, meditation)", "en"),
    Voice("SOYHLrjzK2X1ezoPC6cr", "Harry (male, anxious)", "en"),
)

ELEVENLABS_MODELS = (
    ModelOption("eleven_flash_v2_5", "Flash v2.5 (fast, low cost)"),
    ModelOption("eleven_turbo_v2_5", "Turbo v2.5 (balanced)"),
    ModelOption("eleven_multilingual_v2", "Multilingual v2 (highest quality)"),
)

_DEFAULT_STABILITY = 0.5
_DEFAULT_SIMILARITY_BOOST = 0.75


class ElevenLabsAdapter(ProviderAdapter):
    """Binary-direct adapter with quota detection on error bodies."""

    provider_id = "elevenlabs"
    display_name = "ElevenLabs"
    voices = ELEVENLABS_VOICES
    models = ELEVENLABS_MODELS
    default_voice = "21m00Tcm4TlvDq8ikWAM"
    default_model = "eleven_flash_v2_5"
    max_chars = 5000
    default_settings = {
        "stability": _DEFAULT_STABILITY,
        "similarity_boost": _DEFAULT_SIMILARITY_BOOST,
    }
    relay_fallback = True

    def _synthesize(self, text: str, settings: ProviderSettings) -> AudioArtifact:
        """Request MP3 speech for the configured voice and wrap the body bytes."""

        endpoint = f"{ELEVENLABS_ENDPOINT}/{self.resolve_voice(settings)}"
        stability = _DEFAULT_STABILITY if settings.stability is None else settings.stability
        similarity_boost = (
            _DEFAULT_SIMILARITY_BOOST
            if settings.similarity_boost is None
            else settings.similarity_boost
        )
        response = self._post(
            endpoint,
            headers={
                "Content-Type": "application/json",
                "xi-api-key": settings.credential,
                "Accept": "audio/mpeg",
            },
            payload={
                "text": text,
                "model_id": self.resolve_model(settings),
                "voice_settings": {
                    "stability": stability,
                    "similarity_boost": similarity_boost,
                },
            },
        )
        return AudioArtifact.from_bytes(self._binary_body(response), "audio/mpeg", self.provider_id)

    def _refine_http_error(self, exc: HttpError) -> SodaTTSError:
        """Turn `quota_exceeded` error bodies into a quota vendor error."""

        if "quota_exceeded" in exc.body:
            return VendorError(
                "account credits are exhausted (quota_exceeded).",
                code="quota_exceeded",
                status_code=exc.status_code,
                provider=self.display_name,
                hint="Check remaining credits in the ElevenLabs dashboard.",
            )
        return exc
