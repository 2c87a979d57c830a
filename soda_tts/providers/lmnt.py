"""LMNT adapter (`/v1/ai/speech`, JSON envelope with base64 MP3)."""

from __future__ import annotations

import base64
import binascii
from typing import Any

from ..audio.artifact import AudioArtifact
from ..errors import MalformedResponseError, VendorError
from ..models.datatypes import ModelOption, ProviderSettings, Voice
from .base import ProviderAdapter


LMNT_ENDPOINT = "https://api.lmnt.com/v1/ai/speech"

_PROFESSIONAL_VOICES = (
    ("amy", "Amy (female)"),
    ("ava", "Ava (female)"),
    ("caleb", "Caleb (male)"),
    ("chloe", "Chloe (female)"),
    ("dalton", "Dalton (male)"),
    ("daniel", "Daniel (male)"),
    ("dustin", "Dustin (male)"),
    ("james", "James (male)"),
    ("lauren", "Lauren (female)"),
    ("lily", "Lily (female)"),
    ("magnus", "Magnus (male)"),
    ("miles", "Miles (male)"),
    ("morgan", "Morgan (neutral)"),
    ("nathan", "Nathan (male)"),
    ("noah", "Noah (male)"),
    ("oliver", "Oliver (male)"),
    ("paige", "Paige (female)"),
    ("sophie", "Sophie (female)"),
    ("terrence", "Terrence (male)"),
    ("zain", "Zain (male)"),
    ("zeke", "Zeke (male)"),
    ("zoe", "Zoe (female)"),
)

_INSTANT_VOICES = (
    ("ansel", "Ansel (male)"),
    ("autumn", "Autumn (female)"),
    ("bella", "Bella (female)"),
    ("brandon", "Brandon (male)"),
    ("cassian", "Cassian (male)"),
    ("elowen", "Elowen (female)"),
    ("evander", "Evander (male)"),
    ("huxley", "Huxley (male)"),
    ("jacob", "Jacob (male)"),
    ("juniper", "Juniper (female)"),
    ("kennedy", "Kennedy (female)"),
    ("leah", "Leah (female)"),
    ("lucas", "Lucas (male)"),
    ("natalie", "Natalie (female)"),
    ("nyssa", "Nyssa (female)"),
    ("ryan", "Ryan (male)"),
    ("sadie", "Sadie (female)"),
    ("stella", "Stella (female)"),
    ("tyler", "Tyler (male)"),
    ("vesper", "Vesper (female)"),
    ("violet", "Violet (female)"),
    ("warrick", "Warrick (male)"),
)

LMNT_VOICES = tuple(
    Voice(voice_id, name, category="professional") for voice_id, name in _PROFESSIONAL_VOICES
) + tuple(Voice(voice_id, name, category="instant") for voice_id, name in _INSTANT_VOICES)

LMNT_MODELS = (
    ModelOption("blizzard", "Blizzard"),
    ModelOption("aurora", "Aurora"),
)


class LmntAdapter(ProviderAdapter):
    """JSON-envelope adapter: base64 audio, with a sibling `error` field."""

    provider_id = "lmnt"
    display_name = "LMNT"
    voices = LMNT_VOICES
    models = LMNT_MODELS
    default_voice = "lily"
    default_model = "blizzard"
    max_chars = 5000
    default_settings = {"speed": 1.0}

    def _synthesize(self, text: str, settings: ProviderSettings) -> AudioArtifact:
        """Request MP3 speech and decode the base64 `audio` field."""

        payload: dict[str, Any] = {
            "text": text,
            "voice": self.resolve_voice(settings),
            "model": self.resolve_model(settings),
            "format": "mp3",
        }
        if settings.speed:
            payload["speed"] = settings.speed
        if settings.language_hint:
            payload["language"] = settings.language_hint

        response = self._post(
            LMNT_ENDPOINT,
            headers={
                "Content-Type": "application/json",
                "X-API-Key": settings.credential,
            },
            payload=payload,
        )
        body = self._json_body(response)

        error_value = body.get("error")
        if error_value:
            self._logger.error("vendor_error", detail=str(error_value)[:200])
            raise VendorError(
                f"server error: {error_value}",
                code=str(error_value),
                provider=self.display_name,
            )

        encoded = body.get("audio")
        if not isinstance(encoded, str) or not encoded:
            raise MalformedResponseError(
                "Response has no `audio` field.", provider=self.display_name
            )
        try:
            audio_bytes = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise MalformedResponseError(
                "Response `audio` field is not valid base64.", provider=self.display_name
            ) from exc
        return AudioArtifact.from_bytes(audio_bytes, "audio/mpeg", self.provider_id)
