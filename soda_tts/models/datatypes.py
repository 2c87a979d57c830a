"""Core datatypes shared across Soda TTS modules.

Responsibilities:
- Represent provider catalogue entries and per-provider settings.
- Provide explicit typing for records exchanged between settings, adapters,
  and the dispatch controller.

Key types:
- `Voice`, `ModelOption`, `ProviderSettings`, and `SynthesisRequest`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Mapping

from ..parsing import normalize_optional_string, parse_optional_float


@dataclass(frozen=True, slots=True)
class Voice:
    """A vendor voice offered in the provider catalogue.

    Attributes:
        id: Vendor-specific voice identifier.
        name: Human-readable display name.
        language: Optional language tag (`multi` for multilingual voices).
        category: Optional vendor tier such as `professional` or `instant`.
    """

    id: str
    name: str
    language: str | None = None
    category: str | None = None


@dataclass(frozen=True, slots=True)
class ModelOption:
    """A selectable vendor synthesis model."""

    id: str
    name: str


@dataclass(slots=True)
class ProviderSettings:
    """Per-provider user configuration.

    Attributes:
        api_key: Stored credential string.
        model: Selected model identifier (blank means provider default).
        voice: Selected voice identifier (blank means provider default).
        speed: Optional speaking-rate multiplier.
        stability: Optional voice stability (ElevenLabs).
        similarity_boost: Optional similarity boost (ElevenLabs).
        language_hint: Optional language hint (LMNT `language`, Qwen `language_type`).
        instructions: Optional style instructions (OpenAI instruction-capable models).
    """

    api_key: str = ""
    model: str = ""
    voice: str = ""
    speed: float | None = None
    stability: float | None = None
    similarity_boost: float | None = None
    language_hint: str | None = None
    instructions: str = ""

    @property
    def credential(self) -> str:
        """Return the normalized credential, or an empty string when unset."""

        return (self.api_key or "").strip()

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> ProviderSettings:
        """Build settings from a persisted mapping, ignoring unknown keys."""

        return cls(
            api_key=normalize_optional_string(payload.get("api_key")) or "",
            model=normalize_optional_string(payload.get("model")) or "",
            voice=normalize_optional_string(payload.get("voice")) or "",
            speed=parse_optional_float(payload.get("speed"), "speed"),
            stability=parse_optional_float(payload.get("stability"), "stability"),
            similarity_boost=parse_optional_float(
                payload.get("similarity_boost"), "similarity_boost"
            ),
            language_hint=normalize_optional_string(payload.get("language_hint")),
            instructions=normalize_optional_string(payload.get("instructions")) or "",
        )

    def as_mapping(self) -> dict[str, Any]:
        """Return a persistable mapping of all fields."""

        return {item.name: getattr(self, item.name) for item in fields(self)}


SETTINGS_FIELD_NAMES = frozenset(item.name for item in fields(ProviderSettings))


@dataclass(frozen=True, slots=True)
class SynthesisRequest:
    """One normalized synthesis invocation."""

    text: str
    provider_id: str
    settings: ProviderSettings = field(default_factory=ProviderSettings)
