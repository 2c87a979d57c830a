"""Provider registry mapping identifiers to adapter descriptors.

Responsibilities:
- Resolve provider identifiers to immutable descriptors bound to adapters.
- Keep dispatch independent from concrete adapter classes.

Notes:
- Adding a vendor means adding one adapter module and one entry in
  `ADAPTER_CLASSES`; nothing else branches on provider id.
"""

from __future__ import annotations

from typing import Iterable

from ..errors import ProviderNotSelectedError
from .base import ProviderAdapter, ProviderDescriptor
from .elevenlabs import ElevenLabsAdapter
from .gemini import GeminiAdapter
from .lmnt import LmntAdapter
from .openai import OpenAIAdapter
from .qwen import QwenAdapter
from .transport import HttpTransport


ADAPTER_CLASSES: tuple[type[ProviderAdapter], ...] = (
    QwenAdapter,
    OpenAIAdapter,
    GeminiAdapter,
    LmntAdapter,
    ElevenLabsAdapter,
)


class ProviderRegistry:
    """Read-only lookup over provider descriptors."""

    def __init__(self, descriptors: Iterable[ProviderDescriptor]) -> None:
        """Index descriptors by id, rejecting duplicates."""

        entries: dict[str, ProviderDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.id in entries:
                raise ValueError(f"Duplicate provider id `{descriptor.id}`.")
            entries[descriptor.id] = descriptor
        self._entries = entries

    def get(self, provider_id: str | None) -> ProviderDescriptor | None:
        """Return the descriptor for `provider_id`, or `None` when unknown."""

        if not provider_id:
            return None
        return self._entries.get(provider_id)

    def require(self, provider_id: str | None) -> ProviderDescriptor:
        """Return the descriptor for `provider_id` or raise a selection error."""

        descriptor = self.get(provider_id)
        if descriptor is None:
            if provider_id:
                supported = ", ".join(self.ids())
                detail = f"Unknown TTS provider `{provider_id}`; supported: {supported}."
            else:
                detail = "No TTS provider is selected."
            raise ProviderNotSelectedError(
                detail,
                hint="Run `soda-tts use <provider>` to select one.",
            )
        return descriptor

    def list(self) -> list[ProviderDescriptor]:
        """Return descriptors in registration order."""

        return list(self._entries.values())

    def ids(self) -> list[str]:
        """Return provider ids in registration order."""

        return list(self._entries.keys())

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._entries


def build_registry(transport: HttpTransport | None = None) -> ProviderRegistry:
    """Create a registry with every built-in adapter sharing one transport."""

    shared_transport = transport if transport is not None else HttpTransport()
    return ProviderRegistry(
        adapter_class(shared_transport).describe() for adapter_class in ADAPTER_CLASSES
    )
