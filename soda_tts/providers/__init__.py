"""TTS provider adapters and registry.

This package normalizes five vendor speech APIs behind one
`synthesize(text, settings) -> AudioArtifact` contract.
"""

from .base import ProviderAdapter, ProviderDescriptor
from .elevenlabs import ElevenLabsAdapter
from .gemini import GeminiAdapter
from .lmnt import LmntAdapter
from .openai import OpenAIAdapter
from .qwen import QwenAdapter
from .registry import ADAPTER_CLASSES, ProviderRegistry, build_registry
from .transport import HttpTransport

__all__ = [
    "ADAPTER_CLASSES",
    "ElevenLabsAdapter",
    "GeminiAdapter",
    "HttpTransport",
    "LmntAdapter",
    "OpenAIAdapter",
    "ProviderAdapter",
    "ProviderDescriptor",
    "ProviderRegistry",
    "QwenAdapter",
    "build_registry",
]
