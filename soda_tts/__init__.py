"""Top-level package for Soda TTS.

This package provides a multi-provider text-to-speech layer for chat
messages: vendor adapters behind one registry, a text normalizer, and a
dispatch controller that keeps a single audio session. The main entry point
is `SpeechController`.
"""

from .playback.controller import PlaybackOutcome, SpeechController
from .providers.registry import ProviderRegistry, build_registry

__all__ = [
    "PlaybackOutcome",
    "ProviderRegistry",
    "SpeechController",
    "__version__",
    "build_registry",
]

__version__ = "0.1.0"
