"""Playback session state and the dispatch controller."""

from .controller import (
    TEST_PHRASE,
    ControllerState,
    PlaybackOutcome,
    SpeechController,
)
from .session import PlaybackSession, SessionHandle

__all__ = [
    "ControllerState",
    "PlaybackOutcome",
    "PlaybackSession",
    "SessionHandle",
    "SpeechController",
    "TEST_PHRASE",
]
