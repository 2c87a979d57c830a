"""Shared pytest fixtures for the full Soda TTS test suite."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import pytest

from soda_tts.config import SettingsManager
from soda_tts.host import InMemorySettingsBackend
from soda_tts.playback.controller import SpeechController
from soda_tts.playback.session import PlaybackSession
from soda_tts.providers import transport as transport_module
from soda_tts.providers.registry import ProviderRegistry
from tests.support import FakeAdapter, FakePlayer, MockRequestsResponse, RecordingPost


class RecordingNotifier:
    """Notifier capturing user-visible messages."""

    def __init__(self) -> None:
        """Initialize an empty message log."""

        self.messages: list[tuple[str, str]] = []

    def notify(self, message: str, level: str = "warning") -> None:
        """Record one message with its level."""

        self.messages.append((message, level))

    @property
    def texts(self) -> list[str]:
        """Return recorded message texts."""

        return [message for message, _ in self.messages]


@dataclass
class ControllerFixture:
    """Controller wired to a fake adapter, fake player, and in-memory settings."""

    adapter: FakeAdapter
    player: FakePlayer
    backend: InMemorySettingsBackend
    settings: SettingsManager
    session: PlaybackSession
    notifier: RecordingNotifier
    controller: SpeechController


@pytest.fixture
def install_post(monkeypatch: pytest.MonkeyPatch) -> Callable[..., RecordingPost]:
    """Patch `requests.post` used by the provider transport with queued outcomes."""

    def _install(*outcomes: MockRequestsResponse | Exception) -> RecordingPost:
        recorder = RecordingPost(*outcomes)
        monkeypatch.setattr(transport_module.requests, "post", recorder)
        return recorder

    return _install


@pytest.fixture
def controller_fixture() -> ControllerFixture:
    """Build a controller with the fake provider selected and a key configured."""

    adapter = FakeAdapter()
    registry = ProviderRegistry([adapter.describe()])
    backend = InMemorySettingsBackend(
        {"soda_tts": {"provider": "fake", "providers": {"fake": {"api_key": "test-key"}}}}
    )
    settings = SettingsManager(backend, registry)
    player = FakePlayer()
    session = PlaybackSession(player)
    notifier = RecordingNotifier()
    controller = SpeechController(registry, settings, session, notifier=notifier)
    return ControllerFixture(
        adapter=adapter,
        player=player,
        backend=backend,
        settings=settings,
        session=session,
        notifier=notifier,
        controller=controller,
    )
