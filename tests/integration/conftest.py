"""Integration-test fixtures for deterministic CLI runs without devices or keys."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import sys
from typing import Iterator

import pytest
import yaml

from soda_tts import cli_runtime
from soda_tts.config import PROVIDER_ENV_KEYS, SETTINGS_PATH_ENV_KEY
from soda_tts.host import RELAY_URL_ENV_KEY
from soda_tts.telemetry.logger import configure_logging
from tests.support import FakePlayer, InMemoryCredentialStore


@dataclass
class CliEnvironment:
    """Fakes and paths shared by CLI integration tests."""

    settings_path: Path
    store: InMemoryCredentialStore
    player: FakePlayer

    def write_settings(self, section: dict[str, object]) -> None:
        """Write a settings file with the given `soda_tts` section."""

        self.settings_path.write_text(yaml.safe_dump({"soda_tts": section}), encoding="utf-8")

    def read_settings(self) -> dict[str, object]:
        """Return the persisted `soda_tts` section."""

        return yaml.safe_load(self.settings_path.read_text(encoding="utf-8"))["soda_tts"]


@pytest.fixture(autouse=True)
def cli_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[CliEnvironment]:
    """Isolate CLI runs from real keyrings, audio devices, and environment keys."""

    for env_key in (*PROVIDER_ENV_KEYS.values(), SETTINGS_PATH_ENV_KEY, RELAY_URL_ENV_KEY):
        monkeypatch.delenv(env_key, raising=False)

    environment = CliEnvironment(
        settings_path=tmp_path / "settings.yaml",
        store=InMemoryCredentialStore(),
        player=FakePlayer(auto_finish=True),
    )
    monkeypatch.setattr(cli_runtime, "create_credential_store", lambda: environment.store)
    monkeypatch.setattr(cli_runtime, "SubprocessAudioPlayer", lambda: environment.player)
    yield environment
    configure_logging(sys.stderr, "INFO")
