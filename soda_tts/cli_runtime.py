"""CLI runtime assembly helpers.

This module wires settings persistence, credential sources, provider
transport, playback, and the dispatch controller for one CLI invocation,
keeping command functions free of construction details.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Mapping

from .audio.player import AudioPlayer, SubprocessAudioPlayer
from .config import (
    CredentialSources,
    SettingsManager,
    YamlSettingsBackend,
    default_settings_path,
)
from .credentials import CredentialStore, create_credential_store
from .host import HostServices, Notifier
from .parsing import normalize_optional_string
from .playback.controller import SpeechController
from .playback.session import PlaybackSession
from .providers.registry import ProviderRegistry, build_registry
from .providers.transport import HttpTransport


@dataclass(slots=True)
class CliRuntime:
    """Collaborators assembled for one CLI command."""

    backend: YamlSettingsBackend
    registry: ProviderRegistry
    settings: SettingsManager
    controller: SpeechController
    credential_store: CredentialStore

    def close(self) -> None:
        """Stop playback and write pending settings changes."""

        self.controller.stop()
        self.backend.flush()


def resolve_settings_path(settings_file: Path | None, env: Mapping[str, str] | None = None) -> Path:
    """Return the explicit settings path, or the environment/default location."""

    if settings_file is not None:
        return settings_file.expanduser()
    return default_settings_path(env)


def build_cli_runtime(
    settings_file: Path | None,
    notifier: Notifier,
    cli_api_key: str | None = None,
    env: Mapping[str, str] | None = None,
    player: AudioPlayer | None = None,
) -> CliRuntime:
    """Assemble settings, registry, session, and controller for a command.

    An explicit `cli_api_key` applies to the provider selected in settings.
    """

    env_map: Mapping[str, str] = os.environ if env is None else env
    credential_store = create_credential_store()
    host = HostServices.from_env(env_map, credential_store=credential_store)
    registry = build_registry(HttpTransport.from_host(host))
    backend = YamlSettingsBackend(resolve_settings_path(settings_file, env_map))

    settings = SettingsManager(backend, registry)
    cli_values: dict[str, str] = {}
    normalized_key = normalize_optional_string(cli_api_key)
    selected = settings.selected_provider_id()
    if normalized_key is not None and selected:
        cli_values[selected] = normalized_key
    settings.credential_sources = CredentialSources(
        cli=cli_values,
        secure=credential_store,
        env=env_map,
    )

    session = PlaybackSession(player if player is not None else SubprocessAudioPlayer())
    controller = SpeechController(registry, settings, session, notifier=notifier)
    return CliRuntime(
        backend=backend,
        registry=registry,
        settings=settings,
        controller=controller,
        credential_store=credential_store,
    )
