"""Settings schema, defaults, persistence, and credential resolution.

Responsibilities:
- Guarantee a complete settings blob (defaults filled in place on read).
- Expose typed views of top-level and per-provider settings.
- Persist settings as YAML with a debounced, fire-and-forget save.
- Resolve provider API keys with deterministic source precedence.

Key types:
- `SodaSettings`: typed snapshot of the top-level settings.
- `SettingsManager`: read/update operations over a host `SettingsBackend`.
- `YamlSettingsBackend`: YAML-file backend used by the CLI host.
- `CredentialSources`: optional value sources for API-key precedence.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
import os
from pathlib import Path
import threading
from typing import Any, Mapping, MutableMapping

import yaml

from .credentials import CredentialStore
from .host import SettingsBackend
from .models.datatypes import SETTINGS_FIELD_NAMES, ProviderSettings
from .parsing import normalize_optional_string, parse_permissive_boolean
from .providers.registry import ProviderRegistry, build_registry
from .telemetry.logger import EventLogger
from .text.dialogue import READ_MODE_DIALOGUE, READ_MODES


SETTINGS_KEY = "soda_tts"
SETTINGS_PATH_ENV_KEY = "SODA_TTS_SETTINGS"
DEFAULT_SETTINGS_PATH = Path("~/.config/soda-tts/settings.yaml")

PROVIDER_ENV_KEYS: dict[str, str] = {
    "openai": "OPENAI_API_KEY",
    "elevenlabs": "ELEVENLABS_API_KEY",
    "lmnt": "LMNT_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "qwen": "DASHSCOPE_API_KEY",
}

_TOP_LEVEL_DEFAULTS: dict[str, Any] = {
    "enabled": True,
    "provider": "",
    "msg_button_enabled": False,
    "msg_button_read_mode": READ_MODE_DIALOGUE,
    "auto_play": False,
    "debug_mode": False,
}


@dataclass(frozen=True, slots=True)
class SodaSettings:
    """Typed snapshot of top-level settings.

    Attributes:
        enabled: Feature toggle; disabling stops any playback.
        provider: Selected provider id (blank when none is selected).
        providers: Per-provider settings keyed by provider id.
        msg_button_enabled: Whether hosts attach a read-aloud affordance to messages.
        msg_button_read_mode: `dialogue` (quoted speech only) or `full`.
        auto_play: Whether hosts read new messages automatically.
        debug_mode: Whether hosts enable debug-level logging.
    """

    enabled: bool = True
    provider: str = ""
    providers: Mapping[str, ProviderSettings] = field(default_factory=dict)
    msg_button_enabled: bool = False
    msg_button_read_mode: str = READ_MODE_DIALOGUE
    auto_play: bool = False
    debug_mode: bool = False


@dataclass(frozen=True, slots=True)
class CredentialSources:
    """Source mappings used for deterministic API-key precedence.

    Attributes:
        cli: Keys explicitly provided on the command line, by provider id.
        secure: Secure credential store consulted per provider.
        env: Environment variables (`OPENAI_API_KEY`, ...).
    """

    cli: Mapping[str, str] = field(default_factory=dict)
    secure: CredentialStore | None = None
    env: Mapping[str, str] = field(default_factory=dict)


def resolve_credential(
    provider_id: str,
    stored_value: str | None,
    sources: CredentialSources | None = None,
) -> str:
    """Resolve an API key for `provider_id`.

    Precedence is `cli` > settings blob > secure store > environment. Returns an
    empty string when no source provides a key.
    """

    resolved_sources = sources if sources is not None else CredentialSources()

    cli_value = normalize_optional_string(resolved_sources.cli.get(provider_id))
    if cli_value is not None:
        return cli_value

    stored = normalize_optional_string(stored_value)
    if stored is not None:
        return stored

    if resolved_sources.secure is not None:
        secure_value = normalize_optional_string(
            resolved_sources.secure.get_api_key(provider_id)
        )
        if secure_value is not None:
            return secure_value

    env_key = PROVIDER_ENV_KEYS.get(provider_id)
    if env_key is not None:
        env_value = normalize_optional_string(resolved_sources.env.get(env_key))
        if env_value is not None:
            return env_value
    return ""


def default_settings_path(env: Mapping[str, str] | None = None) -> Path:
    """Return the settings file path from `SODA_TTS_SETTINGS` or the default."""

    env_map: Mapping[str, str] = os.environ if env is None else env
    override = normalize_optional_string(env_map.get(SETTINGS_PATH_ENV_KEY))
    if override is not None:
        return Path(override).expanduser()
    return DEFAULT_SETTINGS_PATH.expanduser()


class SettingsManager:
    """Read and update the TTS settings stored in a host settings blob."""

    def __init__(
        self,
        backend: SettingsBackend,
        registry: ProviderRegistry | None = None,
        credential_sources: CredentialSources | None = None,
    ) -> None:
        """Initialize with a host backend and the registry supplying defaults."""

        self.backend = backend
        self.registry = registry if registry is not None else build_registry()
        self.credential_sources = credential_sources
        self._logger = EventLogger("settings")

    def ensure(self) -> MutableMapping[str, Any]:
        """Return the live settings section, filling missing defaults in place."""

        blob = self.backend.load()
        section = blob.get(SETTINGS_KEY)
        if not isinstance(section, MutableMapping):
            section = {}
            blob[SETTINGS_KEY] = section

        for key, value in _TOP_LEVEL_DEFAULTS.items():
            section.setdefault(key, value)

        providers = section.get("providers")
        if not isinstance(providers, MutableMapping):
            providers = {}
            section["providers"] = providers

        for descriptor in self.registry.list():
            block = providers.get(descriptor.id)
            if not isinstance(block, MutableMapping):
                block = {}
                providers[descriptor.id] = block
            block.setdefault("api_key", "")
            block.setdefault("model", descriptor.default_model)
            block.setdefault("voice", descriptor.default_voice)
            for key, value in descriptor.default_settings.items():
                block.setdefault(key, value)
        return section

    def snapshot(self) -> SodaSettings:
        """Return a typed snapshot of the current settings."""

        section = self.ensure()
        return SodaSettings(
            enabled=self._flag(section, "enabled"),
            provider=normalize_optional_string(section.get("provider")) or "",
            providers={
                provider_id: self._provider_view(provider_id, block)
                for provider_id, block in section["providers"].items()
                if isinstance(block, Mapping)
            },
            msg_button_enabled=self._flag(section, "msg_button_enabled"),
            msg_button_read_mode=self.read_mode(),
            auto_play=self._flag(section, "auto_play"),
            debug_mode=self._flag(section, "debug_mode"),
        )

    def is_enabled(self) -> bool:
        """Return the feature toggle without resolving provider blocks."""

        return self._flag(self.ensure(), "enabled")

    def is_debug_mode(self) -> bool:
        """Return whether debug logging is requested."""

        return self._flag(self.ensure(), "debug_mode")

    def read_mode(self) -> str:
        """Return the message read mode, falling back to `dialogue`."""

        read_mode = normalize_optional_string(self.ensure().get("msg_button_read_mode"))
        return read_mode if read_mode in READ_MODES else READ_MODE_DIALOGUE

    def selected_provider_id(self) -> str:
        """Return the selected provider id, or an empty string."""

        return normalize_optional_string(self.ensure().get("provider")) or ""

    def provider_settings(self, provider_id: str) -> ProviderSettings | None:
        """Return settings for one provider with its credential resolved."""

        block = self.ensure()["providers"].get(provider_id)
        if not isinstance(block, Mapping):
            return None
        return self._provider_view(provider_id, block)

    def current_provider_settings(self) -> ProviderSettings | None:
        """Return settings for the selected provider, or `None` when unselected."""

        provider_id = self.selected_provider_id()
        if not provider_id:
            return None
        return self.provider_settings(provider_id)

    def update_provider_settings(self, provider_id: str, **updates: Any) -> ProviderSettings:
        """Merge `updates` into a provider block and request a save.

        Raises:
            ValueError: If an update key is not a provider setting field or a
                numeric value is invalid.
        """

        unknown = sorted(set(updates).difference(SETTINGS_FIELD_NAMES))
        if unknown:
            raise ValueError(f"Unsupported provider setting(s): {', '.join(unknown)}.")
        providers = self.ensure()["providers"]
        block = providers.get(provider_id)
        if not isinstance(block, MutableMapping):
            block = {}
            providers[provider_id] = block
        candidate = dict(block)
        candidate.update(updates)
        ProviderSettings.from_mapping(candidate)
        block.update(updates)
        self.save()
        self._logger.info("provider_settings_updated", provider=provider_id, keys=",".join(sorted(updates)))
        return self._provider_view(provider_id, block)

    def select_provider(self, provider_id: str) -> None:
        """Select the active provider and request a save.

        Raises:
            ValueError: If `provider_id` is not registered.
        """

        if provider_id and provider_id not in self.registry:
            supported = ", ".join(self.registry.ids())
            raise ValueError(f"Unknown provider `{provider_id}`; supported: {supported}.")
        self.ensure()["provider"] = provider_id
        self.save()

    def set_read_mode(self, read_mode: str) -> None:
        """Set the message read mode (`dialogue` or `full`)."""

        if read_mode not in READ_MODES:
            supported = ", ".join(sorted(READ_MODES))
            raise ValueError(f"Unsupported read mode `{read_mode}`; supported: {supported}.")
        self.ensure()["msg_button_read_mode"] = read_mode
        self.save()

    def set_enabled(self, enabled: bool) -> None:
        """Set the feature toggle and request a save."""

        self.ensure()["enabled"] = bool(enabled)
        self.save()

    def save(self) -> None:
        """Request persistence; failures are logged, never raised to callers."""

        try:
            self.backend.save()
        except (OSError, yaml.YAMLError) as exc:
            self._logger.failure("save_failed", exc)

    def _provider_view(self, provider_id: str, block: Mapping[str, Any]) -> ProviderSettings:
        """Build a provider settings view with the credential resolved."""

        settings = ProviderSettings.from_mapping(block)
        settings.api_key = resolve_credential(
            provider_id, settings.api_key, self.credential_sources
        )
        return settings

    @staticmethod
    def _flag(section: Mapping[str, Any], key: str) -> bool:
        """Read a permissive boolean flag, falling back to its default."""

        parsed = parse_permissive_boolean(section.get(key))
        if parsed is None:
            return bool(_TOP_LEVEL_DEFAULTS[key])
        return parsed


class YamlSettingsBackend:
    """Settings backend persisted as a YAML mapping with debounced writes."""

    def __init__(self, path: Path, debounce_seconds: float = 0.5) -> None:
        """Initialize the backend; the file is read lazily on first load."""

        self.path = path
        self.debounce_seconds = debounce_seconds
        self._blob: MutableMapping[str, Any] | None = None
        self._pending: dict[str, Any] | None = None
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()
        self._logger = EventLogger("settings")

    def load(self) -> MutableMapping[str, Any]:
        """Return the live settings blob, reading the YAML file once.

        Raises:
            ValueError: If the file does not contain a YAML mapping.
        """

        if self._blob is None:
            self._blob = self._read()
        return self._blob

    def save(self) -> None:
        """Schedule a write after the debounce window, coalescing repeated calls.

        The blob is copied on the calling thread, so the timer thread never
        reads a mapping that is still being mutated.
        """

        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            if self._blob is None:
                return
            self._pending = copy.deepcopy(dict(self._blob))
            if self.debounce_seconds > 0:
                self._timer = threading.Timer(self.debounce_seconds, self._flush_pending)
                self._timer.daemon = True
                self._timer.start()
                return
        self.flush()

    def flush(self) -> None:
        """Write the blob now and cancel any pending debounced write.

        Raises:
            OSError: If the settings file cannot be written.
            yaml.YAMLError: If the blob cannot be serialized.
        """

        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._pending = None
            if self._blob is None:
                return
            self._write(copy.deepcopy(dict(self._blob)))

    def _flush_pending(self) -> None:
        """Timer callback: write the last saved copy and log any failure."""

        with self._lock:
            self._timer = None
            payload, self._pending = self._pending, None
            if payload is None:
                return
            try:
                self._write(payload)
            except (OSError, yaml.YAMLError) as exc:
                self._logger.failure("save_failed", exc, path=str(self.path))

    def _write(self, payload: Mapping[str, Any]) -> None:
        """Serialize `payload` to the settings file (lock held)."""

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            yaml.safe_dump(payload, sort_keys=True, allow_unicode=True),
            encoding="utf-8",
        )

    def _read(self) -> MutableMapping[str, Any]:
        """Parse the YAML file into a mapping, returning `{}` when missing."""

        if not self.path.exists():
            return {}
        payload = yaml.safe_load(self.path.read_text(encoding="utf-8"))
        if payload is None:
            return {}
        if not isinstance(payload, dict):
            raise ValueError(f"Settings file `{self.path}` must contain a top-level mapping.")
        return payload
