"""Secure credential storage helpers for provider API keys.

Responsibilities:
- Persist per-provider API keys in an OS-backed secure credential store.
- Provide deterministic read/write/delete operations keyed by provider id.
- Avoid logging or exposing secret values in diagnostics.

Key types:
- `CredentialStore`: interface for provider credential persistence.
- `KeyringCredentialStore`: keyring-backed secure credential storage.
"""

from __future__ import annotations

from dataclasses import dataclass


_DEFAULT_SERVICE_NAME = "soda-tts"


class CredentialStore:
    """Interface for secure provider credential operations."""

    def is_available(self) -> bool:
        """Return whether secure credential operations are available."""

        raise NotImplementedError

    def get_api_key(self, provider_id: str) -> str | None:
        """Load the stored API key for a provider, when available."""

        raise NotImplementedError

    def set_api_key(self, provider_id: str, api_key: str) -> None:
        """Persist an API key for a provider."""

        raise NotImplementedError

    def clear_api_key(self, provider_id: str) -> bool:
        """Delete a provider API key and return whether one existed."""

        raise NotImplementedError


@dataclass(slots=True)
class KeyringCredentialStore(CredentialStore):
    """Secure credential store backed by the `keyring` package."""

    service_name: str = _DEFAULT_SERVICE_NAME

    def _load_keyring_module(self):
        """Import and return the `keyring` module, or `None` when it is missing."""

        try:
            import keyring  # type: ignore
        except ImportError:
            return None
        return keyring

    @staticmethod
    def _account_name(provider_id: str) -> str:
        """Return the keyring account name used for one provider."""

        return f"{provider_id}_api_key"

    def is_available(self) -> bool:
        """Return `True` when `keyring` can be imported in this environment."""

        return self._load_keyring_module() is not None

    def get_api_key(self, provider_id: str) -> str | None:
        """Get a normalized API key from keyring, returning `None` when missing."""

        keyring_module = self._load_keyring_module()
        if keyring_module is None:
            return None
        try:
            value = keyring_module.get_password(
                self.service_name, self._account_name(provider_id)
            )
        except keyring_module.errors.KeyringError:
            # No usable backend (e.g. headless host); behave as if nothing is stored.
            return None
        if value is None:
            return None
        normalized = value.strip()
        if not normalized:
            return None
        return normalized

    def set_api_key(self, provider_id: str, api_key: str) -> None:
        """Persist a normalized API key in keyring or raise when unavailable."""

        keyring_module = self._load_keyring_module()
        if keyring_module is None:
            raise RuntimeError(
                "Secure credential storage is unavailable because `keyring` is not "
                "installed. Install `keyring` to persist API keys securely."
            )

        normalized = api_key.strip()
        if not normalized:
            raise ValueError("API key must be a non-empty string.")
        keyring_module.set_password(
            self.service_name, self._account_name(provider_id), normalized
        )

    def clear_api_key(self, provider_id: str) -> bool:
        """Remove a provider API key from keyring and report if one was present."""

        keyring_module = self._load_keyring_module()
        if keyring_module is None:
            return False

        existing = self.get_api_key(provider_id)
        if existing is None:
            return False

        keyring_module.delete_password(self.service_name, self._account_name(provider_id))
        return True


def create_credential_store() -> CredentialStore:
    """Create the default secure credential store implementation."""

    return KeyringCredentialStore()
