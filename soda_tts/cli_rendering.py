"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
provider catalogues, voice listings, and controller notifications.
"""

from __future__ import annotations

from typing import Iterable, NoReturn

import typer

from .errors import SodaTTSError, describe_error
from .models.datatypes import ProviderSettings
from .providers.base import ProviderDescriptor


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, SodaTTSError):
        typer.secho(
            f"{command_name} failed: {describe_error(exc)}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


class EchoNotifier:
    """Notifier printing controller messages to the terminal."""

    def notify(self, message: str, level: str = "warning") -> None:
        """Print one message; errors go to stderr in red."""

        if level == "error":
            typer.secho(message, fg=typer.colors.RED, err=True)
        elif level == "info":
            typer.echo(message)
        else:
            typer.secho(message, fg=typer.colors.YELLOW, err=True)


def echo_provider_list(descriptors: Iterable[ProviderDescriptor], selected: str) -> None:
    """Print one row per provider, marking the selected one with `*`."""

    for descriptor in descriptors:
        marker = "*" if descriptor.id == selected else " "
        typer.echo(
            f"{marker} {descriptor.id}: {descriptor.name} "
            f"(model={descriptor.default_model}, voice={descriptor.default_voice}, "
            f"max_chars={descriptor.max_chars})"
        )


def echo_voice_list(descriptor: ProviderDescriptor) -> None:
    """Print the provider's models and voices in catalogue order."""

    if descriptor.models:
        typer.echo("Models:")
        for model in descriptor.models:
            suffix = " (default)" if model.id == descriptor.default_model else ""
            typer.echo(f"  {model.id}: {model.name}{suffix}")
    typer.echo("Voices:")
    for voice in descriptor.voices:
        details = ", ".join(item for item in (voice.language, voice.category) if item)
        label = f"{voice.name} [{details}]" if details else voice.name
        suffix = " (default)" if voice.id == descriptor.default_voice else ""
        typer.echo(f"  {voice.id}: {label}{suffix}")


def echo_provider_settings(provider_id: str, settings: ProviderSettings) -> None:
    """Print non-secret provider settings; the credential shows as present or not set."""

    typer.echo(f"Provider: {provider_id}")
    for key, value in settings.as_mapping().items():
        if key == "api_key":
            value = "present" if settings.credential else "not set"
        elif value is None or value == "":
            value = "(default)"
        typer.echo(f"  {key}: {value}")
