"""Command-line interface for Soda TTS.

Responsibilities:
- Expose provider catalogue, settings, and credential management commands.
- Read text aloud through the dispatch controller or write audio files.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

from pathlib import Path
import sys
from typing import Annotated

import typer

from .cli_rendering import (
    EchoNotifier,
    echo_provider_list,
    echo_provider_settings,
    echo_voice_list,
    exit_with_command_error,
)
from .cli_runtime import CliRuntime, build_cli_runtime
from .config import PROVIDER_ENV_KEYS
from .errors import SodaTTSError, UnsupportedInputError
from .models.datatypes import ProviderSettings
from .parsing import normalize_optional_string
from .playback.controller import PlaybackOutcome
from .providers.base import ProviderDescriptor
from .telemetry.logger import configure_logging
from .text.chunking import split_text_by_length
from .text.dialogue import READ_MODES
from .text.markup import preprocess_for_tts

app = typer.Typer(
    name="soda-tts",
    no_args_is_help=True,
    help="Soda TTS CLI.",
)

SettingsOption = Annotated[
    Path | None,
    typer.Option(
        "--settings",
        help="Settings YAML path (default: $SODA_TTS_SETTINGS or ~/.config/soda-tts/settings.yaml).",
    ),
]
ApiKeyOption = Annotated[
    str | None,
    typer.Option(
        "--api-key",
        help="API key for the selected provider (overrides stored keys for this run).",
    ),
]

_PLAYBACK_POLL_SECONDS = 0.2


def _open_runtime(
    command_name: str,
    settings_file: Path | None,
    api_key: str | None = None,
) -> CliRuntime:
    """Build the command runtime and route logs according to `debug_mode`."""

    try:
        runtime = build_cli_runtime(settings_file, EchoNotifier(), cli_api_key=api_key)
        debug_mode = runtime.settings.is_debug_mode()
    except Exception as exc:
        exit_with_command_error(command_name, exc)
    configure_logging(sys.stderr, "DEBUG" if debug_mode else "WARNING")
    return runtime


def _require_descriptor(runtime: CliRuntime, provider_id: str | None) -> ProviderDescriptor:
    """Return the descriptor for `provider_id` or the selected provider."""

    resolved = provider_id if provider_id is not None else runtime.settings.selected_provider_id()
    return runtime.registry.require(resolved)


def _wait_for_playback(runtime: CliRuntime) -> None:
    """Block until playback ends; Ctrl+C stops it."""

    try:
        while not runtime.controller.wait_until_idle(_PLAYBACK_POLL_SECONDS):
            pass
    except KeyboardInterrupt:
        runtime.controller.stop()
        typer.echo("Playback stopped.")


@app.command("providers")
def providers_command(settings_file: SettingsOption = None) -> None:
    """List supported TTS providers; `*` marks the selected one."""

    runtime = _open_runtime("providers", settings_file)
    echo_provider_list(runtime.registry.list(), runtime.settings.selected_provider_id())


@app.command("voices")
def voices_command(
    provider: Annotated[str, typer.Argument(help="Provider id, for example `openai`.")],
    settings_file: SettingsOption = None,
) -> None:
    """List models and voices offered by one provider."""

    runtime = _open_runtime("voices", settings_file)
    try:
        descriptor = _require_descriptor(runtime, provider)
    except SodaTTSError as exc:
        exit_with_command_error("voices", exc)
    echo_voice_list(descriptor)


@app.command("use")
def use_command(
    provider: Annotated[str, typer.Argument(help="Provider id to select.")],
    settings_file: SettingsOption = None,
) -> None:
    """Select the active TTS provider."""

    runtime = _open_runtime("use", settings_file)
    try:
        runtime.controller.on_provider_changed(provider)
        runtime.close()
    except Exception as exc:
        exit_with_command_error("use", exc)
    typer.echo(f"Selected provider: {provider}")


@app.command("configure")
def configure_command(
    provider: Annotated[str, typer.Argument(help="Provider id to configure.")],
    model: Annotated[str | None, typer.Option("--model", help="Model id.")] = None,
    voice: Annotated[str | None, typer.Option("--voice", help="Voice id.")] = None,
    speed: Annotated[float | None, typer.Option("--speed", help="Speaking-rate multiplier.")] = None,
    stability: Annotated[
        float | None, typer.Option("--stability", help="Voice stability (ElevenLabs).")
    ] = None,
    similarity_boost: Annotated[
        float | None,
        typer.Option("--similarity-boost", help="Similarity boost (ElevenLabs)."),
    ] = None,
    language: Annotated[
        str | None,
        typer.Option("--language", help="Language hint (LMNT `language`, Qwen `language_type`)."),
    ] = None,
    instructions: Annotated[
        str | None,
        typer.Option("--instructions", help="Style instructions (OpenAI gpt-4o-mini-tts)."),
    ] = None,
    settings_file: SettingsOption = None,
) -> None:
    """Show or update one provider's model, voice, and tuning settings."""

    runtime = _open_runtime("configure", settings_file)
    candidates = {
        "model": model,
        "voice": voice,
        "speed": speed,
        "stability": stability,
        "similarity_boost": similarity_boost,
        "language_hint": language,
        "instructions": instructions,
    }
    updates = {key: value for key, value in candidates.items() if value is not None}
    try:
        descriptor = _require_descriptor(runtime, provider)
        if updates.get("voice") and descriptor.find_voice(updates["voice"]) is None:
            typer.secho(
                f"Voice `{updates['voice']}` is not in the {descriptor.name} catalogue; "
                "using it as a custom voice id.",
                fg=typer.colors.YELLOW,
                err=True,
            )
        if updates:
            current = runtime.settings.update_provider_settings(descriptor.id, **updates)
            runtime.close()
        else:
            current = runtime.settings.provider_settings(descriptor.id)
    except Exception as exc:
        exit_with_command_error("configure", exc)
    if current is not None:
        echo_provider_settings(descriptor.id, current)


@app.command("credentials")
def credentials_command(
    provider: Annotated[str, typer.Argument(help="Provider id whose API key to manage.")],
    set_api_key: Annotated[
        bool,
        typer.Option(
            "--set-api-key",
            help="Prompt for API key with hidden input and store it securely.",
        ),
    ] = False,
    clear_api_key: Annotated[
        bool,
        typer.Option(
            "--clear-api-key",
            help="Clear stored API key from secure credential storage.",
        ),
    ] = False,
    settings_file: SettingsOption = None,
) -> None:
    """Manage securely stored provider API keys."""

    if set_api_key and clear_api_key:
        exit_with_command_error(
            "credentials",
            SodaTTSError(
                "`--set-api-key` and `--clear-api-key` cannot be used together.",
                hint="Run one credentials action per command invocation.",
            ),
        )

    runtime = _open_runtime("credentials", settings_file)
    try:
        descriptor = _require_descriptor(runtime, provider)
    except SodaTTSError as exc:
        exit_with_command_error("credentials", exc)
    credential_store = runtime.credential_store

    if set_api_key:
        prompted_api_key = normalize_optional_string(
            typer.prompt(
                f"{descriptor.name} API key (hidden input)",
                default="",
                hide_input=True,
                show_default=False,
            )
        )
        if prompted_api_key is None:
            exit_with_command_error(
                "credentials",
                SodaTTSError(
                    "No API key entered.",
                    hint="Provide a non-empty API key when using `--set-api-key`.",
                ),
            )
        try:
            credential_store.set_api_key(descriptor.id, prompted_api_key)
        except Exception as exc:
            exit_with_command_error(
                "credentials",
                SodaTTSError(
                    f"Failed to store API key securely: {exc}",
                    hint="Install and configure a keyring backend and retry.",
                ),
            )
        typer.echo(f"{descriptor.name} API key stored in secure credential storage.")
        return

    if clear_api_key:
        removed = credential_store.clear_api_key(descriptor.id)
        if removed:
            typer.echo(f"Stored {descriptor.name} API key cleared from secure credential storage.")
        else:
            typer.echo(f"No stored {descriptor.name} API key found in secure credential storage.")
        return

    availability = "available" if credential_store.is_available() else "unavailable"
    stored_status = "present" if credential_store.get_api_key(descriptor.id) else "not set"
    resolved = runtime.settings.provider_settings(descriptor.id)
    effective_status = "present" if resolved is not None and resolved.credential else "not set"
    typer.echo(f"Secure credential storage: {availability}")
    typer.echo(f"Stored {descriptor.name} API key: {stored_status}")
    typer.echo(f"Environment variable: {PROVIDER_ENV_KEYS.get(descriptor.id, '(none)')}")
    typer.echo(f"Effective API key: {effective_status}")


@app.command("speak")
def speak_command(
    text: Annotated[str, typer.Argument(help="Text (markdown allowed) to read aloud.")],
    mode: Annotated[
        str | None,
        typer.Option("--mode", help="Read mode: `full` or `dialogue` (quoted speech only)."),
    ] = None,
    save: Annotated[
        Path | None,
        typer.Option("--save", help="Also write the produced audio to this file or directory."),
    ] = None,
    api_key: ApiKeyOption = None,
    settings_file: SettingsOption = None,
) -> None:
    """Read text aloud with the selected provider and wait for playback to end."""

    if mode is not None and mode not in READ_MODES:
        exit_with_command_error(
            "speak",
            SodaTTSError(
                f"Unsupported read mode `{mode}`.",
                hint="Use `--mode full` or `--mode dialogue`.",
            ),
        )

    runtime = _open_runtime("speak", settings_file, api_key)
    if mode is None:
        outcome = runtime.controller.play(text, trigger="cli")
    else:
        outcome = runtime.controller.read_message(text, trigger="cli", read_mode=mode)
    if outcome is PlaybackOutcome.FAILED:
        raise typer.Exit(code=1)
    if outcome is not PlaybackOutcome.PLAYING:
        return

    _wait_for_playback(runtime)
    if save is not None:
        try:
            written = runtime.controller.save_last_audio(save)
        except Exception as exc:
            exit_with_command_error("speak", exc)
        typer.echo(f"Audio saved: {written}")


@app.command("synthesize")
def synthesize_command(
    text: Annotated[str, typer.Argument(help="Text (markdown allowed) to synthesize.")],
    out: Annotated[Path, typer.Option("--out", help="Output audio file path.")],
    split: Annotated[
        int | None,
        typer.Option(
            "--split",
            min=1,
            help="Split text into chunks of at most N characters, one file per chunk.",
        ),
    ] = None,
    api_key: ApiKeyOption = None,
    settings_file: SettingsOption = None,
) -> None:
    """Synthesize text with the selected provider and write audio files without playing."""

    runtime = _open_runtime("synthesize", settings_file, api_key)
    try:
        descriptor = _require_descriptor(runtime, None)
        normalized = preprocess_for_tts(text)
        if not normalized:
            raise UnsupportedInputError(
                "Nothing to synthesize after removing markup.",
                provider=descriptor.name,
            )
        chunks = split_text_by_length(normalized, split) if split is not None else [normalized]
        oversized = [len(chunk) for chunk in chunks if len(chunk) > descriptor.max_chars]
        if oversized:
            raise UnsupportedInputError(
                f"Text is {max(oversized)} characters; {descriptor.name} accepts at most "
                f"{descriptor.max_chars}.",
                provider=descriptor.name,
                hint=f"Use `--split {descriptor.max_chars}` or shorter.",
            )
        provider_settings = (
            runtime.settings.provider_settings(descriptor.id) or ProviderSettings()
        )
        written_paths: list[Path] = []
        for index, chunk in enumerate(chunks, start=1):
            artifact = descriptor.synthesize(chunk, provider_settings)
            suffix = out.suffix or artifact.file_extension
            if len(chunks) == 1:
                target = out.with_suffix(suffix)
            else:
                target = out.with_name(f"{out.stem}_{index:03d}{suffix}")
            written_paths.append(artifact.save(target))
            artifact.release()
    except Exception as exc:
        exit_with_command_error("synthesize", exc)

    for path in written_paths:
        typer.echo(f"Audio written: {path}")


@app.command("test")
def test_command(
    api_key: ApiKeyOption = None,
    settings_file: SettingsOption = None,
) -> None:
    """Play a short test phrase with the selected provider."""

    runtime = _open_runtime("test", settings_file, api_key)
    outcome = runtime.controller.test_provider()
    if outcome is PlaybackOutcome.FAILED:
        raise typer.Exit(code=1)
    if outcome is PlaybackOutcome.PLAYING:
        _wait_for_playback(runtime)
        typer.echo("TTS provider test finished.")


def main() -> None:
    """CLI entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()
