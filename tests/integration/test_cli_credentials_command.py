"""Integration tests for per-provider secure credential commands."""

from typer.testing import CliRunner

from soda_tts.cli import app


def test_credentials_set_and_status(cli_environment) -> None:  # type: ignore[no-untyped-def]
    """Setting a key stores it for that provider only."""

    runner = CliRunner()
    settings_args = ["--settings", str(cli_environment.settings_path)]

    stored = runner.invoke(
        app, ["credentials", "lmnt", "--set-api-key", *settings_args], input="lm-secret\n"
    )
    status = runner.invoke(app, ["credentials", "lmnt", *settings_args])

    assert stored.exit_code == 0, stored.output
    assert "LMNT API key stored" in stored.output
    assert cli_environment.store.keys == {"lmnt": "lm-secret"}
    assert status.exit_code == 0, status.output
    assert "Stored LMNT API key: present" in status.output
    assert "Environment variable: LMNT_API_KEY" in status.output
    assert "Effective API key: present" in status.output
    assert "lm-secret" not in status.output


def test_credentials_clear(cli_environment) -> None:  # type: ignore[no-untyped-def]
    """Clearing reports whether a stored key existed."""

    cli_environment.store.keys["openai"] = "sk-x"
    runner = CliRunner()
    settings_args = ["--settings", str(cli_environment.settings_path)]

    first = runner.invoke(app, ["credentials", "openai", "--clear-api-key", *settings_args])
    second = runner.invoke(app, ["credentials", "openai", "--clear-api-key", *settings_args])

    assert "Stored OpenAI TTS API key cleared" in first.output
    assert "No stored OpenAI TTS API key found" in second.output


def test_credentials_conflicting_flags_fail(cli_environment) -> None:  # type: ignore[no-untyped-def]
    """Set and clear cannot be combined."""

    runner = CliRunner()

    result = runner.invoke(
        app,
        [
            "credentials",
            "openai",
            "--set-api-key",
            "--clear-api-key",
            "--settings",
            str(cli_environment.settings_path),
        ],
    )

    assert result.exit_code == 1
    assert "cannot be used together" in result.output


def test_credentials_empty_prompt_fails(cli_environment) -> None:  # type: ignore[no-untyped-def]
    """An empty prompted key is rejected."""

    runner = CliRunner()

    result = runner.invoke(
        app,
        ["credentials", "qwen", "--set-api-key", "--settings", str(cli_environment.settings_path)],
        input="\n",
    )

    assert result.exit_code == 1
    assert "No API key entered." in result.output
    assert cli_environment.store.keys == {}
