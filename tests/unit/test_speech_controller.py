"""Unit tests for the dispatch controller state machine."""

from __future__ import annotations

from pathlib import Path

import pytest
import requests

from soda_tts.audio import artifact as artifact_module
from soda_tts.config import CredentialSources
from soda_tts.errors import HttpError, PlaybackError, SodaTTSError
from soda_tts.playback.controller import (
    TEST_PHRASE,
    ControllerState,
    PlaybackOutcome,
)


def test_play_success_starts_playback_and_retains_artifact(controller_fixture) -> None:  # type: ignore[no-untyped-def]
    """Normalized text is synthesized, retained, and played."""

    fx = controller_fixture

    outcome = fx.controller.play("**Hello** *waves* there", trigger="msg-1")

    assert outcome is PlaybackOutcome.PLAYING
    assert fx.controller.state is ControllerState.PLAYING
    assert fx.adapter.calls[0][0] == "Hello there"
    assert fx.adapter.calls[0][1].credential == "test-key"
    assert fx.session.last_artifact is fx.player.handles[0].artifact
    fx.controller.stop()


def test_same_trigger_twice_toggles_off_without_network(controller_fixture) -> None:  # type: ignore[no-untyped-def]
    """A second request from the playing trigger only stops playback."""

    fx = controller_fixture
    fx.controller.play("Hello", trigger="msg-1")

    outcome = fx.controller.play("Hello", trigger="msg-1")

    assert outcome is PlaybackOutcome.STOPPED
    assert fx.controller.state is ControllerState.IDLE
    assert len(fx.adapter.calls) == 1
    assert fx.player.handles[0].stopped is True


def test_different_trigger_interrupts_current_playback(controller_fixture) -> None:  # type: ignore[no-untyped-def]
    """A request from another trigger stops the current audio first."""

    fx = controller_fixture
    fx.controller.play("First", trigger="msg-1")

    outcome = fx.controller.play("Second", trigger="msg-2")

    assert outcome is PlaybackOutcome.PLAYING
    first, second = fx.player.handles
    assert first.stopped is True
    assert first.artifact.released is True
    assert fx.session.get_current_audio() is second.artifact
    assert fx.controller.active_trigger == "msg-2"
    fx.controller.stop()


def test_missing_provider_fails_without_synthesis(controller_fixture) -> None:  # type: ignore[no-untyped-def]
    """No selected provider yields a selection message and no adapter call."""

    fx = controller_fixture
    fx.settings.ensure()["provider"] = ""

    outcome = fx.controller.play("Hello")

    assert outcome is PlaybackOutcome.FAILED
    assert fx.adapter.calls == []
    assert fx.notifier.texts == ["Select a TTS provider first."]


def test_empty_normalized_text_fails_without_synthesis(controller_fixture) -> None:  # type: ignore[no-untyped-def]
    """Markup-only input never reaches the adapter."""

    fx = controller_fixture

    outcome = fx.controller.play("*sighs* 😔")

    assert outcome is PlaybackOutcome.FAILED
    assert fx.adapter.calls == []
    assert fx.controller.state is ControllerState.IDLE
    assert "Nothing to read" in fx.notifier.texts[0]


def test_text_over_provider_limit_is_rejected(controller_fixture) -> None:  # type: ignore[no-untyped-def]
    """Text longer than `max_chars` is rejected before synthesis."""

    fx = controller_fixture

    outcome = fx.controller.play("x" * 51)

    assert outcome is PlaybackOutcome.FAILED
    assert fx.adapter.calls == []
    assert "at most 50" in fx.notifier.texts[0]


def test_adapter_failure_returns_to_idle_with_message(controller_fixture) -> None:  # type: ignore[no-untyped-def]
    """Vendor failures are reported and the controller goes idle."""

    fx = controller_fixture
    fx.adapter.error = HttpError(
        "HTTP 401: bad key", status_code=401, excerpt="bad key", provider="Fake TTS"
    )

    outcome = fx.controller.play("Hello")

    assert outcome is PlaybackOutcome.FAILED
    assert fx.controller.state is ControllerState.IDLE
    assert fx.notifier.messages == [("Fake TTS request failed (HTTP 401): bad key", "error")]
    assert fx.session.last_artifact is None


def test_missing_credential_is_reported(controller_fixture) -> None:  # type: ignore[no-untyped-def]
    """A blank key surfaces the provider-specific credential message."""

    fx = controller_fixture
    fx.settings.ensure()["providers"]["fake"]["api_key"] = ""

    outcome = fx.controller.play("Hello")

    assert outcome is PlaybackOutcome.FAILED
    assert fx.notifier.texts == ["Fake TTS API key is not configured."]


def test_superseded_synthesis_is_abandoned_and_released(controller_fixture) -> None:  # type: ignore[no-untyped-def]
    """A request arriving mid-synthesis wins; the late result is discarded."""

    fx = controller_fixture
    nested: list[PlaybackOutcome] = []
    fx.adapter.during_synthesis = lambda: nested.append(fx.controller.play("Newer", "msg-2"))

    outcome = fx.controller.play("Older", trigger="msg-1")

    assert nested == [PlaybackOutcome.PLAYING]
    assert outcome is PlaybackOutcome.ABANDONED
    assert len(fx.player.handles) == 1
    assert fx.controller.active_trigger == "msg-2"
    assert fx.session.last_artifact is fx.player.handles[0].artifact
    fx.controller.stop()


def test_stop_during_synthesis_abandons_result(controller_fixture) -> None:  # type: ignore[no-untyped-def]
    """Stopping while synthesizing prevents the result from playing."""

    fx = controller_fixture
    fx.adapter.during_synthesis = fx.controller.stop

    outcome = fx.controller.play("Hello", trigger="msg-1")

    assert outcome is PlaybackOutcome.ABANDONED
    assert fx.player.handles == []
    assert fx.controller.state is ControllerState.IDLE


def test_natural_end_returns_to_idle(controller_fixture) -> None:  # type: ignore[no-untyped-def]
    """Playback completion moves the controller back to idle."""

    fx = controller_fixture
    fx.controller.play("Hello", trigger="msg-1")

    fx.player.handles[0].finish()

    assert fx.controller.state is ControllerState.IDLE
    assert fx.controller.wait_until_idle(0) is True
    assert fx.player.handles[0].artifact.released is True


def test_playback_error_is_reported(controller_fixture) -> None:  # type: ignore[no-untyped-def]
    """Player errors are surfaced and the controller returns to idle."""

    fx = controller_fixture
    fx.controller.play("Hello")

    fx.player.handles[0].fail(PlaybackError("Audio player exited with status 1."))

    assert fx.controller.state is ControllerState.IDLE
    assert fx.notifier.texts == ["Audio player exited with status 1."]


def test_player_start_failure_fails_request(controller_fixture) -> None:  # type: ignore[no-untyped-def]
    """A player that cannot start reports the failure."""

    fx = controller_fixture
    fx.player.fail_with = PlaybackError("No audio player found for this audio format.")

    outcome = fx.controller.play("Hello")

    assert outcome is PlaybackOutcome.FAILED
    assert fx.controller.state is ControllerState.IDLE
    assert fx.session.last_artifact is not None


def test_read_message_dialogue_mode(controller_fixture) -> None:  # type: ignore[no-untyped-def]
    """Dialogue mode reads only quoted speech; messages without any are skipped."""

    fx = controller_fixture

    outcome = fx.controller.read_message('*nods* "Sure thing." She leaves.', trigger="m")
    assert outcome is PlaybackOutcome.PLAYING
    assert fx.adapter.calls[-1][0] == "Sure thing."
    fx.controller.stop()

    skipped = fx.controller.read_message("No quotes here.", trigger="m2")
    assert skipped is PlaybackOutcome.SKIPPED
    assert fx.notifier.messages[-1] == ("No dialogue found in this message.", "info")

    full = fx.controller.read_message("No quotes here.", trigger="m3", read_mode="full")
    assert full is PlaybackOutcome.PLAYING
    fx.controller.stop()


def test_read_message_same_trigger_toggles_off(controller_fixture) -> None:  # type: ignore[no-untyped-def]
    """Reading the playing message again stops it."""

    fx = controller_fixture
    fx.controller.read_message('"Hi."', trigger="m")

    assert fx.controller.read_message('"Hi."', trigger="m") is PlaybackOutcome.STOPPED
    assert len(fx.adapter.calls) == 1


def test_disabled_feature_skips_and_toggle_off_stops(controller_fixture) -> None:  # type: ignore[no-untyped-def]
    """Turning the feature off stops playback and later requests are skipped."""

    fx = controller_fixture
    fx.controller.play("Hello", trigger="m")

    fx.controller.set_enabled(False)

    assert fx.player.handles[0].stopped is True
    assert fx.controller.play("Hello again") is PlaybackOutcome.SKIPPED
    assert len(fx.adapter.calls) == 1


def test_provider_change_resets_session_and_saves(controller_fixture) -> None:  # type: ignore[no-untyped-def]
    """Changing provider stops playback and persists the selection."""

    fx = controller_fixture
    fx.controller.play("Hello", trigger="m")
    saves_before = fx.backend.save_count

    fx.controller.on_provider_changed("")

    assert fx.player.handles[0].stopped is True
    assert fx.settings.selected_provider_id() == ""
    assert fx.backend.save_count == saves_before + 1
    with pytest.raises(ValueError, match="Unknown provider"):
        fx.controller.on_provider_changed("nope")


def test_test_provider_plays_fixed_phrase(controller_fixture) -> None:  # type: ignore[no-untyped-def]
    """The connection test synthesizes the fixed phrase."""

    fx = controller_fixture

    assert fx.controller.test_provider() is PlaybackOutcome.PLAYING
    assert fx.adapter.calls[0][0] == TEST_PHRASE
    fx.controller.stop()


def test_save_last_audio_after_stop(controller_fixture, tmp_path: Path) -> None:  # type: ignore[no-untyped-def]
    """The last produced audio stays downloadable after playback stops."""

    fx = controller_fixture
    with pytest.raises(SodaTTSError, match="No audio"):
        fx.controller.save_last_audio(tmp_path / "none.mp3")

    fx.controller.play("Hello", trigger="m")
    fx.controller.stop()
    written = fx.controller.save_last_audio(tmp_path)

    assert written.parent == tmp_path
    assert written.suffix == ".mp3"
    assert written.read_bytes() == b"ID3fake-audio"


def test_remote_artifact_materialize_failure_does_not_block_playback(
    controller_fixture, monkeypatch: pytest.MonkeyPatch
) -> None:  # type: ignore[no-untyped-def]
    """Download caching failures are logged and playback proceeds."""

    def _failing_get(url: str, **kwargs: object) -> object:
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(artifact_module.requests, "get", _failing_get)
    fx = controller_fixture
    fx.adapter.remote_url = "https://oss.example/a.wav"

    outcome = fx.controller.play("Hello")

    assert outcome is PlaybackOutcome.PLAYING
    assert fx.player.handles[0].artifact.remote is True
    assert fx.notifier.messages == []
    fx.controller.stop()


class _BrokenSecureStore:
    """Secure store raising the way keyring does without a backend."""

    def get_api_key(self, provider_id: str) -> str | None:
        raise RuntimeError("No recommended backend was available.")


def test_invalid_persisted_setting_fails_without_raising(controller_fixture) -> None:  # type: ignore[no-untyped-def]
    """A corrupt provider block is reported and the controller stays idle."""

    fx = controller_fixture
    fx.backend.blob["soda_tts"]["providers"]["fake"]["speed"] = "fast"

    outcome = fx.controller.play("Hello", trigger="msg-1")

    assert outcome is PlaybackOutcome.FAILED
    assert fx.controller.state is ControllerState.IDLE
    assert fx.controller.active_trigger is None
    assert fx.adapter.calls == []
    message, level = fx.notifier.messages[-1]
    assert level == "error"
    assert "`speed` must be a number" in message


def test_credential_lookup_error_fails_without_raising(controller_fixture) -> None:  # type: ignore[no-untyped-def]
    """A secure-store error while resolving the key degrades to a failure notice."""

    fx = controller_fixture
    fx.backend.blob["soda_tts"]["providers"]["fake"]["api_key"] = ""
    fx.settings.credential_sources = CredentialSources(secure=_BrokenSecureStore())  # type: ignore[arg-type]

    outcome = fx.controller.play("Hello", trigger="msg-1")

    assert outcome is PlaybackOutcome.FAILED
    assert fx.controller.state is ControllerState.IDLE
    assert fx.adapter.calls == []
    assert "No recommended backend was available." in fx.notifier.texts[-1]


def test_settings_failure_still_stops_current_playback(controller_fixture) -> None:  # type: ignore[no-untyped-def]
    """A new request that fails on settings does not leave old audio playing."""

    fx = controller_fixture
    fx.controller.play("First", trigger="msg-1")
    fx.backend.blob["soda_tts"]["providers"]["fake"]["speed"] = "fast"

    outcome = fx.controller.play("Second", trigger="msg-2")

    assert outcome is PlaybackOutcome.FAILED
    assert fx.player.handles[0].stopped is True
    assert fx.session.active is None
    assert fx.controller.state is ControllerState.IDLE


def test_read_message_unknown_mode_fails_with_notice(controller_fixture) -> None:  # type: ignore[no-untyped-def]
    """An unsupported read mode is reported instead of raised."""

    fx = controller_fixture

    outcome = fx.controller.read_message('"Hi"', trigger="msg-1", read_mode="whisper")

    assert outcome is PlaybackOutcome.FAILED
    assert fx.adapter.calls == []
    assert "Unsupported read mode `whisper`" in fx.notifier.texts[-1]
