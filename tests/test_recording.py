from typing import Any, Sequence

import pytest

from keyoverlay.commands import KeyOverlay
from keyoverlay.config import OverlayConfig
from keyoverlay.errors import RecordingStateError, UserAbort
from keyoverlay.host import ScriptedHost
from keyoverlay.keys import KeySequence, KeyStroke, NamedCommand, RecordedMacro
from keyoverlay.overlays import OverlayRegistry
from keyoverlay.recording import MacroRecordingSession

CONTROL_BINDINGS = {
    "f3": NamedCommand("start-recording"),
    "f4": NamedCommand("end-recording"),
    "f5": NamedCommand("abort-recording"),
    "x": NamedCommand("forward-char"),
    "y": NamedCommand("backward-char"),
}


def make_overlay(script: Sequence[Any] = (), **config: Any) -> KeyOverlay:
    host = ScriptedHost(
        script, commands=["forward-char", "backward-char"], bindings=CONTROL_BINDINGS
    )
    return KeyOverlay(host, OverlayConfig(**config))


def press(overlay: KeyOverlay, *keys: str) -> None:
    for key in keys:
        overlay.handle_key(KeyStroke.parse(key))


def make_recorder(history_size: int = 16) -> MacroRecordingSession:
    return MacroRecordingSession(
        OverlayRegistry(), ScriptedHost(), history_size=history_size
    )


def test_direct_recording_captures_keys_between_start_and_end() -> None:
    overlay = make_overlay()

    press(overlay, "f3", "x", "y", "f4")

    assert overlay.recorder.last() == RecordedMacro(KeySequence.parse("x y").strokes)
    assert overlay.recorder.recording is False
    assert overlay.host.messages[0] == "Recording macro"


def test_start_switches_dispatch_on() -> None:
    recorder = make_recorder()

    recorder.start()

    assert recorder.registry.enabled is True
    assert recorder.recording is True


def test_double_start_is_rejected() -> None:
    recorder = make_recorder()
    recorder.start()

    with pytest.raises(RecordingStateError):
        recorder.start()


def test_end_or_abort_while_idle_is_rejected() -> None:
    recorder = make_recorder()

    with pytest.raises(RecordingStateError):
        recorder.end()
    with pytest.raises(RecordingStateError):
        recorder.abort()


def test_empty_capture_yields_nothing() -> None:
    recorder = make_recorder()
    recorder.start()

    assert recorder.end() is None
    assert recorder.last() is None


def test_history_is_bounded_newest_first() -> None:
    recorder = make_recorder(history_size=2)
    for key in ("a", "b", "c"):
        recorder.start()
        recorder.record(KeyStroke(key))
        recorder.end()

    assert [macro.description for macro in recorder.history] == ["c", "b"]


def test_direct_abort_raises_and_discards() -> None:
    recorder = make_recorder()
    recorder.start()
    recorder.record(KeyStroke("a"))

    with pytest.raises(UserAbort):
        recorder.abort()

    assert recorder.recording is False
    assert recorder.last() is None


def test_abort_key_reports_and_keeps_loop_running() -> None:
    overlay = make_overlay()

    press(overlay, "f3", "x", "f5")

    assert overlay.recorder.recording is False
    assert overlay.recorder.last() is None
    assert "Recording aborted" in overlay.host.messages


def test_nested_recording_returns_macro_to_caller() -> None:
    overlay = make_overlay(["a", "x", "y", "f4"])

    table = overlay.set_key(1)

    assert overlay.host.depth == 0
    assert table.lookup(KeySequence.parse("a")) == RecordedMacro(
        KeySequence.parse("x y").strokes
    )
    assert overlay.host.executed == ["forward-char", "backward-char"]
    assert overlay.recorder.recording is False


def test_nested_abort_unwinds_caller_without_binding() -> None:
    overlay = make_overlay(["a", "x", "f5"])

    with pytest.raises(UserAbort):
        overlay.set_key(1)

    assert len(overlay.registry) == 0
    assert overlay.recorder.recording is False
    assert overlay.recorder.nested is False


def test_nested_loop_interrupted_by_exhausted_input_resets() -> None:
    overlay = make_overlay(["a", "x"])

    with pytest.raises(EOFError):
        overlay.bind_kmacro()

    assert overlay.recorder.recording is False
    assert overlay.recorder.nested is False
    assert overlay.host.depth == 0


def test_replayed_keys_are_not_recorded_twice() -> None:
    overlay = make_overlay()
    overlay.bind_entry("m", RecordedMacro(KeySequence.parse("x y").strokes))

    press(overlay, "f3", "m", "f4")

    assert overlay.recorder.last() == RecordedMacro((KeyStroke("m"),))
    assert overlay.host.executed == ["forward-char", "backward-char"]


def test_quit_all_releases_direct_recording() -> None:
    overlay = make_overlay()
    press(overlay, "f3", "x")

    overlay.quit_all()

    assert overlay.recorder.recording is False
    assert overlay.registry.enabled is False
