from __future__ import annotations

from typing import List

import pytest

from keyoverlay.adapters.textual import (
    QueueHost,
    TextualOverlayAdapter,
    TextualUIHooks,
    stroke_from_textual,
)
from keyoverlay.commands import KeyOverlay
from keyoverlay.errors import UserAbort
from keyoverlay.host import ScriptedHost
from keyoverlay.keys import KeyStroke, NamedCommand


def make_adapter(
    script: List[object] | None = None,
) -> tuple[TextualOverlayAdapter, ScriptedHost, dict[str, List[str]]]:
    host = ScriptedHost(
        script or [],
        commands=["forward-char"],
        bindings={
            "f2": NamedCommand("start-edit"),
            "f3": NamedCommand("bind-kmacro"),
            "f4": NamedCommand("end-recording"),
            "x": NamedCommand("forward-char"),
        },
    )
    captured: dict[str, List[str]] = {"lighter": [], "status": [], "log": []}
    hooks = TextualUIHooks(
        update_lighter=lambda text: captured["lighter"].append(text),
        update_status=lambda text: captured["status"].append(text),
        log=lambda line: captured["log"].append(line),
    )
    adapter = TextualOverlayAdapter(KeyOverlay(host), hooks)
    return adapter, host, captured


def test_stroke_from_textual_merges_modifiers() -> None:
    assert stroke_from_textual("ctrl+x") == KeyStroke("x", ("ctrl",))
    assert stroke_from_textual("ctrl+x", ["shift"]) == KeyStroke("x", ("ctrl", "shift"))


def test_adapter_refreshes_lighter_and_status() -> None:
    adapter, _host, captured = make_adapter()

    result = adapter.handle_textual_key("f2")

    assert result.status == "host"
    assert captured["lighter"] == ["", " KO*[1]"]
    assert captured["status"] == ["f2 -> host"]


def test_adapter_logs_each_key_and_result() -> None:
    adapter, _host, captured = make_adapter()

    adapter.handle_textual_key("q")

    assert captured["log"][0].startswith("key -> ")
    assert "key='q'" in captured["log"][0]
    assert captured["log"][1].startswith("result <- ")
    assert "status='miss'" in captured["log"][1]
    assert captured["status"] == []


def test_run_drives_nested_recording_until_input_ends() -> None:
    adapter, host, captured = make_adapter(["f3", "a", "x", "f4", "a"])

    adapter.run()

    assert host.executed == ["forward-char", "forward-char"]
    assert host.depth == 0
    assert captured["lighter"][-1] == " KO*[1]"
    # nested keys are logged through the adapter too
    assert any("key='x'" in line for line in captured["log"])


def test_queue_host_types_command_names() -> None:
    host = QueueHost(commands={"save": lambda: "saved"})
    prompts: List[str] = []
    host.show_prompt = prompts.append
    for key in ("s", "a", "x", "backspace", "v", "e", "enter"):
        host.put(KeyStroke.parse(key))

    assert host.read_command_name("M-x ") == "save"
    assert host.command_exists("save")
    assert host.run_command("save") == "saved"
    assert prompts[0] == "M-x "
    assert prompts[-1] == ""


def test_queue_host_choose_and_quit() -> None:
    host = QueueHost()
    for key in ("9", "2"):
        host.put(KeyStroke(key))

    assert host.choose("Pick: ", ["one", "two"]) == 1

    host.put(KeyStroke("g", ("ctrl",)))
    with pytest.raises(UserAbort):
        host.choose("Pick: ", ["one"])


def test_queue_host_close_ends_reads() -> None:
    host = QueueHost()
    host.close()

    with pytest.raises(EOFError):
        host.read_key("")
