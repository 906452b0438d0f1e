"""Bridge between Textual key events and a ``KeyOverlay`` command loop."""

from __future__ import annotations

import queue
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Mapping, Optional, Sequence

from keyoverlay.commands import DispatchResult, KeyOverlay
from keyoverlay.errors import UserAbort
from keyoverlay.host import KeyHost, bound_prefix
from keyoverlay.keys import Action, KeySequence, KeyStroke


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


@dataclass(slots=True)
class TextualUIHooks:
    """Callbacks invoked by the adapter to update Textual widgets."""

    update_lighter: Callable[[str], None]
    update_status: Callable[[str], None] = _noop
    show_prompt: Callable[[str], None] = _noop
    log: Callable[[str], None] = _noop


def stroke_from_textual(key: str, modifiers: Iterable[str] = ()) -> KeyStroke:
    """Textual already names keys as ``ctrl+x``; extra modifiers are merged."""

    stroke = KeyStroke.parse(key)
    extra = tuple(modifiers)
    if extra:
        return KeyStroke(stroke.key, stroke.modifiers + extra)
    return stroke


class QueueHost(KeyHost):
    """Host whose reads block on a queue filled by the UI thread."""

    def __init__(
        self,
        *,
        commands: Mapping[str, Callable[[], object]] | None = None,
        bindings: Mapping[str, Action] | None = None,
        quit_key: str = "ctrl+g",
    ) -> None:
        self.commands: Dict[str, Callable[[], object]] = dict(commands or {})
        self.bindings: Dict[str, Action] = dict(bindings or {})
        self.quit_key = KeyStroke.parse(quit_key)
        self.show_prompt: Callable[[str], None] = _noop
        self.show_message: Callable[[str], None] = _noop
        self._queue: "queue.Queue[Optional[KeyStroke]]" = queue.Queue()

    def put(self, stroke: KeyStroke) -> None:
        self._queue.put(stroke)

    def close(self) -> None:
        self._queue.put(None)

    def read_key(self, prompt: str) -> KeyStroke:
        if prompt:
            self.show_prompt(prompt)
        stroke = self._queue.get()
        if prompt:
            self.show_prompt("")
        if stroke is None:
            raise EOFError("host closed")
        return stroke

    def read_command_name(self, prompt: str) -> str:
        typed: list[str] = []
        while True:
            self.show_prompt(f"{prompt}{''.join(typed)}")
            stroke = self.read_key("")
            if stroke.token == self.quit_key.token:
                self.show_prompt("")
                raise UserAbort("Quit")
            if stroke.key == "enter":
                self.show_prompt("")
                return "".join(typed)
            if stroke.key == "backspace":
                if typed:
                    typed.pop()
            elif not stroke.modifiers and len(stroke.key) == 1:
                typed.append(stroke.key)

    def command_exists(self, name: str) -> bool:
        return name in self.commands

    def lookup_binding(self, keys: KeySequence) -> Optional[Action]:
        return self.bindings.get(keys.description)

    def is_prefix(self, keys: KeySequence) -> bool:
        return bound_prefix(self.bindings, keys)

    def choose(self, prompt: str, options: Sequence[str]) -> int:
        listing = " ".join(f"{index + 1}:{label}" for index, label in enumerate(options))
        while True:
            stroke = self.read_key(f"{prompt}{listing} ")
            if stroke.token == self.quit_key.token:
                raise UserAbort("Quit")
            if stroke.key.isdigit() and 1 <= int(stroke.key) <= len(options):
                return int(stroke.key) - 1

    def run_command(self, name: str) -> object:
        return self.commands[name]()

    def run_entry(self, value: object) -> object:
        if callable(value):
            return value()
        self.message(f"entry: {value!r}")
        return value

    def message(self, text: str) -> None:
        self.show_message(text)


class TextualOverlayAdapter:
    """Feeds keys into ``KeyOverlay`` and mirrors state back to the UI."""

    def __init__(self, overlay: KeyOverlay, hooks: TextualUIHooks) -> None:
        self.overlay = overlay
        self.hooks = hooks
        # nested loops started by recording go through the same hooks
        overlay.host.dispatcher = self.dispatch
        self._refresh_lighter()

    def handle_textual_key(
        self, key: str, *, modifiers: Iterable[str] = ()
    ) -> DispatchResult:
        """Translate a Textual key name and dispatch it."""

        return self.dispatch(stroke_from_textual(key, modifiers))

    def dispatch(self, stroke: KeyStroke) -> DispatchResult:
        self._log_state("key ->", key=stroke.token)
        result = self.overlay.handle_key(stroke)
        self._after_result(result)
        self._log_state(
            "result <-",
            status=result.status,
            keys=result.keys.description if result.keys else None,
            action=result.action,
            message=result.message,
        )
        return result

    def run(self) -> None:
        """Top-level command loop; returns once the host is closed."""

        host = self.overlay.host
        try:
            while True:
                self.dispatch(host.read_key(""))
        except EOFError:
            return

    def _after_result(self, result: DispatchResult) -> None:
        if result.message:
            self.hooks.update_status(result.message)
        elif result.status in {"match", "host"} and result.keys is not None:
            self.hooks.update_status(f"{result.keys} -> {result.status}")
        self._refresh_lighter()

    def _refresh_lighter(self) -> None:
        self.hooks.update_lighter(self.overlay.lighter())

    def _log_state(self, prefix: str, **fields: object) -> None:
        stats = self.overlay.registry.stats()
        snapshot: Dict[str, object] = {
            "overlays": self.overlay.registry.identities(),
            "active": self.overlay.registry.active_identities(),
            "editing": stats.editing,
            "enabled": stats.enabled,
            "recording": self.overlay.recorder.recording,
        }
        snapshot.update({k: v for k, v in fields.items() if v is not None})
        parts = [prefix]
        for key, value in snapshot.items():
            parts.append(f"{key}={value!r}")
        self.hooks.log(" ".join(parts))


__all__ = [
    "QueueHost",
    "TextualOverlayAdapter",
    "TextualUIHooks",
    "stroke_from_textual",
]
