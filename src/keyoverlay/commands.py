"""User-facing overlay commands and the key dispatch loop that drives them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Literal, Optional, Sequence

from keyoverlay.config import OverlayConfig
from keyoverlay.errors import InvalidAction, InvalidArgument, InvalidDestination, OverlayError
from keyoverlay.host import KeyHost
from keyoverlay.keys import (
    Action,
    KeySequence,
    KeyStroke,
    NamedCommand,
    RawEntry,
    RecordedMacro,
)
from keyoverlay.obtain import ObtainContext, ObtainStrategyChain, read_keys
from keyoverlay.overlays import (
    Binder,
    BindingTable,
    OverlayRegistry,
    OverlayResolver,
    SessionState,
    render_lighter,
)
from keyoverlay.recording import MacroRecordingSession
from keyoverlay.runtime import telemetry

CHAIN_NAMES = ("bind_command", "bind_kmacro", "set_key")
RECORDING_CONTROL = frozenset({"end-recording", "abort-recording"})


@dataclass(slots=True)
class DispatchResult:
    """Outcome of feeding one keystroke through ``KeyOverlay.handle_key``."""

    status: Literal["match", "host", "pending", "miss", "quit", "error"]
    keys: Optional[KeySequence] = None
    action: Optional[Action] = None
    message: Optional[str] = None


class KeyOverlay:
    """Owns the registry, session, recorder and strategy chains for one host."""

    def __init__(
        self,
        host: KeyHost,
        config: OverlayConfig | None = None,
        *,
        logger_name: str = "keyoverlay.commands",
    ) -> None:
        self.config = config or OverlayConfig()
        self.host = host
        self._logger_name = logger_name
        self.registry = OverlayRegistry(
            self.config.max_overlays, logger_name="keyoverlay.overlays"
        )
        self.binder = Binder(self.registry, logger_name="keyoverlay.overlays")
        self.resolver = OverlayResolver(self.registry, logger_name="keyoverlay.dispatch")
        self.recorder = MacroRecordingSession(
            self.registry,
            host,
            history_size=self.config.history_size,
            logger_name="keyoverlay.recording",
        )
        self.chains: Dict[str, ObtainStrategyChain] = {
            name: ObtainStrategyChain(
                self.config.chain(name), logger_name="keyoverlay.obtain"
            )
            for name in CHAIN_NAMES
        }
        self._pending: List[KeyStroke] = []
        self._replaying = 0
        host.dispatcher = self.handle_key

    @property
    def session(self) -> SessionState:
        return self.registry.session

    def lighter(self) -> str:
        return render_lighter(self.registry, self.config)

    # -- overlay state -----------------------------------------------------

    def enable_overlay(self, identity: int) -> BindingTable:
        self.registry.set_active(identity, True)
        self.registry.enabled = True
        return self.registry.get(identity)

    def disable_overlay(self, identity: int) -> BindingTable:
        self.registry.set_active(identity, False)
        return self.registry.get(identity)

    def disable_last(self) -> Optional[BindingTable]:
        table = self.registry.last_active()
        if table is None:
            self.host.message("No active overlay")
            return None
        return self.disable_overlay(table.identity)

    def disable_all(self) -> None:
        self.registry.disable_all()

    def start_edit(self, tag: str | None = None) -> BindingTable:
        table = self.binder.ready_overlay(tag=tag)
        self.registry.enabled = True
        return table

    def stop_edit(self) -> None:
        self.session.stop()

    # -- binding -----------------------------------------------------------

    def bind_entry(
        self,
        key: object,
        action: Action,
        destination: Optional[BindingTable] = None,
        *,
        direct_only: bool = False,
    ) -> BindingTable:
        return self.binder.bind_entry(
            key, action, destination, direct_only=direct_only
        )

    def bind_command(self, arg: object = None) -> BindingTable:
        keys, action = self._obtain("bind_command", arg)
        if not isinstance(action, NamedCommand):
            raise InvalidAction(f"{action!r} is not a command", action)
        return self.bind_entry(keys, action)

    def bind_kmacro(self, arg: object = None) -> BindingTable:
        keys, action = self._obtain("bind_kmacro", arg)
        if not isinstance(action, RecordedMacro):
            raise InvalidAction(f"{action!r} is not a keyboard macro", action)
        return self.bind_entry(keys, action)

    def bind_last_recorded(self) -> BindingTable:
        macro = self.recorder.last()
        if macro is None:
            raise InvalidAction("No recorded macro")
        keys = read_keys(self._context(), "Set key to last macro: ")
        return self.bind_entry(keys, macro)

    def set_key(self, arg: object = None) -> BindingTable:
        keys, action = self._obtain("set_key", arg)
        return self.bind_entry(keys, action)

    def unset_key(self, key: object = None) -> bool:
        if key is None:
            key = read_keys(self._context(), "Unset key: ")
        return self.binder.unset_key(key)

    # -- recording ---------------------------------------------------------

    def start_recording(self) -> None:
        self.recorder.start()
        self.host.message("Recording macro")

    def end_recording(self) -> Optional[RecordedMacro]:
        macro = self.recorder.end()
        self.host.message("Macro recorded" if macro else "Empty macro discarded")
        return macro

    def abort_recording(self) -> None:
        self.recorder.abort()

    def quit_all(self) -> None:
        """Drop any recording, disable every overlay and switch dispatch off."""

        self.recorder.discard()
        self._pending.clear()
        self.registry.disable_all()
        self.registry.enabled = False
        telemetry.record_event("overlay.quit_all", logger_name=self._logger_name)

    # -- command table -----------------------------------------------------

    def execute(self, name: str, arg: object = None) -> object:
        try:
            command = COMMANDS[name]
        except KeyError as exc:
            raise InvalidArgument(f"Unknown command '{name}'", name) from exc
        with telemetry.span(
            f"command::{name}",
            logger_name=self._logger_name,
            component="commands",
        ):
            return command(self, arg)

    def _identity_arg(self, arg: object, prompt: str, *, active: bool) -> int:
        if isinstance(arg, int) and not isinstance(arg, bool):
            return arg
        if arg is not None:
            raise InvalidArgument(f"Overlay identity expected, got {arg!r}", arg)
        candidates = [table for table in self.registry if table.active is active]
        if not candidates:
            raise InvalidDestination("No overlay to choose from")
        index = self.host.choose(prompt, [table.label for table in candidates])
        return candidates[index].identity

    def _context(self) -> ObtainContext:
        return ObtainContext(host=self.host, config=self.config, recorder=self.recorder)

    def _obtain(self, chain: str, arg: object) -> tuple[KeySequence, Action]:
        return self.chains[chain].obtain(self._context(), arg)

    # -- dispatch loop -----------------------------------------------------

    def handle_key(self, stroke: KeyStroke) -> DispatchResult:
        """Feed one keystroke: overlays first, then the host's own bindings.

        A sequence stays pending while the first overlay that knows it, or
        failing that the host, holds a longer binding starting with it.

        Command errors are reported through ``host.message`` so the loop keeps
        running, the way an interactive command loop does.
        """

        self._pending.append(stroke)
        tokens = tuple(pending.token for pending in self._pending)
        quit_tokens = self.config.quit_sequence.tokens
        if tokens[-len(quit_tokens) :] == quit_tokens:
            self._pending.clear()
            self.host.message("Quit")
            return DispatchResult(status="quit")

        result = self.resolver.resolve(tokens)
        if result.status == "pending":
            return DispatchResult(status="pending")

        strokes = tuple(self._pending)
        keys = KeySequence(strokes)
        if result.match is not None:
            action: Optional[Action] = result.match.action
            status: Literal["match", "host"] = "match"
        else:
            action = self.host.lookup_binding(keys)
            status = "host"
            if action is None and self.host.is_prefix(keys):
                return DispatchResult(status="pending")
        self._pending.clear()

        if not (isinstance(action, NamedCommand) and action.name in RECORDING_CONTROL):
            if not self._replaying:
                for pending in strokes:
                    self.recorder.record(pending)

        if action is None:
            self.host.message(f"{keys} is undefined")
            return DispatchResult(status="miss", keys=keys)

        try:
            self.run_action(action)
        except OverlayError as exc:
            self.host.message(str(exc))
            return DispatchResult(
                status="error", keys=keys, action=action, message=str(exc)
            )
        return DispatchResult(status=status, keys=keys, action=action)

    def run_action(self, action: Action) -> object:
        if isinstance(action, NamedCommand):
            if action.name in COMMANDS:
                return self.execute(action.name)
            return self.host.run_command(action.name)
        if isinstance(action, RecordedMacro):
            self._replaying += 1
            try:
                self.host.replay(action.strokes)
            finally:
                self._replaying -= 1
            return None
        if isinstance(action, RawEntry):
            return self.host.run_entry(action.value)
        raise InvalidAction(f"Not a bindable action: {action!r}", action)


def _bind_entry_command(overlay: KeyOverlay, arg: object) -> BindingTable:
    if not isinstance(arg, Sequence) or isinstance(arg, str) or len(arg) != 2:
        raise InvalidArgument("bind-entry expects a (key, action) pair", arg)
    key, action = arg
    return overlay.bind_entry(key, action)


COMMANDS: Dict[str, Callable[[KeyOverlay, object], object]] = {
    "enable-overlay": lambda ko, arg: ko.enable_overlay(
        ko._identity_arg(arg, "Enable overlay: ", active=False)
    ),
    "disable-overlay": lambda ko, arg: ko.disable_overlay(
        ko._identity_arg(arg, "Disable overlay: ", active=True)
    ),
    "disable-last": lambda ko, arg: ko.disable_last(),
    "disable-all": lambda ko, arg: ko.disable_all(),
    "start-edit": lambda ko, arg: ko.start_edit(arg if isinstance(arg, str) else None),
    "stop-edit": lambda ko, arg: ko.stop_edit(),
    "bind-entry": _bind_entry_command,
    "bind-command": lambda ko, arg: ko.bind_command(arg),
    "bind-kmacro": lambda ko, arg: ko.bind_kmacro(arg),
    "bind-last-recorded": lambda ko, arg: ko.bind_last_recorded(),
    "set-key": lambda ko, arg: ko.set_key(arg),
    "unset-key": lambda ko, arg: ko.unset_key(arg),
    "start-recording": lambda ko, arg: ko.start_recording(),
    "end-recording": lambda ko, arg: ko.end_recording(),
    "abort-recording": lambda ko, arg: ko.abort_recording(),
    "quit-all": lambda ko, arg: ko.quit_all(),
}


__all__ = ["KeyOverlay", "DispatchResult", "COMMANDS", "CHAIN_NAMES"]
