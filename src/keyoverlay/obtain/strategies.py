"""Ways of asking the user for a ``(key, action)`` pair."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Mapping, Tuple

from keyoverlay.config import OverlayConfig
from keyoverlay.errors import InvalidAction, UserAbort
from keyoverlay.host import KeyHost
from keyoverlay.keys import Action, KeySequence, KeyStroke, NamedCommand, RecordedMacro
from keyoverlay.recording import MacroRecordingSession

Obtained = Tuple[KeySequence, Action]


@dataclass(slots=True)
class ObtainContext:
    """Collaborators a strategy may consult."""

    host: KeyHost
    config: OverlayConfig
    recorder: MacroRecordingSession
    allow_quit: bool = True


def read_keys(ctx: ObtainContext, prompt: str) -> KeySequence:
    keys = ctx.host.read_key_sequence(prompt)
    if ctx.allow_quit and keys.startswith(ctx.config.quit_sequence):
        raise UserAbort("Quit")
    return keys


class ObtainStrategy:
    """Base class: read the key to bind, then the action for it."""

    name: str = "strategy"
    key_prompt: str = "Set key: "

    def obtain(self, ctx: ObtainContext) -> Obtained:
        keys = read_keys(ctx, self.key_prompt)
        return keys, self.obtain_action(ctx, keys)

    def obtain_action(
        self, ctx: ObtainContext, keys: KeySequence
    ) -> Action:  # pragma: no cover - abstract override
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class SymbolStrategy(ObtainStrategy):
    name = "symbol"

    def obtain_action(self, ctx: ObtainContext, keys: KeySequence) -> Action:
        command = ctx.host.read_command_name(f"Set key {keys} to command: ").strip()
        if not command or not ctx.host.command_exists(command):
            raise InvalidAction(f"No command named {command!r}", command)
        return NamedCommand(command)


class KeySequenceStrategy(ObtainStrategy):
    name = "key_sequence"

    def obtain_action(self, ctx: ObtainContext, keys: KeySequence) -> Action:
        source = read_keys(ctx, f"Set key {keys} to the binding of: ")
        action = ctx.host.lookup_binding(source)
        if action is None:
            raise InvalidAction(f"{source} is undefined", source)
        return action


class RecursiveEditStrategy(ObtainStrategy):
    name = "recursive_edit"

    def obtain_action(self, ctx: ObtainContext, keys: KeySequence) -> Action:
        ctx.host.message(f"Recording macro for {keys}; end recording when done")
        macro = ctx.recorder.start(nested=True)
        if macro is None:
            raise InvalidAction("No keys recorded")
        return macro


class ReadKeyStrategy(ObtainStrategy):
    """Collect raw keys until the completion sequence is typed."""

    name = "read_key"

    def obtain_action(self, ctx: ObtainContext, keys: KeySequence) -> Action:
        complete = tuple(reversed(ctx.config.complete_sequence.tokens))
        quit_keys = tuple(reversed(ctx.config.quit_sequence.tokens))
        prompt = f"Keys for {keys} (end with {ctx.config.complete_sequence}): "

        # newest stroke first, so the terminator check is a prefix test
        typed: List[KeyStroke] = []
        while True:
            typed.insert(0, ctx.host.read_key(prompt))
            head = tuple(stroke.token for stroke in typed)
            if ctx.allow_quit and head[: len(quit_keys)] == quit_keys:
                raise UserAbort("Quit")
            if head[: len(complete)] == complete:
                del typed[: len(complete)]
                break

        if not typed:
            raise InvalidAction("No keys recorded")
        return RecordedMacro(tuple(reversed(typed)))


class RecallRecordStrategy(ObtainStrategy):
    name = "recall_record"

    def obtain_action(self, ctx: ObtainContext, keys: KeySequence) -> Action:
        macros = list(ctx.recorder.history)
        if not macros:
            raise InvalidAction("No recorded macros to choose from")
        labels = [macro.description for macro in macros]
        index = ctx.host.choose(f"Set key {keys} to macro: ", labels)
        return macros[index]


DEFAULT_STRATEGIES: Mapping[str, ObtainStrategy] = {
    strategy.name: strategy
    for strategy in (
        SymbolStrategy(),
        KeySequenceStrategy(),
        RecursiveEditStrategy(),
        ReadKeyStrategy(),
        RecallRecordStrategy(),
    )
}


__all__ = [
    "DEFAULT_STRATEGIES",
    "KeySequenceStrategy",
    "ObtainContext",
    "ObtainStrategy",
    "Obtained",
    "ReadKeyStrategy",
    "RecallRecordStrategy",
    "RecursiveEditStrategy",
    "SymbolStrategy",
    "read_keys",
]
