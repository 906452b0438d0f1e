"""Host collaborator interface plus an in-memory scripted host.

The host owns everything outside the overlay core: reading keys, naming
commands, looking up its own bindings, prompting, and running nested
command loops.
"""

from __future__ import annotations

from collections import deque
from typing import Callable, Deque, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from keyoverlay.keys import Action, KeySequence, KeyStroke

ScriptItem = Union[KeyStroke, KeySequence, str, int]


def bound_prefix(bindings: Mapping[str, Action], keys: KeySequence) -> bool:
    """Whether a binding description extends ``keys`` by at least one stroke."""

    head = keys.description + " "
    return any(description.startswith(head) for description in bindings)


class KeyHost:
    """Base class concrete hosts override."""

    dispatcher: Optional[Callable[[KeyStroke], object]] = None

    def read_key(self, prompt: str) -> KeyStroke:  # pragma: no cover - abstract
        raise NotImplementedError

    def read_key_sequence(self, prompt: str) -> KeySequence:
        return KeySequence((self.read_key(prompt),))

    def read_command_name(self, prompt: str) -> str:  # pragma: no cover - abstract
        raise NotImplementedError

    def command_exists(self, name: str) -> bool:  # pragma: no cover - abstract
        raise NotImplementedError

    def lookup_binding(self, keys: KeySequence) -> Optional[Action]:
        del keys
        return None

    def is_prefix(self, keys: KeySequence) -> bool:
        """True when some longer host binding starts with ``keys``."""

        del keys
        return False

    def choose(self, prompt: str, options: Sequence[str]) -> int:  # pragma: no cover
        raise NotImplementedError

    def run_command(self, name: str) -> object:  # pragma: no cover - abstract
        raise NotImplementedError

    def run_entry(self, value: object) -> object:  # pragma: no cover - abstract
        raise NotImplementedError

    def replay(self, strokes: Sequence[KeyStroke]) -> None:
        for stroke in strokes:
            self.dispatch(stroke)

    def message(self, text: str) -> None:  # pragma: no cover - default no-op
        del text

    def dispatch(self, stroke: KeyStroke) -> object:
        if self.dispatcher is None:
            raise RuntimeError("KeyHost has no dispatcher attached")
        return self.dispatcher(stroke)

    def recursive_edit(self, until: Callable[[], bool]) -> None:
        """Run a nested command loop until ``until()`` turns true."""

        while not until():
            self.dispatch(self.read_key(""))


class ScriptedHost(KeyHost):
    """Host fed from a fixed script; used for batch runs and tests."""

    def __init__(
        self,
        script: Iterable[ScriptItem] = (),
        *,
        commands: Mapping[str, Callable[[], object]] | Iterable[str] = (),
        bindings: Mapping[str, Action] | None = None,
    ) -> None:
        self._script: Deque[ScriptItem] = deque(script)
        if isinstance(commands, Mapping):
            self.commands: Dict[str, Callable[[], object]] = dict(commands)
        else:
            self.commands = {name: (lambda: None) for name in commands}
        self.bindings: Dict[str, Action] = dict(bindings or {})
        self.executed: List[str] = []
        self.entries: List[object] = []
        self.messages: List[str] = []
        self.prompts: List[str] = []
        self.depth = 0

    def feed(self, *items: ScriptItem) -> None:
        self._script.extend(items)

    @property
    def remaining(self) -> int:
        return len(self._script)

    def _next(self, prompt: str) -> ScriptItem:
        self.prompts.append(prompt)
        if not self._script:
            raise EOFError(f"script exhausted at prompt {prompt!r}")
        return self._script.popleft()

    def read_key(self, prompt: str) -> KeyStroke:
        item = self._next(prompt)
        if isinstance(item, KeyStroke):
            return item
        if isinstance(item, KeySequence) and len(item) == 1:
            return item.strokes[0]
        if isinstance(item, str):
            return KeyStroke.parse(item)
        raise TypeError(f"expected a single key, got {item!r}")

    def read_key_sequence(self, prompt: str) -> KeySequence:
        item = self._next(prompt)
        if isinstance(item, KeySequence):
            return item
        if isinstance(item, KeyStroke):
            return KeySequence((item,))
        if isinstance(item, str):
            return KeySequence.parse(item)
        raise TypeError(f"expected a key sequence, got {item!r}")

    def read_command_name(self, prompt: str) -> str:
        item = self._next(prompt)
        if not isinstance(item, str):
            raise TypeError(f"expected a command name, got {item!r}")
        return item

    def command_exists(self, name: str) -> bool:
        return name in self.commands

    def lookup_binding(self, keys: KeySequence) -> Optional[Action]:
        return self.bindings.get(keys.description)

    def is_prefix(self, keys: KeySequence) -> bool:
        return bound_prefix(self.bindings, keys)

    def choose(self, prompt: str, options: Sequence[str]) -> int:
        item = self._next(prompt)
        if isinstance(item, int):
            index = item
        else:
            index = list(options).index(str(item))
        if not 0 <= index < len(options):
            raise IndexError(f"choice {index} out of range")
        return index

    def run_command(self, name: str) -> object:
        self.executed.append(name)
        return self.commands[name]()

    def run_entry(self, value: object) -> object:
        self.entries.append(value)
        return value

    def message(self, text: str) -> None:
        self.messages.append(text)

    def recursive_edit(self, until: Callable[[], bool]) -> None:
        self.depth += 1
        try:
            super().recursive_edit(until)
        finally:
            self.depth -= 1


__all__ = ["KeyHost", "ScriptedHost", "ScriptItem", "bound_prefix"]
