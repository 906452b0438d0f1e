"""A single overlay: a mutable key to action mapping with an active flag."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Tuple

from keyoverlay.keys import Action, KeySequence


@dataclass(slots=True, eq=False)
class BindingTable:
    """Temporary bindings owned by the registry under a stable identity."""

    identity: int
    tag: Optional[str] = None
    active: bool = False
    _bindings: Dict[str, Tuple[KeySequence, Action]] = field(
        default_factory=dict, repr=False
    )

    @property
    def label(self) -> str:
        return self.tag or str(self.identity)

    def bind(self, keys: KeySequence, action: Action) -> None:
        self._bindings[keys.description] = (keys, action)

    def unbind(self, keys: KeySequence) -> bool:
        return self._bindings.pop(keys.description, None) is not None

    def lookup(self, keys: KeySequence) -> Optional[Action]:
        entry = self._bindings.get(keys.description)
        return entry[1] if entry else None

    def clear(self) -> None:
        self._bindings.clear()

    def items(self) -> Iterator[Tuple[KeySequence, Action]]:
        yield from self._bindings.values()

    def __contains__(self, keys: object) -> bool:
        return isinstance(keys, KeySequence) and keys.description in self._bindings

    def __len__(self) -> int:
        return len(self._bindings)


__all__ = ["BindingTable"]
