"""Key sequences and the actions an overlay can bind them to."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Union

from keyoverlay.errors import InvalidArgument

_MODIFIER_ALIASES = {
    "control": "ctrl",
    "meta": "alt",
    "option": "alt",
    "cmd": "super",
    "command": "super",
}

_EMACS_PREFIXES = {"C": "ctrl", "M": "alt", "S": "shift", "s": "super"}
_EMACS_STROKE = re.compile(r"^((?:[CMSs]-)+)(.+)$")


def _normalize_modifiers(modifiers: Iterable[str]) -> tuple[str, ...]:
    values = []
    for modifier in modifiers:
        cleaned = modifier.strip().lower()
        if cleaned:
            values.append(_MODIFIER_ALIASES.get(cleaned, cleaned))
    return tuple(sorted(dict.fromkeys(values)))


@dataclass(frozen=True, slots=True)
class KeyStroke:
    """Single key press with a canonical modifier ordering."""

    key: str
    modifiers: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.key, str) or not self.key:
            raise ValueError("key cannot be empty")
        object.__setattr__(self, "modifiers", _normalize_modifiers(self.modifiers))

    @property
    def token(self) -> str:
        if self.modifiers:
            modifier = "+".join(self.modifiers)
            return f"{modifier}+{self.key}"
        return self.key

    @classmethod
    def parse(cls, text: str) -> "KeyStroke":
        """Parse ``ctrl+x`` or the Emacs-style ``C-x`` spelling."""

        raw = text.strip()
        if not raw:
            raise ValueError("stroke text cannot be empty")
        emacs = _EMACS_STROKE.match(raw)
        if emacs:
            prefixes = [_EMACS_PREFIXES[p] for p in emacs.group(1).split("-") if p]
            return cls(emacs.group(2), tuple(prefixes))
        if raw.endswith("++"):
            return cls("+", tuple(raw[:-2].split("+")))
        if raw == "+" or "+" not in raw:
            return cls(raw)
        *modifiers, key = raw.split("+")
        return cls(key, tuple(modifiers))

    def __str__(self) -> str:
        return self.token


@dataclass(frozen=True, slots=True)
class KeySequence:
    """Non-empty, immutable run of keystrokes."""

    strokes: tuple[KeyStroke, ...]

    def __post_init__(self) -> None:
        if not self.strokes:
            raise ValueError("KeySequence requires at least one stroke")
        for stroke in self.strokes:
            if not isinstance(stroke, KeyStroke):
                raise TypeError(f"expected KeyStroke, got {type(stroke).__name__}")

    @property
    def tokens(self) -> tuple[str, ...]:
        return tuple(stroke.token for stroke in self.strokes)

    @property
    def description(self) -> str:
        return " ".join(self.tokens)

    def __len__(self) -> int:
        return len(self.strokes)

    def __str__(self) -> str:
        return self.description

    def startswith(self, prefix: "KeySequence") -> bool:
        return self.tokens[: len(prefix)] == prefix.tokens

    def append(self, *strokes: KeyStroke) -> "KeySequence":
        return KeySequence(self.strokes + tuple(strokes))

    @classmethod
    def parse(cls, text: str) -> "KeySequence":
        return cls(tuple(KeyStroke.parse(part) for part in text.split()))

    @classmethod
    def from_strings(cls, *keys: str) -> "KeySequence":
        return cls(tuple(KeyStroke.parse(key) for key in keys if key))


def same_keys(left: KeySequence, right: KeySequence) -> bool:
    """Compare two sequences by canonical description."""

    return left.description == right.description


def coerce_sequence(value: object) -> KeySequence:
    """Turn user input into a ``KeySequence`` or raise ``InvalidArgument``."""

    if isinstance(value, KeySequence):
        return value
    if isinstance(value, KeyStroke):
        return KeySequence((value,))
    try:
        if isinstance(value, str):
            return KeySequence.parse(value)
        if isinstance(value, (list, tuple)):
            strokes = tuple(
                item if isinstance(item, KeyStroke) else KeyStroke.parse(item)
                for item in value
            )
            return KeySequence(strokes)
    except (ValueError, TypeError, AttributeError) as exc:
        raise InvalidArgument(f"Malformed key sequence {value!r}: {exc}", value) from exc
    raise InvalidArgument(f"Not a key sequence: {value!r}", value)


@dataclass(frozen=True, slots=True)
class NamedCommand:
    """Existing host command referenced by name."""

    name: str

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("command name cannot be empty")

    @property
    def description(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class RecordedMacro:
    """Primitive keystrokes replayed as one action."""

    strokes: tuple[KeyStroke, ...] = field(default=())

    def __post_init__(self) -> None:
        object.__setattr__(self, "strokes", tuple(self.strokes))

    @property
    def description(self) -> str:
        return " ".join(stroke.token for stroke in self.strokes)

    def __len__(self) -> int:
        return len(self.strokes)


@dataclass(frozen=True, slots=True)
class RawEntry:
    """Opaque host value bound as-is."""

    value: object

    @property
    def description(self) -> str:
        return repr(self.value)


Action = Union[NamedCommand, RecordedMacro, RawEntry]
ACTION_TYPES = (NamedCommand, RecordedMacro, RawEntry)


def is_action(value: object) -> bool:
    return isinstance(value, ACTION_TYPES)


__all__ = [
    "KeyStroke",
    "KeySequence",
    "same_keys",
    "coerce_sequence",
    "NamedCommand",
    "RecordedMacro",
    "RawEntry",
    "Action",
    "ACTION_TYPES",
    "is_action",
]
