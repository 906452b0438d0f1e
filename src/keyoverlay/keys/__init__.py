"""Key sequence and action models."""

from .models import (
    ACTION_TYPES,
    Action,
    KeySequence,
    KeyStroke,
    NamedCommand,
    RawEntry,
    RecordedMacro,
    coerce_sequence,
    is_action,
    same_keys,
)

__all__ = [
    "Action",
    "ACTION_TYPES",
    "KeySequence",
    "KeyStroke",
    "NamedCommand",
    "RawEntry",
    "RecordedMacro",
    "coerce_sequence",
    "is_action",
    "same_keys",
]
