"""Strategies for acquiring a key and the action to bind it to."""

from .chain import ObtainStrategyChain
from .rank import PrefixArg, derive_rank
from .strategies import (
    DEFAULT_STRATEGIES,
    KeySequenceStrategy,
    ObtainContext,
    ObtainStrategy,
    ReadKeyStrategy,
    RecallRecordStrategy,
    RecursiveEditStrategy,
    SymbolStrategy,
    read_keys,
)

__all__ = [
    "DEFAULT_STRATEGIES",
    "KeySequenceStrategy",
    "ObtainContext",
    "ObtainStrategy",
    "ObtainStrategyChain",
    "PrefixArg",
    "ReadKeyStrategy",
    "RecallRecordStrategy",
    "RecursiveEditStrategy",
    "SymbolStrategy",
    "derive_rank",
    "read_keys",
]
