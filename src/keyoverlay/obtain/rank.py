"""Map a repeat-style prefix argument onto a strategy rank."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class PrefixArg:
    """Repeat argument of ``magnitude`` (4 per press: 4, 16, 64, ...)."""

    magnitude: int = 4

    @classmethod
    def presses(cls, count: int) -> "PrefixArg":
        return cls(4**count)


def _power_of_four(magnitude: object) -> int:
    if isinstance(magnitude, bool) or not isinstance(magnitude, int) or magnitude < 4:
        return 0
    rank = 0
    while magnitude % 4 == 0:
        magnitude //= 4
        rank += 1
    return rank if magnitude == 1 else 0


def derive_rank(arg: object) -> int:
    """No argument gives 0, ``4**k`` repeats give ``k``, a number ``n`` gives ``n``."""

    if arg is None:
        return 0
    if isinstance(arg, PrefixArg):
        return _power_of_four(arg.magnitude)
    if isinstance(arg, (list, tuple)) and len(arg) == 1:
        return _power_of_four(arg[0])
    if isinstance(arg, int) and not isinstance(arg, bool):
        return arg
    return 0


__all__ = ["PrefixArg", "derive_rank"]
