"""Rank-selected chain of acquisition strategies."""

from __future__ import annotations

from typing import Mapping, Sequence

from keyoverlay.errors import UndefinedRank
from keyoverlay.runtime.telemetry import span

from .rank import derive_rank
from .strategies import DEFAULT_STRATEGIES, ObtainContext, ObtainStrategy, Obtained


class ObtainStrategyChain:
    """Ordered strategy names; the prefix argument picks one per call."""

    def __init__(
        self,
        names: Sequence[str],
        *,
        strategies: Mapping[str, ObtainStrategy] | None = None,
        logger_name: str | None = None,
    ) -> None:
        available = dict(strategies or DEFAULT_STRATEGIES)
        unknown = [name for name in names if name not in available]
        if unknown:
            raise ValueError(f"Unknown strategies {unknown}")
        self.names = tuple(names)
        self._strategies = tuple(available[name] for name in self.names)
        self._logger_name = logger_name

    def __len__(self) -> int:
        return len(self._strategies)

    def select(self, arg: object = None) -> ObtainStrategy:
        rank = derive_rank(arg)
        if not 0 <= rank < len(self._strategies):
            raise UndefinedRank(rank, self.names)
        return self._strategies[rank]

    def obtain(self, ctx: ObtainContext, arg: object = None) -> Obtained:
        strategy = self.select(arg)
        with span(
            "obtain::run",
            logger_name=self._logger_name,
            component="obtain",
            metadata={"strategy": strategy.name},
        ) as handle:
            keys, action = strategy.obtain(ctx)
            handle.add_metadata("keys", keys.description)
            return keys, action


__all__ = ["ObtainStrategyChain"]
