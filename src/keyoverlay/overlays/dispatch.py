"""Trie-based key resolution across the live overlay priority list."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Literal, Optional, Sequence

from keyoverlay.keys import Action, KeySequence
from keyoverlay.runtime.telemetry import span

from .registry import OverlayRegistry
from .table import BindingTable


@dataclass(slots=True)
class TrieNode:
    """Single trie node tracking a terminal binding and child transitions."""

    keys: Optional[KeySequence] = None
    children: Dict[str, "TrieNode"] = field(default_factory=dict)

    def child(self, token: str) -> "TrieNode":
        return self.children.setdefault(token, TrieNode())

    def next_tokens(self) -> tuple[str, ...]:
        return tuple(sorted(self.children.keys()))


@dataclass(slots=True)
class OverlayTrie:
    """Trie built from one overlay's bindings."""

    identity: int
    root: TrieNode = field(default_factory=TrieNode)

    def add(self, keys: KeySequence) -> None:
        node = self.root
        for token in keys.tokens:
            node = node.child(token)
        node.keys = keys

    def walk(self, tokens: Sequence[str]) -> Optional[TrieNode]:
        node = self.root
        for token in tokens:
            child = node.children.get(token)
            if child is None:
                return None
            node = child
        return node


@dataclass(frozen=True, slots=True)
class ResolutionMatch:
    """Overlay binding that answered a key sequence."""

    overlay: BindingTable
    keys: KeySequence
    action: Action


@dataclass(frozen=True, slots=True)
class ResolutionResult:
    """Outcome returned from the resolver."""

    status: Literal["match", "pending", "miss"]
    match: Optional[ResolutionMatch] = None
    consumed: int = 0
    next_expected: tuple[str, ...] = ()


class OverlayResolver:
    """Resolves typed tokens against active overlays, front first."""

    def __init__(
        self, registry: OverlayRegistry, *, logger_name: str | None = None
    ) -> None:
        self._registry = registry
        self._logger_name = logger_name
        self._cache: tuple[int, Dict[int, OverlayTrie]] | None = None

    def resolve(self, tokens: Sequence[str]) -> ResolutionResult:
        normalized = tuple(tokens)
        with span(
            "dispatch::resolve",
            logger_name=self._logger_name,
            component="dispatch",
            metadata={"length": len(normalized)},
        ) as handle:
            if not normalized or not self._registry.enabled:
                handle.add_metadata("status", "miss")
                return ResolutionResult(status="miss")

            tries = self._ensure_tries()
            for active, overlay in self._registry.dispatch_view():
                if not active:
                    continue
                node = tries[overlay.identity].walk(normalized)
                if node is None:
                    continue
                if node.keys is not None:
                    action = overlay.lookup(node.keys)
                    if action is not None:
                        handle.add_metadata("status", "match")
                        handle.add_metadata("identity", overlay.identity)
                        return ResolutionResult(
                            status="match",
                            match=ResolutionMatch(overlay, node.keys, action),
                            consumed=len(normalized),
                        )
                if node.children:
                    # a prefix here shadows every lower overlay
                    handle.add_metadata("status", "pending")
                    handle.add_metadata("identity", overlay.identity)
                    return ResolutionResult(
                        status="pending",
                        consumed=len(normalized),
                        next_expected=node.next_tokens(),
                    )

            handle.add_metadata("status", "miss")
            return ResolutionResult(status="miss")

    def reset(self) -> None:
        self._cache = None

    def _ensure_tries(self) -> Dict[int, OverlayTrie]:
        revision = self._registry.revision()
        if self._cache and self._cache[0] == revision:
            return self._cache[1]

        tries: Dict[int, OverlayTrie] = {}
        for overlay in self._registry:
            trie = OverlayTrie(identity=overlay.identity)
            for keys, _action in overlay.items():
                trie.add(keys)
            tries[overlay.identity] = trie
        self._cache = (revision, tries)
        return tries


__all__ = [
    "OverlayResolver",
    "ResolutionMatch",
    "ResolutionResult",
]
