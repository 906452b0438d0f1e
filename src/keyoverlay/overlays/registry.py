"""Ordered, bounded pool of overlays; order is dispatch priority."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple, overload

from keyoverlay.errors import InvalidDestination
from keyoverlay.keys import Action, KeySequence
from keyoverlay.runtime.telemetry import record_event, span

from .session import SessionState
from .table import BindingTable

DEFAULT_MAX_OVERLAYS = 8


@dataclass(slots=True)
class RegistryStats:
    """Lightweight snapshot describing registry state."""

    overlay_count: int
    active_count: int
    binding_count: int
    editing: bool
    enabled: bool


class DispatchView(Sequence[Tuple[bool, BindingTable]]):
    """Live, read-only ``(active, overlay)`` pairs in priority order."""

    def __init__(self, registry: "OverlayRegistry") -> None:
        self._registry = registry

    @overload
    def __getitem__(self, index: int) -> Tuple[bool, BindingTable]: ...

    @overload
    def __getitem__(self, index: slice) -> List[Tuple[bool, BindingTable]]: ...

    def __getitem__(self, index):  # type: ignore[no-untyped-def]
        entries = self._registry._entries
        if isinstance(index, slice):
            return [(table.active, table) for table in entries[index]]
        table = entries[index]
        return (table.active, table)

    def __len__(self) -> int:
        return len(self._registry._entries)

    def __iter__(self) -> Iterator[Tuple[bool, BindingTable]]:
        for table in list(self._registry._entries):
            yield (table.active, table)


class OverlayRegistry:
    """Owns every overlay, their recycling and their priority order.

    The front of the sequence has the highest dispatch priority. When the
    session is editing, the front overlay is also where new bindings go.
    """

    def __init__(
        self,
        max_overlays: int = DEFAULT_MAX_OVERLAYS,
        *,
        session: SessionState | None = None,
        logger_name: str | None = None,
    ) -> None:
        if max_overlays < 1:
            raise ValueError("max_overlays must be positive")
        self.max_overlays = max_overlays
        self.session = session or SessionState(logger_name=logger_name)
        self._entries: List[BindingTable] = []
        self._enabled = False
        self._logger_name = logger_name
        self._revision = 0

    def revision(self) -> int:
        return self._revision

    @property
    def enabled(self) -> bool:
        """Global dispatch switch; when off no overlay is consulted."""

        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        if self._enabled != bool(value):
            self._enabled = bool(value)
            self._touch()

    @property
    def front(self) -> Optional[BindingTable]:
        return self._entries[0] if self._entries else None

    def find(self, identity: int) -> Optional[BindingTable]:
        for table in self._entries:
            if table.identity == identity:
                return table
        return None

    def get(self, identity: int) -> BindingTable:
        table = self.find(identity)
        if table is None:
            raise InvalidDestination(f"Overlay {identity} is not registered", identity)
        return table

    def is_live(self, table: BindingTable) -> bool:
        return self.find(table.identity) is table

    def allocate(self) -> int:
        """Pick the identity the next fresh overlay should use."""

        with span(
            "overlays::allocate",
            logger_name=self._logger_name,
            component="overlays",
            metadata={"count": len(self._entries)},
        ) as handle:
            used = {table.identity for table in self._entries}
            for identity in range(1, self.max_overlays + 1):
                if identity not in used:
                    handle.add_metadata("identity", identity)
                    return identity

            for table in reversed(self._entries):
                if not table.active:
                    self._renew(table)
                    handle.add_metadata("recycled", table.identity)
                    return table.identity

            # Every slot is active: identity 1 is taken over regardless.
            victim = self.get(1)
            record_event(
                "overlay.evict_active",
                level="warning",
                data={"identity": victim.identity, "bindings": len(victim)},
                logger_name=self._logger_name,
            )
            self._renew(victim)
            handle.add_metadata("recycled", victim.identity)
            return victim.identity

    def register(self, identity: int, tag: str | None = None) -> BindingTable:
        """Create the overlay for ``identity`` at the front, inactive."""

        with span(
            "overlays::register",
            logger_name=self._logger_name,
            component="overlays",
            metadata={"identity": identity},
        ):
            if not 1 <= identity <= self.max_overlays:
                raise InvalidDestination(
                    f"Overlay identity {identity} outside 1..{self.max_overlays}",
                    identity,
                )
            if self.find(identity) is not None:
                raise InvalidDestination(
                    f"Overlay {identity} is already registered", identity
                )
            table = BindingTable(identity=identity, tag=tag)
            self._entries.insert(0, table)
            self._touch()
            return table

    def prioritize(self, identity: int) -> None:
        """Move ``identity`` to the front; a move ends the editing session."""

        with span(
            "overlays::prioritize",
            logger_name=self._logger_name,
            component="overlays",
            metadata={"identity": identity},
        ) as handle:
            table = self.get(identity)
            if self._entries[0] is table:
                handle.add_metadata("moved", False)
                return
            self._entries.remove(table)
            self._entries.insert(0, table)
            self._touch()
            handle.add_metadata("moved", True)
            self.session.stop("reprioritized")

    def set_active(self, identity: int, value: bool, *, state_only: bool = False) -> None:
        with span(
            "overlays::set_active",
            logger_name=self._logger_name,
            component="overlays",
            metadata={"identity": identity, "value": value},
        ):
            table = self.get(identity)
            was_front = self._entries[0] is table
            table.active = bool(value)
            self._touch()
            if state_only:
                return
            if value:
                self.prioritize(identity)
                return
            if was_front:
                self.session.stop("front_disabled")
            if not self.active_identities():
                self.enabled = False

    def disable_all(self) -> None:
        with span(
            "overlays::disable_all",
            logger_name=self._logger_name,
            component="overlays",
        ):
            for table in self._entries:
                table.active = False
            self._touch()
            self.session.stop("disable_all")

    def identities(self) -> tuple[int, ...]:
        return tuple(table.identity for table in self._entries)

    def active_identities(self) -> tuple[int, ...]:
        return tuple(table.identity for table in self._entries if table.active)

    def last_active(self) -> Optional[BindingTable]:
        """Highest-priority active overlay, i.e. the most recently used one."""

        for table in self._entries:
            if table.active:
                return table
        return None

    def dispatch_view(self) -> DispatchView:
        return DispatchView(self)

    def lookup(self, keys: KeySequence) -> Optional[Tuple[BindingTable, Action]]:
        """Resolve ``keys`` the way dispatch does: first active match wins."""

        if not self._enabled:
            return None
        for active, table in self.dispatch_view():
            if not active:
                continue
            action = table.lookup(keys)
            if action is not None:
                return table, action
        return None

    def stats(self) -> RegistryStats:
        return RegistryStats(
            overlay_count=len(self._entries),
            active_count=len(self.active_identities()),
            binding_count=sum(len(table) for table in self._entries),
            editing=self.session.editing,
            enabled=self._enabled,
        )

    def touch(self) -> None:
        """Mark overlay contents as changed for revision-keyed caches."""

        self._touch()

    def __contains__(self, identity: object) -> bool:
        return any(table.identity == identity for table in self._entries)

    def __iter__(self) -> Iterator[BindingTable]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def _renew(self, table: BindingTable) -> BindingTable:
        """Swap in an empty table at the same slot; the old object goes stale."""

        fresh = BindingTable(identity=table.identity, tag=table.tag, active=table.active)
        self._entries[self._entries.index(table)] = fresh
        self._touch()
        return fresh

    def _touch(self) -> None:
        self._revision += 1


__all__ = [
    "OverlayRegistry",
    "RegistryStats",
    "DispatchView",
    "DEFAULT_MAX_OVERLAYS",
]
