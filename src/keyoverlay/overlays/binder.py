"""Single choke point through which bindings reach an overlay."""

from __future__ import annotations

from typing import Optional

from keyoverlay.errors import InvalidAction, InvalidDestination
from keyoverlay.keys import Action, coerce_sequence, is_action
from keyoverlay.runtime.telemetry import record_event, span

from .registry import OverlayRegistry
from .session import SessionState
from .table import BindingTable


class Binder:
    """Routes bind and unbind requests through the session rules."""

    def __init__(
        self, registry: OverlayRegistry, *, logger_name: str | None = None
    ) -> None:
        self.registry = registry
        self._logger_name = logger_name

    @property
    def session(self) -> SessionState:
        return self.registry.session

    def ready_overlay(self, *, tag: str | None = None, edit: bool = True) -> BindingTable:
        """Return the overlay new bindings should go to, active and registered.

        While editing this is the front overlay. Otherwise a slot is allocated
        (possibly recycling an inactive overlay), registered or moved to the
        front, and switched on.
        """

        with span(
            "overlays::ready",
            logger_name=self._logger_name,
            component="overlays",
            metadata={"editing": self.session.editing},
        ) as handle:
            front = self.registry.front
            if self.session.editing and front is not None:
                self.registry.set_active(front.identity, True, state_only=True)
                handle.add_metadata("identity", front.identity)
                return front

            identity = self.registry.allocate()
            table = self.registry.find(identity)
            if table is None:
                table = self.registry.register(identity, tag)
            else:
                self.registry.prioritize(identity)
                table.tag = tag
            self.registry.set_active(identity, True, state_only=True)
            if edit:
                self.session.start()
            handle.add_metadata("identity", identity)
            return table

    def bind_entry(
        self,
        key: object,
        action: Action,
        destination: Optional[BindingTable] = None,
        *,
        direct_only: bool = False,
    ) -> BindingTable:
        """Write ``key -> action`` and keep the session going.

        ``destination`` must be the overlay object the registry currently holds
        for its identity. With ``direct_only`` the session and the global
        switch are left alone.
        """

        keys = coerce_sequence(key)
        if not is_action(action):
            raise InvalidAction(f"Not a bindable action: {action!r}", action)
        if destination is not None and not self.registry.is_live(destination):
            raise InvalidDestination(
                f"Overlay {destination.identity} is not a live registered overlay",
                destination.identity,
            )

        if destination is None:
            target = self.ready_overlay(edit=not direct_only)
        else:
            target = destination
        with span(
            "overlays::bind",
            logger_name=self._logger_name,
            component="overlays",
            metadata={"identity": target.identity, "keys": keys.description},
        ):
            target.bind(keys, action)
            self.registry.touch()

        if not direct_only:
            self.session.start()
            self.registry.enabled = True
        return target

    def unset_key(self, key: object) -> bool:
        """Drop ``key`` from the front overlay; a no-op outside a session."""

        keys = coerce_sequence(key)
        front = self.registry.front
        if not self.session.editing or front is None:
            record_event(
                "unset.ignored",
                level="debug",
                data={"keys": keys.description},
                logger_name=self._logger_name,
            )
            return False
        with span(
            "overlays::unset",
            logger_name=self._logger_name,
            component="overlays",
            metadata={"identity": front.identity, "keys": keys.description},
        ):
            removed = front.unbind(keys)
            if removed:
                self.registry.touch()
            return removed


__all__ = ["Binder"]
