"""Editing-session flag deciding where new bindings land."""

from __future__ import annotations

from keyoverlay.runtime import telemetry


class SessionState:
    """While ``editing`` is true, new bindings merge into the front overlay."""

    def __init__(self, *, logger_name: str | None = None) -> None:
        self._editing = False
        self._logger_name = logger_name

    @property
    def editing(self) -> bool:
        return self._editing

    def start(self) -> None:
        if self._editing:
            return
        self._editing = True
        telemetry.record_event(
            "session.start", level="debug", logger_name=self._logger_name
        )

    def stop(self, reason: str = "explicit") -> None:
        if not self._editing:
            return
        self._editing = False
        telemetry.record_event(
            "session.stop",
            level="debug",
            data={"reason": reason},
            logger_name=self._logger_name,
        )

    def __repr__(self) -> str:
        return f"SessionState(editing={self._editing})"


__all__ = ["SessionState"]
