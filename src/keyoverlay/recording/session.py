"""Capture of primitive keystrokes as one bindable macro."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional

from keyoverlay.errors import RecordingStateError, UserAbort
from keyoverlay.host import KeyHost
from keyoverlay.keys import KeyStroke, RecordedMacro
from keyoverlay.overlays import OverlayRegistry
from keyoverlay.runtime.telemetry import record_event, span


@dataclass
class RecordingFrame:
    """A caller suspended in a nested loop until the recording resolves."""

    done: bool = False
    aborted: bool = False
    result: Optional[RecordedMacro] = None


class MacroRecordingSession:
    """Idle -> Recording -> Idle, optionally suspending the caller.

    A direct ``start`` returns at once and capture spans later interactions.
    A nested ``start`` blocks inside ``host.recursive_edit`` until ``end`` or
    ``abort`` runs from within that loop.
    """

    def __init__(
        self,
        registry: OverlayRegistry,
        host: KeyHost,
        *,
        history_size: int = 16,
        logger_name: str | None = None,
    ) -> None:
        self.registry = registry
        self.host = host
        self.history: Deque[RecordedMacro] = deque(maxlen=history_size)
        self._recording = False
        self._buffer: List[KeyStroke] = []
        self._frames: List[RecordingFrame] = []
        self._logger_name = logger_name

    @property
    def recording(self) -> bool:
        return self._recording

    @property
    def nested(self) -> bool:
        return bool(self._frames)

    @property
    def buffer(self) -> tuple[KeyStroke, ...]:
        return tuple(self._buffer)

    def start(self, *, nested: bool = False) -> Optional[RecordedMacro]:
        if self._recording:
            raise RecordingStateError("Already recording")
        self.registry.enabled = True
        self._recording = True
        self._buffer = []
        record_event(
            "recording.start",
            data={"nested": nested},
            logger_name=self._logger_name,
        )
        if not nested:
            return None

        frame = RecordingFrame()
        self._frames.append(frame)
        with span(
            "recording::nested",
            logger_name=self._logger_name,
            component="recording",
            metadata={"depth": len(self._frames)},
        ):
            try:
                self.host.recursive_edit(lambda: frame.done)
            finally:
                if self._frames and self._frames[-1] is frame:
                    self._frames.pop()
                if not frame.done:
                    self._reset()

        if frame.aborted:
            raise UserAbort("Recording aborted")
        return frame.result

    def record(self, stroke: KeyStroke) -> None:
        if self._recording:
            self._buffer.append(stroke)

    def end(self) -> Optional[RecordedMacro]:
        if not self._recording:
            raise RecordingStateError("Not recording")
        macro = RecordedMacro(tuple(self._buffer)) if self._buffer else None
        if macro is not None:
            self.history.appendleft(macro)
        self._reset()
        record_event(
            "recording.end",
            data={"length": len(macro) if macro else 0, "nested": self.nested},
            logger_name=self._logger_name,
        )
        if self._frames:
            frame = self._frames[-1]
            frame.result = macro
            frame.done = True
        return macro

    def abort(self) -> None:
        if not self._recording:
            raise RecordingStateError("Not recording")
        self._reset()
        record_event(
            "recording.abort",
            level="warning",
            data={"nested": self.nested},
            logger_name=self._logger_name,
        )
        if self._frames:
            frame = self._frames[-1]
            frame.aborted = True
            frame.done = True
            return
        raise UserAbort("Recording aborted")

    def discard(self) -> None:
        """Drop any capture and release suspended callers without raising."""

        self._reset()
        for frame in self._frames:
            frame.aborted = True
            frame.done = True

    def last(self) -> Optional[RecordedMacro]:
        return self.history[0] if self.history else None

    def _reset(self) -> None:
        self._recording = False
        self._buffer = []


__all__ = ["MacroRecordingSession", "RecordingFrame"]
