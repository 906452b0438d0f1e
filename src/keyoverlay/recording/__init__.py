"""Keyboard macro capture used by the recursive-edit strategy."""

from .session import MacroRecordingSession, RecordingFrame

__all__ = ["MacroRecordingSession", "RecordingFrame"]
