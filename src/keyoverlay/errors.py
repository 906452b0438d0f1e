"""Error taxonomy for overlay operations.

Every failure here is local and synchronous: it is raised to the invoking
command and leaves the registry in its last valid state.
"""

from __future__ import annotations

from typing import Sequence


class OverlayError(RuntimeError):
    """Base class for all keyoverlay failures."""


class InvalidArgument(OverlayError, ValueError):
    """Raised for malformed key sequences or argument shapes."""

    def __init__(self, message: str, value: object = None) -> None:
        super().__init__(message)
        self.value = value


class InvalidDestination(OverlayError):
    """Raised when an explicit destination overlay is not registered and live."""

    def __init__(self, message: str, identity: int | None = None) -> None:
        super().__init__(message)
        self.identity = identity


class InvalidAction(OverlayError, TypeError):
    """Raised when an action fails the type check of the bind variant."""

    def __init__(self, message: str, action: object = None) -> None:
        super().__init__(message)
        self.action = action


class UndefinedRank(OverlayError):
    """Raised when a strategy rank falls outside the configured chain."""

    def __init__(self, rank: int, chain: Sequence[str]):
        chain_tuple = tuple(chain)
        super().__init__(
            f"Undefined argument: rank {rank} not in chain {list(chain_tuple)}"
        )
        self.rank = rank
        self.chain = chain_tuple


class UserAbort(OverlayError):
    """Raised when the quit sequence is read; unwinds the current command."""


class RecordingStateError(OverlayError):
    """Raised when a recording transition is invalid for the current state."""


__all__ = [
    "OverlayError",
    "InvalidArgument",
    "InvalidDestination",
    "InvalidAction",
    "UndefinedRank",
    "UserAbort",
    "RecordingStateError",
]
