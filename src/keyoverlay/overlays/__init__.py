"""Overlay tables, their registry, and the binding entry point."""

from .binder import Binder
from .dispatch import OverlayResolver, ResolutionMatch, ResolutionResult
from .lighter import render_lighter
from .registry import DEFAULT_MAX_OVERLAYS, DispatchView, OverlayRegistry, RegistryStats
from .session import SessionState
from .table import BindingTable

__all__ = [
    "BindingTable",
    "Binder",
    "DispatchView",
    "DEFAULT_MAX_OVERLAYS",
    "OverlayRegistry",
    "OverlayResolver",
    "RegistryStats",
    "ResolutionMatch",
    "ResolutionResult",
    "SessionState",
    "render_lighter",
]
