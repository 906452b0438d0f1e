"""Prioritized pool of transient keybinding overlays."""

__all__ = [
    "adapters",
    "commands",
    "config",
    "errors",
    "host",
    "keys",
    "obtain",
    "overlays",
    "recording",
    "runtime",
]

__version__ = "0.1.0"
