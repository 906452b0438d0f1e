"""Status-line text summarizing overlay state."""

from __future__ import annotations

from keyoverlay.config import LighterStyle, OverlayConfig

from .registry import OverlayRegistry


def render_lighter(registry: OverlayRegistry, config: OverlayConfig) -> str:
    if not registry.enabled:
        return ""

    style = config.lighter_style
    prefix = config.lighter_prefix
    editing = "*" if registry.session.editing else ""

    if style is LighterStyle.STATIC:
        return config.lighter_text
    if style is LighterStyle.SIMPLE:
        return f" {prefix}{editing}"
    if style is LighterStyle.CUSTOM:
        if config.lighter_function is None:
            raise ValueError("lighter_style 'custom' requires lighter_function")
        return str(config.lighter_function(registry))

    active = [table for table in registry if table.active]
    if style is LighterStyle.TAG:
        labels = [table.label for table in active]
    else:
        labels = [str(table.identity) for table in active]
    return f" {prefix}{editing}[{','.join(labels)}]"


__all__ = ["render_lighter"]
