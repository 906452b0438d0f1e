"""Textual front end for keyoverlay."""

from .controller import QueueHost, TextualOverlayAdapter, TextualUIHooks, stroke_from_textual

__all__ = ["QueueHost", "TextualOverlayAdapter", "TextualUIHooks", "stroke_from_textual"]
