"""Executable Textual app that hosts a keyoverlay command loop."""

from __future__ import annotations

import argparse
from dataclasses import dataclass, replace
from typing import Any, Callable, Optional, Sequence

try:  # pragma: no cover - imported only when demo is run
    from textual import events
    from textual.app import App, ComposeResult
    from textual.containers import Vertical
    from textual.widgets import Footer, Header, Static
except ModuleNotFoundError as exc:  # pragma: no cover - friendly error for missing dep
    raise RuntimeError(
        "Install the 'textual' package to use keyoverlay.adapters.textual.app"
    ) from exc

from keyoverlay.commands import KeyOverlay
from keyoverlay.config import OverlayConfig
from keyoverlay.keys import NamedCommand
from keyoverlay.runtime import telemetry

from .controller import (
    QueueHost,
    TextualOverlayAdapter,
    TextualUIHooks,
    stroke_from_textual,
)

# Host-level keys that reach the overlay commands without any overlay active.
DEMO_BINDINGS = {
    "f2": NamedCommand("set-key"),
    "f3": NamedCommand("start-recording"),
    "f4": NamedCommand("end-recording"),
    "f5": NamedCommand("abort-recording"),
    "f6": NamedCommand("bind-last-recorded"),
    "f7": NamedCommand("disable-last"),
    "f8": NamedCommand("quit-all"),
    "f9": NamedCommand("stop-edit"),
}


@dataclass
class UIState:
    lighter_text: str = ""
    status_text: str = ""
    prompt_text: str = ""


class KeyOverlayApp(App[None]):
    """Minimal Textual UI showing overlay state as keys are typed."""

    CSS = """
	Screen {
		layout: vertical;
	}

	#log-view {
		height: 1fr;
		border: round $accent;
		padding: 0 1;
		overflow: auto;
	}

	#status-line {
		height: 1;
		background: $surface-darken-1;
		padding: 0 1;
	}

	#prompt-line {
		height: 1;
		background: $surface-darken-2;
		padding: 0 1;
	}
	"""

    BINDINGS = [("ctrl+q", "quit", "Quit")]

    def __init__(self, *, config: OverlayConfig | None = None) -> None:
        super().__init__()
        self._state = UIState()
        self._config = config or OverlayConfig()
        self._lines: list[str] = []
        self.host: QueueHost | None = None
        self.adapter: TextualOverlayAdapter | None = None
        self._log_widget: Static | None = None
        self._status_widget: Static | None = None
        self._prompt_widget: Static | None = None

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Vertical(id="log-area"):
            self._log_widget = Static("", id="log-view")
            yield self._log_widget
        self._status_widget = Static("", id="status-line")
        self._prompt_widget = Static("", id="prompt-line")
        yield self._status_widget
        yield self._prompt_widget
        yield Footer()

    def on_mount(self) -> None:
        self.host = QueueHost(
            commands={"hello": lambda: self._from_worker(self._update_status, "hello")},
            bindings=DEMO_BINDINGS,
            quit_key=self._config.quit_key,
        )
        self.host.show_prompt = lambda text: self._from_worker(self._show_prompt, text)
        self.host.show_message = lambda text: self._from_worker(self._update_status, text)
        hooks = TextualUIHooks(
            update_lighter=lambda text: self._from_worker(self._update_lighter, text),
            update_status=lambda text: self._from_worker(self._update_status, text),
            show_prompt=lambda text: self._from_worker(self._show_prompt, text),
            log=lambda line: self._from_worker(self._log_line, line),
        )
        overlay = KeyOverlay(self.host, self._config)
        self.adapter = TextualOverlayAdapter(overlay, hooks)
        # one worker thread runs every command, nested loops included
        self.run_worker(self.adapter.run, thread=True, exclusive=True)

    def on_unmount(self) -> None:
        if self.host:
            self.host.close()

    def on_key(self, event: events.Key) -> None:
        if not self.host or event.key == "ctrl+q":
            return
        self.host.put(stroke_from_textual(event.key))
        event.stop()

    def _from_worker(self, callback: Callable[..., Any], *args: Any) -> None:
        try:
            self.call_from_thread(callback, *args)
        except RuntimeError:
            # already on the UI thread
            callback(*args)

    def _update_lighter(self, text: str) -> None:
        self._state.lighter_text = text
        self.sub_title = text.strip()

    def _update_status(self, status: str) -> None:
        self._state.status_text = status
        if self._status_widget:
            self._status_widget.update(status)

    def _show_prompt(self, text: str) -> None:
        self._state.prompt_text = text
        if self._prompt_widget:
            self._prompt_widget.update(text)

    def _log_line(self, line: str) -> None:
        self._lines = (self._lines + [line])[-200:]
        if self._log_widget:
            self._log_widget.update("\n".join(self._lines))


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the keyoverlay Textual demo.")
    parser.add_argument(
        "--max-overlays",
        type=int,
        default=None,
        help="Maximum number of overlays (default: KEYOVERLAY_MAX_OVERLAYS or 8)",
    )
    parser.add_argument(
        "--lighter-style",
        choices=["number", "tag", "simple", "static"],
        default=None,
        help="Status indicator style",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="telelog level (default: KEYOVERLAY_LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Write overlay logs to this file; the console stays free for the UI",
    )
    parser.add_argument("--log-json", action="store_true", help="JSON log records")
    return parser.parse_args(argv)


def _log_settings(args: argparse.Namespace) -> telemetry.LogSettings:
    settings = telemetry.LogSettings.from_env()
    changes: dict[str, Any] = {}
    if args.log_level:
        changes["level"] = args.log_level
    if args.log_file:
        # console output would draw over the Textual screen
        changes.update(log_file=args.log_file, console=False)
    if args.log_json:
        changes["json"] = True
    return replace(settings, **changes) if changes else settings


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    telemetry.configure(_log_settings(args))
    config = OverlayConfig.from_env()
    overrides: dict[str, Any] = {}
    if args.max_overlays is not None:
        overrides["max_overlays"] = args.max_overlays
    if args.lighter_style is not None:
        overrides["lighter_style"] = args.lighter_style
    if overrides:
        config = replace(config, **overrides)
    KeyOverlayApp(config=config).run()


if __name__ == "__main__":  # pragma: no cover - manual demo
    main()
