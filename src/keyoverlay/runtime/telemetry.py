"""telelog-backed logging for overlay operations.

Registry mutations, binder writes, strategy runs and recording transitions
run inside ``span``; state changes worth auditing afterwards (session
start/stop, eviction of an active overlay, recording end/abort) go through
``record_event``. ``LogSettings`` is read from ``KEYOVERLAY_*`` variables on
first use and can be replaced with ``configure``.
"""

from __future__ import annotations

import os
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Mapping, MutableMapping, Optional, cast

import telelog  # type: ignore[import]

from keyoverlay.errors import UserAbort

tl = cast(Any, telelog)

ENV_PREFIX = "KEYOVERLAY_"
ROOT_LOGGER = "keyoverlay"
_TRUTHY = {"1", "true", "yes", "on"}

_loggers: MutableMapping[str, Any] = {}
_settings: Optional["LogSettings"] = None
_config: Optional[Any] = None


@dataclass(frozen=True, slots=True)
class LogSettings:
    """Where overlay logs go and how much of them."""

    level: str = "INFO"
    console: bool = True
    color: bool = True
    json: bool = False
    log_file: str = ""
    # 0 writes through, anything else buffers that many records
    buffer_size: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "level", self.level.upper())
        if self.buffer_size < 0:
            raise ValueError("buffer_size cannot be negative")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "LogSettings":
        env = os.environ if environ is None else environ

        def flag(name: str, default: bool) -> bool:
            raw = env.get(f"{ENV_PREFIX}{name}")
            return default if raw is None else raw.lower() in _TRUTHY

        return cls(
            level=env.get(f"{ENV_PREFIX}LOG_LEVEL") or "INFO",
            console=not flag("DISABLE_CONSOLE", False),
            color=not flag("NO_COLOR", False),
            json=flag("LOG_JSON", False),
            log_file=env.get(f"{ENV_PREFIX}LOG_FILE", ""),
            buffer_size=int(env.get(f"{ENV_PREFIX}LOG_BUFFER_SIZE") or "0"),
        )

    def to_config(self) -> Any:
        config = tl.Config()
        config.with_min_level(self.level)
        config.with_console_output(self.console)
        if self.console:
            config.with_colored_output(self.color)
        if self.json:
            config.with_json_format(True)
        if self.log_file:
            config.with_file_output(self.log_file)
        if self.buffer_size:
            config.with_buffering(True)
            config.with_buffer_size(self.buffer_size)
        # span() leans on logger.profile
        config.with_profiling(True)
        return config


def configure(settings: LogSettings | None = None) -> LogSettings:
    """Adopt ``settings`` (or the environment's) for every logger from now on."""

    global _settings, _config
    _settings = settings or LogSettings.from_env()
    _config = _settings.to_config()
    _loggers.clear()
    return _settings


def current_settings() -> LogSettings:
    if _settings is None:
        configure()
    return cast(LogSettings, _settings)


def get_logger(name: Optional[str] = None) -> Any:
    logger_name = name or ROOT_LOGGER
    if logger_name not in _loggers:
        current_settings()
        _loggers[logger_name] = tl.Logger.with_config(logger_name, _config)
    return _loggers[logger_name]


def _text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list, tuple, set)):
        return repr(value)
    return str(value)


def _write(log: Any, level: str, message: str, payload: Dict[str, Any]) -> None:
    name = level.lower()
    structured = getattr(log, f"{name}_with", None)
    if structured is not None:
        structured(message, [(key, _text(value)) for key, value in payload.items()])
        return
    plain = getattr(log, name, None)
    if plain is None:
        raise ValueError(f"Unsupported log level '{level}'.")
    plain(f"{message} {payload}")


def record_event(
    name: str,
    *,
    level: str = "info",
    data: Optional[Dict[str, Any]] = None,
    logger_name: Optional[str] = None,
) -> None:
    """Log ``event::<name>`` with ``data`` as structured fields."""

    _write(get_logger(logger_name), level, f"event::{name}", {"event": name, **(data or {})})


@dataclass(slots=True)
class SpanHandle:
    logger: Any
    name: str
    component: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    def add_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = _text(value)

    def fail(self, reason: str) -> None:
        self._report("error", "span::fail", reason)

    def cancel(self, reason: str) -> None:
        self._report("warning", "span::cancel", reason)

    def _report(self, level: str, message: str, reason: str) -> None:
        payload: Dict[str, Any] = {"span": self.name, **self.metadata}
        if self.component:
            payload["component"] = self.component
        payload["reason"] = reason
        _write(self.logger, level, message, payload)


@contextmanager
def span(
    name: str,
    *,
    logger_name: Optional[str] = None,
    component: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Iterator[SpanHandle]:
    """Profile one overlay operation.

    ``metadata`` is attached as logger context for the duration of the
    block. A ``UserAbort`` (quit key, aborted recording) is reported as
    ``span::cancel``; any other exception as ``span::fail``. Both propagate.
    """

    log = get_logger(logger_name)
    context = {key: _text(value) for key, value in (metadata or {}).items()}
    for key, value in context.items():
        log.add_context(key, value)

    handle = SpanHandle(logger=log, name=name, component=component, metadata=dict(context))
    with ExitStack() as stack:
        if component:
            stack.enter_context(log.track_component(component))
        stack.enter_context(log.profile(name))
        try:
            yield handle
        except UserAbort as exc:
            handle.cancel(str(exc) or "quit")
            raise
        except Exception as exc:
            handle.fail(str(exc))
            raise
        finally:
            for key in context:
                log.remove_context(key)


__all__ = [
    "LogSettings",
    "SpanHandle",
    "configure",
    "current_settings",
    "get_logger",
    "record_event",
    "span",
]
