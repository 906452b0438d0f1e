"""User-tunable settings for overlays, key reads and strategy chains."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Mapping, Optional

from keyoverlay.keys import KeySequence, coerce_sequence

ENV_PREFIX = "KEYOVERLAY_"


class LighterStyle(str, Enum):
    """How the status indicator renders overlay state."""

    NUMBER = "number"
    TAG = "tag"
    SIMPLE = "simple"
    STATIC = "static"
    CUSTOM = "custom"


STRATEGY_NAMES = ("symbol", "key_sequence", "recursive_edit", "read_key", "recall_record")


@dataclass
class OverlayConfig:
    """Settings consulted by the registry, strategies and lighter."""

    max_overlays: int = 8
    quit_key: str = "ctrl+g"
    macro_complete_key: str = "ctrl+c ctrl+c"
    bind_command_chain: tuple[str, ...] = ("symbol", "key_sequence")
    bind_kmacro_chain: tuple[str, ...] = ("recursive_edit", "read_key", "recall_record")
    set_key_chain: tuple[str, ...] = (
        "symbol",
        "recursive_edit",
        "read_key",
        "key_sequence",
        "recall_record",
    )
    lighter_style: LighterStyle = LighterStyle.NUMBER
    lighter_prefix: str = "KO"
    lighter_text: str = " KO"
    lighter_function: Optional[Callable[..., str]] = field(default=None, repr=False)
    history_size: int = 16

    def __post_init__(self) -> None:
        if self.max_overlays < 1:
            raise ValueError("max_overlays must be positive")
        if self.history_size < 1:
            raise ValueError("history_size must be positive")
        self.lighter_style = LighterStyle(self.lighter_style)
        for chain_name in ("bind_command_chain", "bind_kmacro_chain", "set_key_chain"):
            chain = tuple(getattr(self, chain_name))
            unknown = [name for name in chain if name not in STRATEGY_NAMES]
            if unknown:
                raise ValueError(f"{chain_name} has unknown strategies {unknown}")
            setattr(self, chain_name, chain)
        # fail early on unparsable key settings
        coerce_sequence(self.quit_key)
        coerce_sequence(self.macro_complete_key)

    @property
    def quit_sequence(self) -> KeySequence:
        return coerce_sequence(self.quit_key)

    @property
    def complete_sequence(self) -> KeySequence:
        return coerce_sequence(self.macro_complete_key)

    def chain(self, name: str) -> tuple[str, ...]:
        try:
            return getattr(self, f"{name}_chain")
        except AttributeError as exc:
            raise KeyError(f"Unknown strategy chain '{name}'") from exc

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "OverlayConfig":
        """Build a config from ``KEYOVERLAY_*`` variables."""

        env = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            return env.get(f"{ENV_PREFIX}{name}")

        def chain(name: str) -> Optional[tuple[str, ...]]:
            raw = get(name)
            if raw is None:
                return None
            return tuple(part.strip() for part in raw.split(",") if part.strip())

        overrides: dict[str, object] = {}
        if get("MAX_OVERLAYS"):
            overrides["max_overlays"] = int(get("MAX_OVERLAYS") or "8")
        if get("HISTORY_SIZE"):
            overrides["history_size"] = int(get("HISTORY_SIZE") or "16")
        for key in ("QUIT_KEY", "MACRO_COMPLETE_KEY", "LIGHTER_PREFIX", "LIGHTER_TEXT"):
            value = get(key)
            if value is not None:
                overrides[key.lower()] = value
        if get("LIGHTER_STYLE"):
            overrides["lighter_style"] = LighterStyle(str(get("LIGHTER_STYLE")).lower())
        for key in ("BIND_COMMAND_CHAIN", "BIND_KMACRO_CHAIN", "SET_KEY_CHAIN"):
            value = chain(key)
            if value is not None:
                overrides[key.lower()] = value
        return cls(**overrides)  # type: ignore[arg-type]


__all__ = ["OverlayConfig", "LighterStyle", "STRATEGY_NAMES"]
