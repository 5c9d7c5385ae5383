# studygrid/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

from .util.slotkey import MAX_KEY_HOUR

DEFAULT_FIRST_HOUR = 8
DEFAULT_END_HOUR = MAX_KEY_HOUR + 1  # exclusive; hour 24 is 00:00 of the next day
DEFAULT_EXIT_DELAY_MS = 300


@dataclass(frozen=True)
class GridConfig:
    """Daily grid bounds plus the removal delay callers should wait before
    completing a two-phase removal.

    The engine never sleeps on `exit_delay_ms`; it is carried here so the UI,
    a timer wheel or a headless driver all read the same value.
    """

    first_hour: int = DEFAULT_FIRST_HOUR
    end_hour: int = DEFAULT_END_HOUR
    exit_delay_ms: int = DEFAULT_EXIT_DELAY_MS

    def contains(self, hour: int) -> bool:
        return self.first_hour <= int(hour) < self.end_hour

    def hours(self) -> range:
        return range(self.first_hour, self.end_hour)


DEFAULT_CONFIG = GridConfig()


def _as_int(v: Any) -> Optional[int]:
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v
    if isinstance(v, str) and v.strip():
        try:
            return int(v.strip())
        except ValueError:
            return None
    return None


def config_from_dict(cfg: Mapping[str, Any] | None) -> GridConfig:
    """Build a GridConfig from a loose cfg dict.

    Unknown keys are ignored. Bounds are clamped to 0..25; an empty or inverted
    range falls back to the default grid.
    """
    cfg = cfg if isinstance(cfg, Mapping) else {}

    first = _as_int(cfg.get("first_hour"))
    end = _as_int(cfg.get("end_hour"))
    delay = _as_int(cfg.get("exit_delay_ms"))

    first = DEFAULT_FIRST_HOUR if first is None else max(0, min(DEFAULT_END_HOUR, first))
    end = DEFAULT_END_HOUR if end is None else max(0, min(DEFAULT_END_HOUR, end))
    if end <= first:
        first, end = DEFAULT_FIRST_HOUR, DEFAULT_END_HOUR

    if delay is None or delay < 0:
        delay = DEFAULT_EXIT_DELAY_MS

    return GridConfig(first_hour=first, end_hour=end, exit_delay_ms=delay)


def config_from_env(environ: Mapping[str, str] | None = None) -> GridConfig:
    env = os.environ if environ is None else environ
    return config_from_dict(
        {
            "first_hour": env.get("STUDYGRID_FIRST_HOUR"),
            "end_hour": env.get("STUDYGRID_END_HOUR"),
            "exit_delay_ms": env.get("STUDYGRID_EXIT_DELAY_MS"),
        }
    )


def config_to_dict(cfg: GridConfig) -> Dict[str, int]:
    return {
        "first_hour": int(cfg.first_hour),
        "end_hour": int(cfg.end_hour),
        "exit_delay_ms": int(cfg.exit_delay_ms),
    }


def hour_label(hour: int) -> str:
    # 24 and 25 wrap onto the next day.
    return f"{int(hour) % 24:02d}:00"


def grid_hours(cfg: GridConfig = DEFAULT_CONFIG) -> List[str]:
    """Row labels for the grid, one per hour."""
    return [hour_label(h) for h in cfg.hours()]
