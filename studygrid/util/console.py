# studygrid/util/console.py
from __future__ import annotations

import os
import sys
from typing import Any


def eprint(*args: Any) -> None:
    print(*args, file=sys.stderr)


def obs_enabled() -> bool:
    v = (os.getenv("STUDYGRID_OBS_LOG", "") or "").strip().lower()
    return v in {"1", "true", "yes", "on"}


def obs_log(component: str, level: str, message: str) -> None:
    """Emit `[studygrid.<component>] LEVEL: message` when STUDYGRID_OBS_LOG is on.

    WARN/ERROR lines are always emitted.
    """
    lvl = (level or "INFO").upper()
    if lvl in ("WARN", "ERROR") or obs_enabled():
        eprint(f"[studygrid.{component}] {lvl}: {message}")
