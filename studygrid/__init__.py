"""studygrid Python package.

Daily study planner grid engine: per-hour slots, derived session blocks and
collision-aware move/resize/delete mutations.

Public API:
  - import from `studygrid.api` (preferred) or `import studygrid` (re-export)
"""

from __future__ import annotations

from .api import *  # noqa: F401,F403
from . import api as _api

__all__ = list(_api.__all__)
