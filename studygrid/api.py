"""studygrid.api

Stable *library* entrypoint for studygrid.

Policy:
  - Only names listed in __all__ are considered public API.
  - Everything else is internal and may change without notice.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Optional, Union

from studygrid.config import GridConfig, config_from_dict, config_from_env, grid_hours
from studygrid.engine import MutationEngine, MutationResult
from studygrid.grouping import SubjectLookup, block_at, block_keys, block_label, group_day, occupied_hours
from studygrid.model import Block, NoteItem, Slot, Subject, subjects_by_id
from studygrid.snapshot import (
    SnapshotValidationError,
    load_store,
    schedule_from_document,
    snapshot_records,
    validate_records,
)
from studygrid.store import SlotStore
from studygrid.todos import DailyTodos
from studygrid.util.slotkey import InvalidKey, format_slot_key, parse_slot_key

JsonPath = Union[str, Path]


def load_schedule_from_json(
    path: JsonPath,
    *,
    cfg: Optional[GridConfig] = None,
    strict: bool = True,
) -> SlotStore:
    """Load a SlotStore from a JSON file holding records or an app-state object."""
    p = Path(path)
    obj = json.loads(p.read_text(encoding="utf-8", errors="replace"))
    return load_store(schedule_from_document(obj), cfg=cfg, strict=strict)


def write_schedule_json(path: JsonPath, store: SlotStore) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(
        json.dumps(snapshot_records(store.snapshot()), ensure_ascii=False, indent=2) + "\n",
        encoding="utf-8",
    )


def day_blocks(store: SlotStore, date: str, subjects: Optional[SubjectLookup] = None) -> List[Block]:
    return group_day(store.slots_for_date(date), subjects)


def engine_for(records: Any, *, cfg: Optional[GridConfig] = None, strict: bool = True, **kwargs: Any) -> MutationEngine:
    """Build an engine over persisted records (list or app-state object)."""
    store = load_store(schedule_from_document(records), cfg=cfg, strict=strict)
    return MutationEngine(store, **kwargs)


# --- Public API exports (locked by contract tests) ------------------------
# Keep changes intentional and reviewable.
_PUBLIC_EXPORTS = (
    "Block",
    "DailyTodos",
    "GridConfig",
    "InvalidKey",
    "MutationEngine",
    "MutationResult",
    "NoteItem",
    "Slot",
    "SlotStore",
    "SnapshotValidationError",
    "Subject",
    "block_at",
    "block_keys",
    "block_label",
    "config_from_dict",
    "config_from_env",
    "day_blocks",
    "engine_for",
    "format_slot_key",
    "grid_hours",
    "group_day",
    "load_schedule_from_json",
    "occupied_hours",
    "parse_slot_key",
    "snapshot_records",
    "subjects_by_id",
    "validate_records",
    "write_schedule_json",
)

__all__ = [n for n in _PUBLIC_EXPORTS if n in globals()]
# --- /Public API exports --------------------------------------------------
