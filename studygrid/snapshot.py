# studygrid/snapshot.py
"""Persisted-record interop for SlotStore snapshots.

Record shape (kept compatible with existing saved planner state):

    {"id": "YYYY-MM-DD-HH", "subjectId": "...", "memo": [{"id", "text", "completed"}]}

Lifecycle flags are transient. `isNew` is ignored on input, and rows saved
with `isExiting` are dropped on load (their removal was already in flight).
Neither flag is ever written.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from .config import DEFAULT_CONFIG, GridConfig
from .model import Slot
from .notes import notes_from_records, notes_to_records
from .store import SlotStore
from .util.console import obs_log
from .util.slotkey import InvalidKey, SlotKey, parse_slot_key


class SnapshotValidationError(ValueError):
    """Raised when persisted schedule records fail validation."""


def slot_to_record(slot: Slot) -> Dict[str, Any]:
    return {
        "id": slot.slot_id,
        "subjectId": slot.subject_id,
        "memo": notes_to_records(slot.notes),
    }


def snapshot_records(slots: Iterable[Slot]) -> List[Dict[str, Any]]:
    """Records for a snapshot, ordered by key. Exiting slots are not persisted."""
    ordered = sorted(slots, key=lambda s: s.key)
    return [slot_to_record(s) for s in ordered if not s.is_exiting]


def schedule_from_document(doc: Any) -> Any:
    """Accept either a bare record list or an app-state object with `schedule`."""
    if isinstance(doc, dict):
        return doc.get("schedule", [])
    return doc


def _validate_memo(memo: Any, label: str, errs: List[str]) -> None:
    if memo is None:
        return
    if not isinstance(memo, list):
        errs.append(f"{label}.memo must be list")
        return
    for j, m in enumerate(memo):
        if not isinstance(m, dict):
            errs.append(f"{label}.memo[{j}] must be dict")
            continue
        mid = m.get("id")
        if not (isinstance(mid, str) and mid) and not (isinstance(mid, int) and not isinstance(mid, bool)):
            errs.append(f"{label}.memo[{j}].id must be non-empty string")
        if not isinstance(m.get("text"), str):
            errs.append(f"{label}.memo[{j}].text must be string")
        if "completed" in m and not isinstance(m.get("completed"), bool):
            errs.append(f"{label}.memo[{j}].completed must be bool")


def _validate_record(rec: Any, label: str, cfg: GridConfig) -> List[str]:
    errs: List[str] = []
    if not isinstance(rec, dict):
        return [f"{label} must be dict"]

    rid = rec.get("id")
    if not isinstance(rid, str):
        errs.append(f"{label}.id must be string YYYY-MM-DD-HH")
    else:
        try:
            _date, hour = parse_slot_key(rid)
        except InvalidKey as e:
            errs.append(f"{label}.id: {e}")
        else:
            if not cfg.contains(hour):
                errs.append(f"{label}.id hour {hour} outside grid [{cfg.first_hour}, {cfg.end_hour})")

    sid = rec.get("subjectId")
    if not (isinstance(sid, str) and sid.strip()):
        errs.append(f"{label}.subjectId must be non-empty string")

    _validate_memo(rec.get("memo"), label, errs)
    return errs


def validate_records(records: Any, *, cfg: GridConfig = DEFAULT_CONFIG, label: str = "schedule") -> List[str]:
    if not isinstance(records, list):
        return [f"{label} must be a list"]
    errs: List[str] = []
    seen: Dict[SlotKey, int] = {}
    for i, rec in enumerate(records):
        errs.extend(_validate_record(rec, f"{label}[{i}]", cfg))
        rid = rec.get("id") if isinstance(rec, dict) else None
        if not isinstance(rid, str):
            continue
        try:
            key = parse_slot_key(rid)
        except InvalidKey:
            continue
        if key in seen:
            errs.append(f"{label}[{i}].id duplicates {label}[{seen[key]}] ({rid.strip()})")
        else:
            seen[key] = i
    return errs


def assert_valid_records(records: Any, *, cfg: GridConfig = DEFAULT_CONFIG) -> None:
    errs = validate_records(records, cfg=cfg)
    if errs:
        raise SnapshotValidationError(errs[0])


def _record_to_slot(rec: Dict[str, Any]) -> Slot:
    date, hour = parse_slot_key(rec["id"])
    return Slot(
        date=date,
        hour=hour,
        subject_id=rec["subjectId"].strip(),
        notes=notes_from_records(rec.get("memo") or []),
    )


def load_slots(records: Any, *, cfg: GridConfig = DEFAULT_CONFIG, strict: bool = True) -> List[Slot]:
    """Records -> slots.

    strict=True raises SnapshotValidationError on the first problem.
    strict=False skips bad or duplicate rows with a WARN line (first row wins).
    """
    if strict:
        assert_valid_records(records, cfg=cfg)
    elif not isinstance(records, list):
        obs_log("snapshot", "WARN", f"schedule must be a list; got {type(records).__name__}")
        return []

    out: List[Slot] = []
    seen = set()
    for i, rec in enumerate(records):
        if not strict:
            errs = _validate_record(rec, f"schedule[{i}]", cfg)
            if errs:
                obs_log("snapshot", "WARN", f"skipping record: {errs[0]}")
                continue
        if rec.get("isExiting") is True:
            obs_log("snapshot", "INFO", f"dropping in-flight removal id={rec.get('id')!r}")
            continue
        slot = _record_to_slot(rec)
        if slot.key in seen:
            obs_log("snapshot", "WARN", f"skipping duplicate id={slot.slot_id!r}")
            continue
        seen.add(slot.key)
        out.append(slot)
    return out


def load_store(records: Any, *, cfg: Optional[GridConfig] = None, strict: bool = True) -> SlotStore:
    cfg = cfg or DEFAULT_CONFIG
    return SlotStore(load_slots(records, cfg=cfg, strict=strict), cfg=cfg)


__all__ = [
    "SnapshotValidationError",
    "assert_valid_records",
    "load_slots",
    "load_store",
    "schedule_from_document",
    "slot_to_record",
    "snapshot_records",
    "validate_records",
]
