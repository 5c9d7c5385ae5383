#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List

from studygrid.grouping import block_label, group_day, occupied_hours
from studygrid.model import Block
from studygrid.notes import notes_to_records
from studygrid.snapshot import SnapshotValidationError, load_store, schedule_from_document
from studygrid.util.slotkey import InvalidKey, parse_date_key

from ._grid_cli import add_grid_args, grid_config_from_args, load_document, subjects_from_document


def _die(msg: str, rc: int = 2) -> int:
    print(f"[studygrid-day-view] ERROR: {msg}", file=sys.stderr)
    return rc


def _block_json(b: Block) -> Dict[str, Any]:
    return {
        "start_hour": b.start_hour,
        "end_hour": b.end_hour,
        "label": block_label(b),
        "subject_id": b.subject_id,
        "subject_name": b.subject.name if b.subject else None,
        "notes": notes_to_records(b.notes),
        "has_entering": b.has_entering,
        "has_exiting": b.has_exiting,
    }


def _block_line(b: Block) -> str:
    name = b.subject.name if b.subject else b.subject_id
    line = f"{block_label(b)}  {name}"
    if b.notes:
        done = sum(1 for n in b.notes if n.completed)
        line += f"  [{done}/{len(b.notes)} done]"
    if b.has_exiting:
        line += "  (exiting)"
    elif b.has_entering:
        line += "  (new)"
    return line


def main(argv: List[str] | None = None) -> int:
    ap = argparse.ArgumentParser(
        prog="studygrid-day-view",
        description="Print the session blocks of one day from a schedule JSON.",
    )
    ap.add_argument("--in", dest="in_json", required=True, help="Schedule JSON (record list or app-state object)")
    ap.add_argument("--date", required=True, help="Day to show, YYYY-MM-DD")
    ap.add_argument("--json", action="store_true", help="Emit JSON instead of text lines")
    ap.add_argument("--lenient", action="store_true", help="Skip invalid records instead of failing")
    add_grid_args(ap)
    ns = ap.parse_args(argv)

    try:
        date = parse_date_key(ns.date)
    except InvalidKey as e:
        return _die(str(e))

    in_path = Path(ns.in_json)
    if not in_path.exists():
        return _die(f"Missing input JSON: {in_path}")

    cfg = grid_config_from_args(ns)
    try:
        doc = load_document(in_path)
        store = load_store(schedule_from_document(doc), cfg=cfg, strict=not ns.lenient)
    except SnapshotValidationError as e:
        return _die(f"Invalid schedule: {e}", rc=3)
    except Exception as e:
        return _die(f"Failed to load JSON: {in_path} ({e})")

    blocks = group_day(store.slots_for_date(date), subjects_from_document(doc))

    if ns.json:
        out = {
            "date": date,
            "blocks": [_block_json(b) for b in blocks],
            "occupied_hours": sorted(occupied_hours(blocks)),
        }
        print(json.dumps(out, ensure_ascii=False, indent=2, sort_keys=True))
        return 0

    print(f"{date}  blocks={len(blocks)}")
    for b in blocks:
        print("  " + _block_line(b))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
