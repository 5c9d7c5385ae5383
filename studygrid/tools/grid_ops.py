#!/usr/bin/env python3
"""Apply one grid mutation to a schedule JSON, headlessly.

Two-phase removals (delete, shrink) are completed immediately: there is no
exit transition to wait for outside a UI.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, List, Optional

from studygrid.engine import MutationEngine, MutationResult, pending_removals
from studygrid.grouping import block_at
from studygrid.model import Block
from studygrid.notes import add_note
from studygrid.snapshot import SnapshotValidationError, load_store, schedule_from_document, snapshot_records
from studygrid.util.slotkey import parse_slot_key

from ._grid_cli import add_grid_args, grid_config_from_args, load_document

OPS = ("create", "delete", "move", "resize", "add-note", "edit-note", "toggle-note", "delete-note")


def _die(msg: str, rc: int = 2) -> int:
    print(f"[studygrid-grid-ops] ERROR: {msg}", file=sys.stderr)
    return rc


def _require(ns: argparse.Namespace, name: str) -> Any:
    v = getattr(ns, name)
    if v is None:
        raise ValueError(f"--op {ns.op} requires --{name.replace('_', '-')}")
    return v


def _block_for(engine: MutationEngine, key: str) -> Optional[Block]:
    date, hour = parse_slot_key(key)
    return block_at(engine.blocks_for(date), hour)


def _run_op(engine: MutationEngine, ns: argparse.Namespace) -> MutationResult:
    op = ns.op
    if op == "create":
        blk = _block_for(engine, ns.key)
        if ns.note:
            notes = ()
            for text in ns.note:
                notes = add_note(notes, text)
        else:
            notes = blk.notes if blk is not None else ()
        return engine.create_or_edit_slot(ns.key, ns.subject, notes)
    if op == "delete":
        return engine.delete_block(ns.key)

    blk = _block_for(engine, ns.key)
    if blk is None:
        raise ValueError(f"no block at {ns.key}")
    if op == "move":
        return engine.move_block(blk, int(_require(ns, "target")))
    if op == "resize":
        return engine.resize_block(blk, int(_require(ns, "end")))
    if op == "add-note":
        return engine.add_note(blk, _require(ns, "text"))
    if op == "edit-note":
        return engine.edit_note(blk, _require(ns, "note_id"), _require(ns, "text"))
    if op == "toggle-note":
        return engine.toggle_note(blk, _require(ns, "note_id"))
    if op == "delete-note":
        return engine.delete_note(blk, _require(ns, "note_id"))
    raise ValueError(f"Unknown op: {op}")


def main(argv: List[str] | None = None) -> int:
    ap = argparse.ArgumentParser(
        prog="studygrid-grid-ops",
        description="Apply one grid mutation (create/delete/move/resize/notes) to a schedule JSON.",
    )
    ap.add_argument("--in", dest="in_json", required=True, help="Input schedule JSON (record list or app-state object)")
    ap.add_argument("--out", default=None, help="Write the updated document here (default: print to stdout)")
    ap.add_argument("--op", required=True, choices=OPS, help="Operation to apply")
    ap.add_argument("--key", required=True, help="Slot key YYYY-MM-DD-HH selecting the hour/block")
    ap.add_argument("--subject", default=None, help="Subject id for --op create")
    ap.add_argument("--note", action="append", default=None, help="Note text for --op create (repeatable)")
    ap.add_argument("--target", type=int, default=None, help="Target start hour for --op move")
    ap.add_argument("--end", type=int, default=None, help="New exclusive end hour for --op resize")
    ap.add_argument("--note-id", dest="note_id", default=None, help="Note id for note ops")
    ap.add_argument("--text", default=None, help="Note text for add-note/edit-note")
    add_grid_args(ap)
    ns = ap.parse_args(argv)

    in_path = Path(ns.in_json)
    if not in_path.exists():
        return _die(f"Missing input JSON: {in_path}")

    cfg = grid_config_from_args(ns)
    try:
        doc = load_document(in_path)
        store = load_store(schedule_from_document(doc), cfg=cfg, strict=True)
    except SnapshotValidationError as e:
        return _die(f"Invalid schedule: {e}", rc=3)
    except Exception as e:
        return _die(f"Failed to load JSON: {in_path} ({e})")

    engine = MutationEngine(store)
    try:
        result = _run_op(engine, ns)
    except ValueError as e:
        return _die(str(e))

    pending = pending_removals([result])
    if pending:
        engine.complete_removal(pending)

    records = snapshot_records(engine.snapshot())
    if isinstance(doc, dict):
        out_doc: Any = dict(doc)
        out_doc["schedule"] = records
    else:
        out_doc = records
    text = json.dumps(out_doc, ensure_ascii=False, indent=2) + "\n"

    if ns.out:
        out_path = Path(ns.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text, encoding="utf-8")
    else:
        sys.stdout.write(text)

    reason = f" reason={result.reason}" if result.reason else ""
    print(f"[studygrid-grid-ops] {result.status.upper()} op={ns.op}{reason}", file=sys.stderr)
    return 3 if result.rejected else 0


if __name__ == "__main__":
    raise SystemExit(main())
