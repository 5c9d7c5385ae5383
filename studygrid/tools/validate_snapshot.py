#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List

from studygrid.snapshot import schedule_from_document, validate_records

from ._grid_cli import add_grid_args, grid_config_from_args, load_document


def _die(msg: str, rc: int = 2) -> int:
    print(f"[studygrid-validate-snapshot] ERROR: {msg}", file=sys.stderr)
    return rc


def main(argv: List[str] | None = None) -> int:
    ap = argparse.ArgumentParser(
        prog="studygrid-validate-snapshot",
        description="Validate persisted schedule records (YYYY-MM-DD-HH ids, subjects, memo items).",
    )
    ap.add_argument("--in", dest="in_json", required=True, help="Schedule JSON (record list or app-state object)")
    add_grid_args(ap)
    ns = ap.parse_args(argv)

    p = Path(ns.in_json)
    if not p.exists():
        return _die(f"Missing JSON file: {p}")
    try:
        doc = load_document(p)
    except Exception as e:
        return _die(f"Failed to load JSON: {p} ({e})")

    errs = validate_records(schedule_from_document(doc), cfg=grid_config_from_args(ns))
    if errs:
        print("[studygrid-validate-snapshot] FAIL", file=sys.stderr)
        for e in errs:
            print(f"  - {e}", file=sys.stderr)
        return 3

    print("[studygrid-validate-snapshot] OK")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
