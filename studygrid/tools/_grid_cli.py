from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict

from studygrid.config import GridConfig, config_from_dict, config_from_env, config_to_dict
from studygrid.model import Subject, subjects_by_id


def add_grid_args(ap: argparse.ArgumentParser) -> None:
    ap.add_argument("--first-hour", type=int, default=None, help="First grid hour (default: env STUDYGRID_FIRST_HOUR or 8)")
    ap.add_argument("--end-hour", type=int, default=None, help="Exclusive grid end hour (default: env STUDYGRID_END_HOUR or 25)")


def grid_config_from_args(ns: argparse.Namespace) -> GridConfig:
    """Env first, then explicit flags."""
    cfg = config_to_dict(config_from_env())
    if getattr(ns, "first_hour", None) is not None:
        cfg["first_hour"] = int(ns.first_hour)
    if getattr(ns, "end_hour", None) is not None:
        cfg["end_hour"] = int(ns.end_hour)
    return config_from_dict(cfg)


def load_document(path: Path) -> Any:
    obj = json.loads(path.read_text(encoding="utf-8", errors="replace"))
    if not isinstance(obj, (dict, list)):
        raise ValueError(f"schedule document must be a JSON object or list; got {type(obj).__name__}")
    return obj


def subjects_from_document(doc: Any) -> Dict[str, Subject]:
    raw = doc.get("subjects") if isinstance(doc, dict) else None
    if not isinstance(raw, list):
        return {}
    subjects = []
    for s in raw:
        if not isinstance(s, dict):
            continue
        sid = s.get("id")
        if not isinstance(sid, str) or not sid:
            continue
        subjects.append(
            Subject(
                id=sid,
                name=str(s.get("name") or sid),
                color=str(s.get("color") or ""),
                text_color=str(s.get("textColor") or ""),
            )
        )
    return subjects_by_id(subjects)
