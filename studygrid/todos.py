# studygrid/todos.py
from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Dict, List, Optional

from . import notes as notes_ops
from .model import Notes
from .notes import NoteIdFactory, notes_from_records, notes_to_records
from .util.console import obs_log
from .util.slotkey import InvalidKey, parse_date_key


class DailyTodos:
    """Per-date checklist shown next to the grid ("today's goals").

    Same item shape and operations as slot notes, keyed by `YYYY-MM-DD`.
    """

    def __init__(self, *, id_factory: Optional[NoteIdFactory] = None) -> None:
        self.id_factory = id_factory
        self._by_date: Dict[str, Notes] = {}

    def items(self, date: str) -> Notes:
        return self._by_date.get(parse_date_key(date), ())

    def _set(self, date: str, items: Notes) -> Notes:
        if items:
            self._by_date[date] = items
        else:
            self._by_date.pop(date, None)
        return items

    def add(self, date: str, text: str) -> Notes:
        date = parse_date_key(date)
        return self._set(date, notes_ops.add_note(self.items(date), text, id_factory=self.id_factory))

    def edit(self, date: str, item_id: str, text: str) -> Notes:
        date = parse_date_key(date)
        return self._set(date, notes_ops.edit_note(self.items(date), item_id, text))

    def toggle(self, date: str, item_id: str) -> Notes:
        date = parse_date_key(date)
        return self._set(date, notes_ops.toggle_note(self.items(date), item_id))

    def delete(self, date: str, item_id: str) -> Notes:
        date = parse_date_key(date)
        return self._set(date, notes_ops.delete_note(self.items(date), item_id))

    def dates(self) -> List[str]:
        return sorted(self._by_date)

    def to_records(self) -> Dict[str, List[Dict[str, Any]]]:
        return {d: notes_to_records(self._by_date[d]) for d in sorted(self._by_date)}

    @classmethod
    def from_records(cls, raw: Mapping[str, Any] | None, *, id_factory: Optional[NoteIdFactory] = None) -> "DailyTodos":
        out = cls(id_factory=id_factory)
        if not isinstance(raw, Mapping):
            return out
        for date, items in raw.items():
            try:
                date = parse_date_key(date)
            except InvalidKey:
                obs_log("todos", "WARN", f"skipping todo list with invalid date {date!r}")
                continue
            if not isinstance(items, list):
                obs_log("todos", "WARN", f"skipping todo list for {date}: not a list")
                continue
            out._set(date, notes_from_records(items))
        return out


__all__ = ["DailyTodos"]
