# studygrid/notes.py
"""Checklist notes attached to a slot (and, through group writes, a block).

All operations are pure: they take a notes tuple and return a new one, so
applying the same call to every member slot of a block yields structurally
identical results.
"""

from __future__ import annotations

import uuid as uuidlib
from typing import Any, Callable, Dict, Iterable, List, Optional

from .model import NoteItem, Notes

NoteIdFactory = Callable[[], str]


def new_note_id() -> str:
    return uuidlib.uuid4().hex


def add_note(notes: Notes, text: str, *, id_factory: Optional[NoteIdFactory] = None) -> Notes:
    """Append a new unchecked item. Blank text leaves `notes` unchanged."""
    text = (text or "").strip()
    if not text:
        return tuple(notes)
    make_id = id_factory or new_note_id
    return tuple(notes) + (NoteItem(id=str(make_id()), text=text, completed=False),)


def edit_note(notes: Notes, note_id: str, text: str) -> Notes:
    return tuple(
        NoteItem(id=n.id, text=str(text), completed=n.completed) if n.id == note_id else n
        for n in notes
    )


def toggle_note(notes: Notes, note_id: str) -> Notes:
    return tuple(
        NoteItem(id=n.id, text=n.text, completed=not n.completed) if n.id == note_id else n
        for n in notes
    )


def delete_note(notes: Notes, note_id: str) -> Notes:
    return tuple(n for n in notes if n.id != note_id)


def notes_to_records(notes: Notes) -> List[Dict[str, Any]]:
    return [{"id": n.id, "text": n.text, "completed": bool(n.completed)} for n in notes]


def notes_from_records(raw: Iterable[Any] | None) -> Notes:
    """Build a notes tuple from persisted memo records; malformed items are dropped."""
    out: List[NoteItem] = []
    if raw is None:
        return ()
    for item in raw:
        if not isinstance(item, dict):
            continue
        nid = item.get("id")
        if isinstance(nid, int) and not isinstance(nid, bool):
            nid = str(nid)
        if not isinstance(nid, str) or not nid:
            continue
        text = item.get("text")
        out.append(
            NoteItem(
                id=nid,
                text=text if isinstance(text, str) else "",
                completed=item.get("completed") is True,
            )
        )
    return tuple(out)


def coerce_notes(notes: Iterable[Any] | None) -> Notes:
    """Accept NoteItem objects or memo dicts."""
    if notes is None:
        return ()
    items = list(notes)
    if all(isinstance(n, NoteItem) for n in items):
        return tuple(items)
    out: List[NoteItem] = []
    for n in items:
        if isinstance(n, NoteItem):
            out.append(n)
        else:
            out.extend(notes_from_records([n]))
    return tuple(out)


__all__ = [
    "NoteIdFactory",
    "add_note",
    "coerce_notes",
    "delete_note",
    "edit_note",
    "new_note_id",
    "notes_from_records",
    "notes_to_records",
    "toggle_note",
]
