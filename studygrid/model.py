# studygrid/model.py
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Iterable, Optional, Tuple

from .util.slotkey import SlotKey, format_slot_key

# Slot lifecycle flags (transient, never persisted).
STABLE = "stable"
ENTERING = "entering"
EXITING = "exiting"

LIFECYCLE_FLAGS = (STABLE, ENTERING, EXITING)


@dataclass(frozen=True)
class NoteItem:
    id: str
    text: str
    completed: bool = False


Notes = Tuple[NoteItem, ...]


@dataclass(frozen=True)
class Subject:
    id: str
    name: str
    color: str = ""
    text_color: str = ""


@dataclass(frozen=True)
class Slot:
    date: str
    hour: int
    subject_id: str
    notes: Notes = ()
    lifecycle: str = STABLE

    @property
    def key(self) -> SlotKey:
        return (self.date, self.hour)

    @property
    def slot_id(self) -> str:
        return format_slot_key(self.date, self.hour)

    @property
    def is_entering(self) -> bool:
        return self.lifecycle == ENTERING

    @property
    def is_exiting(self) -> bool:
        return self.lifecycle == EXITING

    def with_lifecycle(self, lifecycle: str) -> "Slot":
        if lifecycle not in LIFECYCLE_FLAGS:
            raise ValueError(f"Unknown lifecycle flag: {lifecycle!r}")
        return replace(self, lifecycle=lifecycle)


@dataclass(frozen=True)
class Block:
    """A maximal run of contiguous, attribute-identical slots on one date."""

    date: str
    start_hour: int
    end_hour: int  # exclusive
    slot: Slot  # representative member (subject_id / notes)
    has_entering: bool = False
    has_exiting: bool = False
    subject: Optional[Subject] = None

    @property
    def duration(self) -> int:
        return self.end_hour - self.start_hour

    @property
    def subject_id(self) -> str:
        return self.slot.subject_id

    @property
    def notes(self) -> Notes:
        return self.slot.notes

    def hours(self) -> range:
        return range(self.start_hour, self.end_hour)

    def contains(self, hour: int) -> bool:
        return self.start_hour <= int(hour) < self.end_hour


def subjects_by_id(subjects: Iterable[Subject]) -> Dict[str, Subject]:
    out: Dict[str, Subject] = {}
    for s in subjects:
        if isinstance(s, Subject) and s.id:
            out[s.id] = s
    return out


__all__ = [
    "Block",
    "ENTERING",
    "EXITING",
    "LIFECYCLE_FLAGS",
    "NoteItem",
    "Notes",
    "STABLE",
    "Slot",
    "Subject",
    "subjects_by_id",
]
