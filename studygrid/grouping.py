# studygrid/grouping.py
from __future__ import annotations

from collections.abc import Mapping
from typing import Callable, Iterable, List, Optional, Set, Union

from .config import hour_label
from .model import Block, Slot, Subject
from .util.slotkey import SlotKey

SubjectLookup = Union[Mapping[str, Subject], Callable[[str], Optional[Subject]]]


def _lookup(subjects: Optional[SubjectLookup], subject_id: str) -> Optional[Subject]:
    if subjects is None:
        return None
    if isinstance(subjects, Mapping):
        return subjects.get(subject_id)
    return subjects(subject_id)


def _can_extend(last: Block, slot: Slot) -> bool:
    if last.end_hour != slot.hour:
        return False
    if last.slot.subject_id != slot.subject_id:
        return False
    if last.slot.notes != slot.notes:
        return False
    # An exiting hour breaks adjacency: each one is its own block.
    return not last.has_exiting and not slot.is_exiting


def group_day(slots: Iterable[Slot], subjects: Optional[SubjectLookup] = None) -> List[Block]:
    """Derive display blocks for one date.

    `slots` must all belong to the same date (callers scope by date first).
    Order of the input does not matter; hours are scanned ascending. Pure:
    unchanged input always yields structurally equal output.
    """
    ordered = sorted(slots, key=lambda s: s.hour)
    if ordered:
        date = ordered[0].date
        for s in ordered:
            if s.date != date:
                raise ValueError(f"group_day expects one date; got {date} and {s.date}")

    blocks: List[Block] = []
    for slot in ordered:
        last = blocks[-1] if blocks else None
        if last is not None and _can_extend(last, slot):
            blocks[-1] = Block(
                date=last.date,
                start_hour=last.start_hour,
                end_hour=slot.hour + 1,
                slot=last.slot,
                has_entering=last.has_entering or slot.is_entering,
                has_exiting=False,
                subject=last.subject,
            )
        else:
            blocks.append(
                Block(
                    date=slot.date,
                    start_hour=slot.hour,
                    end_hour=slot.hour + 1,
                    slot=slot,
                    has_entering=slot.is_entering,
                    has_exiting=slot.is_exiting,
                    subject=_lookup(subjects, slot.subject_id),
                )
            )
    return blocks


def occupied_hours(blocks: Iterable[Block]) -> Set[int]:
    hours: Set[int] = set()
    for b in blocks:
        hours.update(b.hours())
    return hours


def block_at(blocks: Iterable[Block], hour: int) -> Optional[Block]:
    for b in blocks:
        if b.contains(hour):
            return b
    return None


def block_keys(block: Block) -> List[SlotKey]:
    return [(block.date, h) for h in block.hours()]


def block_label(block: Block) -> str:
    return f"{hour_label(block.start_hour)}-{hour_label(block.end_hour)}"


__all__ = [
    "SubjectLookup",
    "block_at",
    "block_keys",
    "block_label",
    "group_day",
    "occupied_hours",
]
