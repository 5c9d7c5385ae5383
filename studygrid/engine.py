# studygrid/engine.py
"""Collision-aware mutations over a SlotStore.

Every operation reads the pre-mutation block layout for its date, decides,
and then writes through a single `SlotStore.commit` (or one `mark_exiting`
call for removals). Business-rule rejections come back as MutationResult;
only structurally invalid input (bad keys, hours outside the grid) raises.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from . import notes as notes_ops
from .config import GridConfig
from .grouping import SubjectLookup, block_at, block_keys, group_day, occupied_hours
from .model import STABLE, ENTERING, Block, Notes, Slot
from .notes import NoteIdFactory, coerce_notes
from .store import SlotStore
from .util.console import obs_log
from .util.slotkey import InvalidKey, KeyLike, SlotKey, coerce_key, coerce_keys

APPLIED = "applied"
NOOP = "noop"
REJECTED = "rejected"

REASON_COLLISION = "collision"
REASON_EXITING = "exiting"
REASON_MISSING_SUBJECT = "missing_subject"
REASON_OUT_OF_RANGE = "out_of_range"
REASON_STALE = "stale"

SnapshotListener = Callable[[Tuple[Slot, ...]], None]


@dataclass(frozen=True)
class MutationResult:
    status: str  # "applied" | "noop" | "rejected"
    reason: Optional[str] = None
    changed: Tuple[SlotKey, ...] = ()
    exiting: Tuple[SlotKey, ...] = ()  # keys awaiting complete_removal

    @property
    def ok(self) -> bool:
        return self.status == APPLIED

    @property
    def rejected(self) -> bool:
        return self.status == REJECTED


_NOOP = MutationResult(status=NOOP)


def _rejected(op: str, reason: str, detail: str = "") -> MutationResult:
    obs_log("engine", "INFO", f"{op} rejected reason={reason}{(' ' + detail) if detail else ''}")
    return MutationResult(status=REJECTED, reason=reason)


class MutationEngine:
    def __init__(
        self,
        store: Optional[SlotStore] = None,
        *,
        cfg: Optional[GridConfig] = None,
        subjects: Optional[SubjectLookup] = None,
        id_factory: Optional[NoteIdFactory] = None,
    ) -> None:
        """`cfg` builds the empty store when none is given; a store carries its own."""
        if store is None:
            store = SlotStore(cfg=cfg) if cfg is not None else SlotStore()
        elif cfg is not None and cfg != store.cfg:
            raise ValueError(f"cfg {cfg!r} does not match the store's {store.cfg!r}")
        self.store = store
        self.cfg = store.cfg
        self.subjects = subjects
        self.id_factory = id_factory
        self._listeners: List[SnapshotListener] = []

    # --- persistence hook -------------------------------------------------
    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Call `listener(snapshot)` after every committed mutation.

        Returns an unsubscribe function.
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        snap = self.store.snapshot()
        for fn in list(self._listeners):
            try:
                fn(snap)
            except Exception as e:
                # Persistence is fire-and-forget; the commit stands.
                obs_log("engine", "WARN", f"snapshot listener failed: {e!r}")

    # --- reads ------------------------------------------------------------
    def blocks_for(self, date: str) -> List[Block]:
        return group_day(self.store.slots_for_date(date), self.subjects)

    def snapshot(self) -> Tuple[Slot, ...]:
        return self.store.snapshot()

    def _layout(self, date: str) -> List[Block]:
        return group_day(self.store.slots_for_date(date))

    def _check_hour(self, date: str, hour: int) -> None:
        if not self.cfg.contains(hour):
            raise InvalidKey(
                f"hour {hour} outside grid [{self.cfg.first_hour}, {self.cfg.end_hour}) for {date}"
            )

    def _resolve(self, block: Block) -> Tuple[Optional[Block], List[Block]]:
        """Find `block` in the current layout.

        Matches on span, subject and notes; lifecycle flags and the attached
        display subject are ignored.
        """
        if not isinstance(block, Block):
            raise TypeError(f"expected Block, got {type(block).__name__}")
        layout = self._layout(block.date)
        for b in layout:
            if (
                b.start_hour == block.start_hour
                and b.end_hour == block.end_hour
                and b.subject_id == block.subject_id
                and b.notes == block.notes
            ):
                return b, layout
        return None, layout

    def _unresolved(self, op: str, block: Block, layout: List[Block]) -> MutationResult:
        # A block split up by a pending removal reports the removal, not staleness.
        for b in layout:
            if b.has_exiting and any(block.contains(h) for h in b.hours()):
                return _rejected(op, REASON_EXITING, f"date={block.date} start={block.start_hour}")
        return _rejected(op, REASON_STALE, f"date={block.date} start={block.start_hour}")

    # --- create / edit / delete -------------------------------------------
    def create_or_edit_slot(self, key: KeyLike, subject_id: Optional[str], notes: Iterable = ()) -> MutationResult:
        """Assign a subject (and notes) to an hour.

        Inside an existing block the write applies to every member hour; an
        empty hour gets one new `entering` slot.
        """
        date, hour = coerce_key(key)
        self._check_hour(date, hour)
        if not isinstance(subject_id, str) or not subject_id.strip():
            return _rejected("create_or_edit_slot", REASON_MISSING_SUBJECT, f"key={date}-{hour:02d}")
        subject_id = subject_id.strip()
        new_notes: Notes = coerce_notes(notes)

        blk = block_at(self._layout(date), hour)
        if blk is None:
            slot = Slot(date=date, hour=hour, subject_id=subject_id, notes=new_notes, lifecycle=ENTERING)
            self.store.commit((), [slot])
            self._notify()
            return MutationResult(status=APPLIED, changed=(slot.key,))

        if blk.has_exiting:
            return _rejected("create_or_edit_slot", REASON_EXITING, f"key={date}-{hour:02d}")

        upserts = [
            Slot(date=date, hour=h, subject_id=subject_id, notes=new_notes, lifecycle=STABLE)
            for h in blk.hours()
        ]
        self.store.commit((), upserts)
        self._notify()
        return MutationResult(status=APPLIED, changed=tuple(s.key for s in upserts))

    def delete_block(self, key: KeyLike) -> MutationResult:
        """Phase one of deleting the block that owns `key`.

        The caller waits `cfg.exit_delay_ms` and then calls
        `complete_removal(result.exiting)`.
        """
        date, hour = coerce_key(key)
        self._check_hour(date, hour)
        blk = block_at(self._layout(date), hour)
        if blk is None:
            return _NOOP
        if blk.has_exiting:
            return _rejected("delete_block", REASON_EXITING, f"key={date}-{hour:02d}")
        keys = tuple(block_keys(blk))
        self.store.mark_exiting(keys)
        self._notify()
        return MutationResult(status=APPLIED, changed=keys, exiting=keys)

    def complete_removal(self, keys: Iterable[KeyLike]) -> MutationResult:
        """Phase two: physically drop slots that are still flagged exiting."""
        pending: List[SlotKey] = []
        for k in coerce_keys(keys):
            s = self.store.get(*k)
            if s is not None and s.is_exiting:
                pending.append(k)
        if not pending:
            return _NOOP
        removed = self.store.remove_all(pending)
        self._notify()
        return MutationResult(status=APPLIED, changed=tuple(removed))

    def settle_entering(self, keys: Iterable[KeyLike]) -> MutationResult:
        """Clear the entering flag once the caller's entering transition is over."""
        touched = self.store.settle_entering(keys)
        if not touched:
            return _NOOP
        self._notify()
        return MutationResult(status=APPLIED, changed=tuple(touched))

    # --- move / resize ------------------------------------------------------
    def move_block(self, block: Block, target_start_hour: int) -> MutationResult:
        target = int(target_start_hour)
        self._check_hour(block.date, target)
        cur, layout = self._resolve(block)
        if cur is None:
            return self._unresolved("move_block", block, layout)
        if cur.has_exiting:
            return _rejected("move_block", REASON_EXITING, f"date={cur.date} start={cur.start_hour}")

        dest = range(target, target + cur.duration)
        if dest.stop > self.cfg.end_hour:
            return _rejected("move_block", REASON_OUT_OF_RANGE, f"date={cur.date} target={target}")
        if target == cur.start_hour:
            return _NOOP

        occupied = occupied_hours(layout)
        for h in dest:
            if h in occupied and not cur.contains(h):
                return _rejected("move_block", REASON_COLLISION, f"date={cur.date} hour={h}")

        src_keys = block_keys(cur)
        shift = target - cur.start_hour
        upserts: List[Slot] = []
        for date, h in src_keys:
            member = self.store.get(date, h)
            if member is None:  # pragma: no cover - layout came from the store
                return _rejected("move_block", REASON_STALE, f"date={date} hour={h}")
            upserts.append(replace(member, hour=h + shift, lifecycle=STABLE))

        self.store.commit(src_keys, upserts)
        self._notify()
        changed = sorted(set(src_keys) | {s.key for s in upserts})
        return MutationResult(status=APPLIED, changed=tuple(changed))

    def resize_block(self, block: Block, new_end_hour: int) -> MutationResult:
        new_end = int(new_end_hour)
        cur, layout = self._resolve(block)
        if cur is None:
            return self._unresolved("resize_block", block, layout)
        if cur.has_exiting:
            return _rejected("resize_block", REASON_EXITING, f"date={cur.date} start={cur.start_hour}")

        # Minimum duration is one hour.
        if new_end <= cur.start_hour or new_end == cur.end_hour:
            return _NOOP

        if new_end > cur.end_hour:
            if new_end > self.cfg.end_hour:
                return _rejected("resize_block", REASON_OUT_OF_RANGE, f"date={cur.date} end={new_end}")
            occupied = occupied_hours(layout)
            for h in range(cur.end_hour, new_end):
                if h in occupied:
                    return _rejected("resize_block", REASON_COLLISION, f"date={cur.date} hour={h}")
            upserts = [replace(cur.slot, hour=h, lifecycle=STABLE) for h in range(cur.end_hour, new_end)]
            self.store.commit((), upserts)
            self._notify()
            return MutationResult(status=APPLIED, changed=tuple(s.key for s in upserts))

        trailing = tuple((cur.date, h) for h in range(new_end, cur.end_hour))
        self.store.mark_exiting(trailing)
        self._notify()
        return MutationResult(status=APPLIED, changed=trailing, exiting=trailing)

    # --- notes (fanned out to every member) ---------------------------------
    def _rewrite_notes(self, op: str, block: Block, fn: Callable[[Notes], Notes]) -> MutationResult:
        cur, _layout = self._resolve(block)
        if cur is None:
            return self._unresolved(op, block, _layout)
        if cur.has_exiting:
            return _rejected(op, REASON_EXITING, f"date={cur.date} start={cur.start_hour}")

        new_notes = fn(cur.notes)
        if new_notes == cur.notes:
            return _NOOP

        upserts: List[Slot] = []
        for date, h in block_keys(cur):
            member = self.store.get(date, h)
            if member is None:  # pragma: no cover - layout came from the store
                return _rejected(op, REASON_STALE, f"date={date} hour={h}")
            upserts.append(replace(member, notes=new_notes, lifecycle=STABLE))
        self.store.commit((), upserts)
        self._notify()
        return MutationResult(status=APPLIED, changed=tuple(s.key for s in upserts))

    def toggle_note(self, block: Block, note_id: str) -> MutationResult:
        return self._rewrite_notes("toggle_note", block, lambda ns: notes_ops.toggle_note(ns, note_id))

    def add_note(self, block: Block, text: str) -> MutationResult:
        # The id is generated once so every member gets the same item.
        return self._rewrite_notes(
            "add_note", block, lambda ns: notes_ops.add_note(ns, text, id_factory=self.id_factory)
        )

    def edit_note(self, block: Block, note_id: str, text: str) -> MutationResult:
        return self._rewrite_notes("edit_note", block, lambda ns: notes_ops.edit_note(ns, note_id, text))

    def delete_note(self, block: Block, note_id: str) -> MutationResult:
        return self._rewrite_notes("delete_note", block, lambda ns: notes_ops.delete_note(ns, note_id))


def pending_removals(results: Sequence[MutationResult]) -> List[SlotKey]:
    """Collect exiting keys from a batch of results, in order, without duplicates."""
    out: List[SlotKey] = []
    seen = set()
    for r in results:
        for k in r.exiting:
            if k not in seen:
                seen.add(k)
                out.append(k)
    return out


__all__ = [
    "APPLIED",
    "MutationEngine",
    "MutationResult",
    "NOOP",
    "REASON_COLLISION",
    "REASON_EXITING",
    "REASON_MISSING_SUBJECT",
    "REASON_OUT_OF_RANGE",
    "REASON_STALE",
    "REJECTED",
    "SnapshotListener",
    "pending_removals",
]
