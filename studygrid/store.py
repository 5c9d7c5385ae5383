# studygrid/store.py
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from .config import DEFAULT_CONFIG, GridConfig
from .model import ENTERING, EXITING, STABLE, Slot
from .util.slotkey import InvalidKey, KeyLike, SlotKey, coerce_key, coerce_keys, format_slot_key


class SlotStore:
    """Authoritative `(date, hour) -> Slot` collection.

    Single writer. Every write either lands completely or raises before
    touching the map.
    """

    def __init__(self, slots: Iterable[Slot] = (), *, cfg: GridConfig = DEFAULT_CONFIG) -> None:
        self.cfg = cfg
        self._slots: Dict[SlotKey, Slot] = {}
        self.commit((), list(slots))

    def __len__(self) -> int:
        return len(self._slots)

    def __contains__(self, key: object) -> bool:
        try:
            k = coerce_key(key)  # type: ignore[arg-type]
        except InvalidKey:
            return False
        return k in self._slots

    def _check(self, slot: Slot) -> None:
        if not isinstance(slot, Slot):
            raise TypeError(f"expected Slot, got {type(slot).__name__}")
        format_slot_key(slot.date, slot.hour)
        if not self.cfg.contains(slot.hour):
            raise InvalidKey(
                f"hour {slot.hour} outside grid [{self.cfg.first_hour}, {self.cfg.end_hour}) for {slot.date}"
            )
        if not slot.subject_id:
            raise ValueError(f"slot {slot.slot_id} has no subject_id")

    def get(self, date: str, hour: int) -> Optional[Slot]:
        return self._slots.get((date, int(hour)))

    def upsert(self, slot: Slot) -> None:
        self._check(slot)
        self._slots[slot.key] = slot

    def commit(self, removals: Iterable[KeyLike], upserts: Iterable[Slot]) -> None:
        """Remove then insert in one step. Validation happens before any change."""
        rm = coerce_keys(removals)
        ups = list(upserts)
        for s in ups:
            self._check(s)
        nxt = dict(self._slots)
        for k in rm:
            nxt.pop(k, None)
        for s in ups:
            nxt[s.key] = s
        self._slots = nxt

    def _relabel(self, keys: Iterable[KeyLike], lifecycle: str, *, only_from: Tuple[str, ...] = ()) -> List[SlotKey]:
        touched: List[SlotKey] = []
        nxt = dict(self._slots)
        for k in coerce_keys(keys):
            cur = nxt.get(k)
            if cur is None:
                continue
            if only_from and cur.lifecycle not in only_from:
                continue
            nxt[k] = cur.with_lifecycle(lifecycle)
            touched.append(k)
        self._slots = nxt
        return touched

    def mark_exiting(self, keys: Iterable[KeyLike]) -> List[SlotKey]:
        """Phase one of a removal. Missing keys are ignored."""
        return self._relabel(keys, EXITING)

    def remove_all(self, keys: Iterable[KeyLike]) -> List[SlotKey]:
        """Phase two of a removal: physical delete after the caller's delay."""
        removed: List[SlotKey] = []
        nxt = dict(self._slots)
        for k in coerce_keys(keys):
            if nxt.pop(k, None) is not None:
                removed.append(k)
        self._slots = nxt
        return removed

    def settle_entering(self, keys: Iterable[KeyLike]) -> List[SlotKey]:
        return self._relabel(keys, STABLE, only_from=(ENTERING,))

    def slots_for_date(self, date: str) -> List[Slot]:
        return sorted((s for s in self._slots.values() if s.date == date), key=lambda s: s.hour)

    def dates(self) -> List[str]:
        return sorted({d for d, _h in self._slots})

    def snapshot(self) -> Tuple[Slot, ...]:
        return tuple(self._slots[k] for k in sorted(self._slots))
