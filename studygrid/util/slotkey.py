# studygrid/util/slotkey.py
from __future__ import annotations

import datetime as dt
import re
from typing import Iterable, List, Tuple, Union

# (date "YYYY-MM-DD", hour 0..24)
SlotKey = Tuple[str, int]
KeyLike = Union[str, SlotKey]

MAX_KEY_HOUR = 24

_SLOT_KEY_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})-(\d{2})$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class InvalidKey(ValueError):
    """Raised for malformed slot keys, bad dates or hours outside the grid."""


def parse_date_key(s: str) -> str:
    """Validate a `YYYY-MM-DD` day key and return it unchanged."""
    if not isinstance(s, str) or not _DATE_RE.match(s):
        raise InvalidKey(f"Invalid date key: {s!r}")
    try:
        dt.datetime.strptime(s, "%Y-%m-%d")
    except ValueError:
        raise InvalidKey(f"Invalid date key: {s!r}")
    return s


def format_slot_key(date: str, hour: int) -> str:
    """External identity of a slot: `YYYY-MM-DD-HH` (zero-padded 24h hour)."""
    parse_date_key(date)
    if isinstance(hour, bool) or not isinstance(hour, int) or not (0 <= hour <= MAX_KEY_HOUR):
        raise InvalidKey(f"Invalid hour for {date}: {hour!r}")
    return f"{date}-{hour:02d}"


def parse_slot_key(s: str) -> SlotKey:
    if not isinstance(s, str):
        raise InvalidKey(f"Slot key must be a string: {s!r}")
    m = _SLOT_KEY_RE.match(s.strip())
    if not m:
        raise InvalidKey(f"Invalid slot key: {s!r} (expected YYYY-MM-DD-HH)")
    date = parse_date_key(m.group(1))
    hour = int(m.group(2))
    if hour > MAX_KEY_HOUR:
        raise InvalidKey(f"Invalid slot key hour: {s!r}")
    return date, hour


def coerce_key(key: KeyLike) -> SlotKey:
    """Accept either the external string form or a `(date, hour)` tuple."""
    if isinstance(key, str):
        return parse_slot_key(key)
    if isinstance(key, tuple) and len(key) == 2:
        date, hour = key
        format_slot_key(date, hour)
        return date, hour
    raise InvalidKey(f"Unsupported slot key: {key!r}")


def coerce_keys(keys: Iterable[KeyLike]) -> List[SlotKey]:
    return [coerce_key(k) for k in keys]
