"""Same-day time windows expressed as minute-of-day integers.

Intervals are half-open ``[start, end)``. Clock strings are ``HH:MM`` wall-clock
values; a value that does not parse raises :class:`MalformedTimeError` instead
of falling back to a default.
"""
from __future__ import annotations

import re
from datetime import date
from typing import Iterable

from teamcal.core.errors import MalformedTimeError, ValidationError

Interval = tuple[int, int]

MINUTES_PER_DAY = 24 * 60

_HHMM = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_hhmm(value: str) -> int:
    match = _HHMM.match((value or "").strip()) if isinstance(value, str) else None
    if not match:
        raise MalformedTimeError(f"Invalid time: {value!r} (expected HH:MM)")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise MalformedTimeError(f"Invalid time: {value!r} (expected HH:MM)")
    return hours * 60 + minutes


def format_hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_day(value: str, field: str = "date") -> date:
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid {field}: {value!r} (expected YYYY-MM-DD)") from exc


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    return a_start < b_end and a_end > b_start


def merge_intervals(intervals: Iterable[Interval]) -> list[Interval]:
    ordered = sorted(intervals)
    if not ordered:
        return []
    merged: list[Interval] = [ordered[0]]
    for start, end in ordered[1:]:
        prev_start, prev_end = merged[-1]
        if start <= prev_end:
            merged[-1] = (prev_start, max(prev_end, end))
        else:
            merged.append((start, end))
    return merged


def free_windows(busy: Iterable[Interval], start: int, end: int) -> list[Interval]:
    clipped = [(max(s, start), min(e, end)) for s, e in busy if overlaps(s, e, start, end)]
    free: list[Interval] = []
    cur = start
    for s, e in merge_intervals(clipped):
        if cur < s:
            free.append((cur, s))
        cur = max(cur, e)
    if cur < end:
        free.append((cur, end))
    return free
