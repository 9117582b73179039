from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Any, Dict, Iterable, List, Tuple

from teamcal.core.errors import ValidationError
from teamcal.services.intervals import Interval, free_windows, merge_intervals, parse_day, parse_hhmm


def is_commitment(event: Dict[str, Any], user_id: str) -> bool:
    # Invitation state is ignored: a pending or declined invite still blocks the slot.
    return event.get("organizer_id") == user_id or user_id in (event.get("attendee_ids") or [])


def build_conflict_index(
    events: Iterable[Dict[str, Any]],
    user_id: str,
    date_from: date,
    date_to: date,
) -> Dict[date, List[Interval]]:
    """Collect a user's busy intervals per day for ``date_from..date_to`` inclusive.

    Organizer records and their fan-out copies describe the same meeting, so
    each day's intervals are merged; the result is ordered and overlap-free.
    """
    if date_to < date_from:
        raise ValidationError("date_to must not be before date_from")

    by_day: Dict[date, List[Interval]] = defaultdict(list)
    for event in events:
        if not is_commitment(event, user_id):
            continue
        day = parse_day(event.get("date"))
        if day < date_from or day > date_to:
            continue
        by_day[day].append((parse_hhmm(event.get("start_time")), parse_hhmm(event.get("end_time"))))
    return {day: merge_intervals(intervals) for day, intervals in sorted(by_day.items())}


def busy_for_day(events: Iterable[Dict[str, Any]], user_id: str, day: date) -> List[Interval]:
    return build_conflict_index(events, user_id, day, day).get(day, [])


def openings_for_day(
    events: Iterable[Dict[str, Any]],
    user_id: str,
    day: date,
    work_hours: Tuple[int, int],
) -> List[Interval]:
    start_hour, end_hour = work_hours
    return free_windows(busy_for_day(events, user_id, day), start_hour * 60, end_hour * 60)
