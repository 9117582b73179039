"""Meeting-time proposals for a single user.

Candidate start times are enumerated across a horizon of days inside the
working-hour window, dropped when they collide with the user's conflict index
or fall inside the look-ahead buffer, scored, and ranked. The result depends
only on the arguments, so identical inputs give identical proposals.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from teamcal.core.errors import ValidationError
from teamcal.core.settings import S
from teamcal.services.conflicts import build_conflict_index
from teamcal.services.intervals import format_hhmm, overlaps

logger = logging.getLogger(__name__)

BASE_SCORE = 100


@dataclass(frozen=True)
class CandidateSlot:
    date: date
    start_time: str
    end_time: str
    score: int


def score_slot(hour: int, day_offset: int) -> int:
    score = BASE_SCORE
    if hour < 11:
        score += 20
    if 14 <= hour < 16:
        score += 10
    if hour >= 16:
        score -= 10
    if day_offset == 0:
        score += 10
    elif day_offset == 1:
        score += 5
    return score


def _check_params(
    horizon_days: int,
    work_hours: Tuple[int, int],
    granularity_minutes: int,
    duration_minutes: int,
    top_n: int,
) -> None:
    start_hour, end_hour = work_hours
    # End-of-day 24:00 is not a valid HH:MM, so slots must finish by 23:00.
    if not 0 <= start_hour < end_hour <= 23:
        raise ValidationError("work hours must satisfy 0 <= start < end <= 23")
    if horizon_days < 1:
        raise ValidationError("horizon_days must be at least 1")
    if not 1 <= granularity_minutes <= 60:
        raise ValidationError("granularity_minutes must be between 1 and 60")
    if duration_minutes < 1:
        raise ValidationError("duration_minutes must be at least 1")
    if top_n < 1:
        raise ValidationError("top_n must be at least 1")


def propose_slots(
    events: Iterable[Dict[str, Any]],
    user_id: str,
    now: datetime,
    horizon_days: Optional[int] = None,
    work_hours: Optional[Tuple[int, int]] = None,
    granularity_minutes: Optional[int] = None,
    duration_minutes: Optional[int] = None,
    top_n: Optional[int] = None,
) -> List[CandidateSlot]:
    horizon_days = S.proposal_horizon_days if horizon_days is None else horizon_days
    work_hours = (S.work_day_start_hour, S.work_day_end_hour) if work_hours is None else tuple(work_hours)
    granularity_minutes = S.slot_granularity_minutes if granularity_minutes is None else granularity_minutes
    duration_minutes = S.meeting_duration_minutes if duration_minutes is None else duration_minutes
    top_n = S.proposal_top_n if top_n is None else top_n
    _check_params(horizon_days, work_hours, granularity_minutes, duration_minutes, top_n)

    start_hour, end_hour = work_hours
    work_end = end_hour * 60
    now = now.replace(tzinfo=None)
    today = now.date()
    earliest_start = now + timedelta(minutes=S.lookahead_buffer_minutes)
    index = build_conflict_index(events, user_id, today, today + timedelta(days=horizon_days - 1))

    candidates: List[CandidateSlot] = []
    for day_offset in range(horizon_days):
        check_date = today + timedelta(days=day_offset)
        if check_date < today:
            continue
        busy = index.get(check_date, [])
        for hour in range(start_hour, end_hour):
            for minute in range(0, 60, granularity_minutes):
                slot_start = hour * 60 + minute
                slot_end = slot_start + duration_minutes
                if slot_end > work_end:
                    continue
                if check_date == today:
                    starts_at = datetime.combine(check_date, datetime.min.time()) + timedelta(minutes=slot_start)
                    if starts_at <= earliest_start:
                        continue
                if any(overlaps(slot_start, slot_end, b_start, b_end) for b_start, b_end in busy):
                    continue
                candidates.append(CandidateSlot(
                    date=check_date,
                    start_time=format_hhmm(slot_start),
                    end_time=format_hhmm(slot_end),
                    score=score_slot(hour, day_offset),
                ))

    # Stable sort: equal (date, score) pairs stay in chronological order.
    candidates.sort(key=lambda slot: (slot.date, -slot.score))
    logger.debug("proposed %d of %d candidate slots for user %s", min(top_n, len(candidates)), len(candidates), user_id)
    return candidates[:top_n]
