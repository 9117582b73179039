"""Event records and invitee fan-out.

Every function here works on an explicit snapshot (a list of event dicts) and
returns new records; nothing is persisted. The router does the
read-modify-write against the store.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from teamcal.core.errors import NotFoundError, ValidationError
from teamcal.core.settings import S
from teamcal.core.time import iso_local
from teamcal.services.intervals import format_hhmm, parse_day, parse_hhmm

logger = logging.getLogger(__name__)

MAX_TITLE_LEN = 200
MAX_DESCRIPTION_LEN = 5000
MAX_LOCATION_LEN = 200

VISIBILITIES = ("busy", "free")
RECURRENCES = ("none", "daily", "weekly", "monthly")
KINDS = ("meeting", "event")
INVITE_STATUSES = ("pending", "accepted", "declined")

EDITABLE_FIELDS = (
    "title",
    "description",
    "date",
    "start_time",
    "end_time",
    "location",
    "visibility",
    "color_tag",
    "is_online",
    "meeting_link",
    "invited_group_id",
    "recurrence",
)
# None on these means "leave unchanged"; on the rest it clears the value.
REQUIRED_FIELDS = ("title", "date", "start_time", "end_time", "visibility", "color_tag", "is_online", "recurrence")


def _clean_str(value: Optional[str], *, field: str, max_len: Optional[int] = None) -> Optional[str]:
    if value is None:
        return None
    trimmed = str(value).strip()
    if not trimmed:
        return None
    if max_len is not None and len(trimmed) > max_len:
        raise ValidationError(f"{field} too long (max {max_len})")
    return trimmed


def _choice(value: Optional[str], allowed: Sequence[str], *, field: str, default: str) -> str:
    if value is None:
        return default
    if value not in allowed:
        raise ValidationError(f"{field} must be one of: {', '.join(allowed)}")
    return value


def _starts_at(day: date, start_minutes: int) -> datetime:
    return datetime.combine(day, datetime.min.time()) + timedelta(minutes=start_minutes)


def _normalize_window(record: Dict[str, Any]) -> Tuple[date, int, int]:
    day = parse_day(record.get("date"))
    start = parse_hhmm(record.get("start_time"))
    end = parse_hhmm(record.get("end_time"))
    if start >= end:
        raise ValidationError("end time must be after start time")
    record["date"] = day.isoformat()
    record["start_time"] = format_hhmm(start)
    record["end_time"] = format_hhmm(end)
    return day, start, end


def _normalize_details(record: Dict[str, Any]) -> None:
    title = _clean_str(record.get("title"), field="title", max_len=MAX_TITLE_LEN)
    if not title:
        raise ValidationError("title is required")
    record["title"] = title
    record["description"] = _clean_str(record.get("description"), field="description", max_len=MAX_DESCRIPTION_LEN) or ""
    record["location"] = _clean_str(record.get("location"), field="location", max_len=MAX_LOCATION_LEN)
    record["visibility"] = _choice(record.get("visibility"), VISIBILITIES, field="visibility", default="busy")
    record["recurrence"] = _choice(record.get("recurrence"), RECURRENCES, field="recurrence", default="none")
    record["color_tag"] = _clean_str(record.get("color_tag"), field="color_tag", max_len=32) or "blue"
    record["invited_group_id"] = _clean_str(record.get("invited_group_id"), field="invited_group_id")
    record["is_online"] = bool(record.get("is_online"))
    record["meeting_link"] = _clean_str(record.get("meeting_link"), field="meeting_link", max_len=2048)
    if record["is_online"] and not record["meeting_link"]:
        record["meeting_link"] = generate_meeting_link()


def generate_meeting_link() -> str:
    return f"{S.meeting_link_base_url}/{uuid.uuid4().hex[:12]}"


def normalize_attendees(attendee_ids: Iterable[str]) -> List[str]:
    cleaned = (str(a).strip() for a in attendee_ids or [])
    return list(dict.fromkeys(a for a in cleaned if a))


def create_event(
    draft: Dict[str, Any],
    organizer_id: str,
    attendee_ids: Iterable[str],
    now: datetime,
) -> Tuple[Dict[str, Any], List[Dict[str, Any]]]:
    now = now.replace(tzinfo=None)
    record = {key: draft.get(key) for key in EDITABLE_FIELDS}
    _normalize_details(record)
    day, start, _ = _normalize_window(record)
    if _starts_at(day, start) < now:
        raise ValidationError("event date/time is in the past")

    ts = iso_local(now)
    attendees = normalize_attendees(attendee_ids)
    organizer_event = {
        "id": uuid.uuid4().hex,
        **record,
        "kind": _choice(draft.get("kind"), KINDS, field="kind", default="event"),
        "organizer_id": organizer_id,
        "owner_id": organizer_id,
        "attendee_ids": attendees,
        "is_invite": False,
        "source_event_id": None,
        "created_at": ts,
        "updated_at": ts,
    }

    copies: List[Dict[str, Any]] = []
    if organizer_event["recurrence"] != "daily":
        for invitee_id in attendees:
            if invitee_id == organizer_id:
                continue
            copies.append({
                **organizer_event,
                "id": uuid.uuid4().hex,
                "owner_id": invitee_id,
                "is_invite": True,
                "invite_status": "pending",
                "source_event_id": organizer_event["id"],
                "responded_at": None,
            })

    logger.info(
        "created event %s for organizer %s with %d invitee copies",
        organizer_event["id"],
        organizer_id,
        len(copies),
    )
    return organizer_event, copies


def find_event(events: Iterable[Dict[str, Any]], event_id: str) -> Dict[str, Any]:
    found = next((event for event in events if event.get("id") == event_id), None)
    if not found:
        raise NotFoundError("event not found")
    return found


def update_event(
    events: Iterable[Dict[str, Any]],
    event_id: str,
    patch: Dict[str, Any],
    now: datetime,
) -> Dict[str, Any]:
    original = find_event(events, event_id)
    updated = dict(original)
    for key in EDITABLE_FIELDS:
        if key not in patch:
            continue
        if patch[key] is None and key in REQUIRED_FIELDS:
            continue
        updated[key] = patch[key]
    if "is_online" in patch and patch["is_online"] is False and "meeting_link" not in patch:
        updated["meeting_link"] = None

    _normalize_details(updated)
    day, start, _ = _normalize_window(updated)

    now = now.replace(tzinfo=None)
    if _starts_at(day, start) < now:
        original_day = parse_day(original.get("date"))
        original_start = _starts_at(original_day, parse_hhmm(original.get("start_time")))
        if original_start >= now:
            raise ValidationError("event date/time is in the past")
        if day < original_day:
            raise ValidationError("cannot move a past event to an earlier date")
        if _starts_at(day, start) < original_start:
            raise ValidationError("cannot move a past event to an earlier time")

    updated["kind"] = original.get("kind", "event")
    updated["updated_at"] = iso_local(now)
    logger.info("updated event %s", event_id)
    return updated


def replace_event(events: Iterable[Dict[str, Any]], updated: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [updated if event.get("id") == updated["id"] else event for event in events]


def delete_event(events: Iterable[Dict[str, Any]], event_id: str) -> Tuple[List[Dict[str, Any]], Dict[str, Any]]:
    events = list(events)
    removed = find_event(events, event_id)
    remaining = [event for event in events if event.get("id") != event_id]
    logger.info("deleted event %s", event_id)
    return remaining, removed


def owner_of(event: Dict[str, Any]) -> Optional[str]:
    return event.get("owner_id") or event.get("organizer_id")


def visible_events(events: Iterable[Dict[str, Any]], user_id: str) -> List[Dict[str, Any]]:
    return [event for event in events if owner_of(event) == user_id]


def events_for_date(events: Iterable[Dict[str, Any]], user_id: str, day: date) -> List[Dict[str, Any]]:
    iso_day = day.isoformat()
    matches = [event for event in visible_events(events, user_id) if event.get("date") == iso_day]
    return sorted(matches, key=lambda event: (event.get("start_time") or "", event.get("end_time") or ""))


def search_events(events: Iterable[Dict[str, Any]], user_id: str, query: str) -> List[Dict[str, Any]]:
    q = (query or "").strip().lower()
    mine = visible_events(events, user_id)
    if not q:
        return mine

    matches: List[Dict[str, Any]] = []
    for event in mine:
        haystack = " ".join(str(event.get(k) or "") for k in ("title", "description", "location")).lower()
        if q in haystack:
            matches.append(event)
    return matches
