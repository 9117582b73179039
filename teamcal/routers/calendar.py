from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from fastapi import APIRouter, Depends, Query, Request

from teamcal.core.errors import ValidationError
from teamcal.core.settings import S
from teamcal.core.time import local_now
from teamcal.metrics import record_event_created, record_invite_response, record_proposal, record_validation_failure
from teamcal.models import (
    BusyDayOut,
    CandidateSlotOut,
    EventCreatedOut,
    EventCreateIn,
    EventOut,
    EventPatchIn,
    EventSearchReq,
    EventSearchResp,
    InviteResponseIn,
    OpeningsOut,
    RoomOut,
    TimeWindowOut,
    UserOut,
)
from teamcal.services.audit import audit_event
from teamcal.services.conflicts import build_conflict_index, openings_for_day
from teamcal.services.directory import list_rooms, list_users, require_known_room, require_known_users, room_names
from teamcal.services.events import (
    create_event,
    delete_event,
    events_for_date,
    find_event,
    replace_event,
    search_events,
    update_event,
    visible_events,
)
from teamcal.services.intervals import format_hhmm, parse_day
from teamcal.services.invitations import can_modify, can_respond, require_can_modify, respond
from teamcal.services.sessions import CurrentUser, current_user, require_admin
from teamcal.services.slots import propose_slots
from teamcal.services.store import load_events, save_events

router = APIRouter(prefix="/ui/calendar", tags=["calendar"])

MAX_BUSY_RANGE_DAYS = 92


def _event_out(event: Dict[str, Any], user: CurrentUser, rooms: Dict[str, str]) -> EventOut:
    group_id = event.get("invited_group_id")
    return EventOut(
        **event,
        invited_group_name=rooms.get(group_id) if group_id else None,
        can_edit=can_modify(event, user),
        can_respond=can_respond(event, user.id),
    )


def _outs(events: Iterable[Dict[str, Any]], user: CurrentUser) -> List[EventOut]:
    events = list(events)
    rooms = room_names() if any(e.get("invited_group_id") for e in events) else {}
    return [_event_out(event, user, rooms) for event in events]


def _windows(intervals) -> List[TimeWindowOut]:
    return [TimeWindowOut(start_time=format_hhmm(s), end_time=format_hhmm(e)) for s, e in intervals]


@router.get("/events", response_model=list[EventOut])
async def list_events(date: Optional[str] = None, user: CurrentUser = Depends(current_user)):
    events = load_events()
    if date:
        return _outs(events_for_date(events, user.id, parse_day(date)), user)
    return _outs(visible_events(events, user.id), user)


@router.post("/events/search", response_model=EventSearchResp)
async def search(body: EventSearchReq, user: CurrentUser = Depends(current_user)):
    matches = search_events(load_events(), user.id, body.query)
    return EventSearchResp(query=body.query, matches=_outs(matches, user))


@router.post("/events", response_model=EventCreatedOut)
async def create(req: Request, body: EventCreateIn, user: CurrentUser = Depends(current_user)):
    require_admin(user)
    require_known_users(body.attendee_ids)
    require_known_room(body.invited_group_id)
    events = load_events()
    try:
        organizer_event, copies = create_event(
            body.model_dump(exclude={"attendee_ids"}),
            user.id,
            body.attendee_ids,
            local_now(),
        )
    except ValidationError:
        record_validation_failure("create")
        raise
    save_events([*events, organizer_event, *copies])

    record_event_created(organizer_event["kind"], len(copies))
    audit_event(
        "calendar_event_create",
        user.id,
        req,
        event_id=organizer_event["id"],
        invite_count=len(copies),
    )
    outs = _outs([organizer_event, *copies], user)
    return EventCreatedOut(event=outs[0], invites=outs[1:])


@router.patch("/events/{event_id}", response_model=EventOut)
async def update(req: Request, event_id: str, body: EventPatchIn, user: CurrentUser = Depends(current_user)):
    events = load_events()
    require_can_modify(find_event(events, event_id), user)
    patch = body.model_dump(exclude_unset=True)
    if patch.get("invited_group_id"):
        require_known_room(patch["invited_group_id"])
    try:
        updated = update_event(events, event_id, patch, local_now())
    except ValidationError:
        record_validation_failure("update")
        raise
    save_events(replace_event(events, updated))

    audit_event("calendar_event_update", user.id, req, event_id=event_id, fields=",".join(sorted(patch)))
    return _outs([updated], user)[0]


@router.delete("/events/{event_id}")
async def delete(req: Request, event_id: str, user: CurrentUser = Depends(current_user)):
    events = load_events()
    require_can_modify(find_event(events, event_id), user)
    remaining, removed = delete_event(events, event_id)
    save_events(remaining)

    audit_event("calendar_event_delete", user.id, req, event_id=event_id)
    return {"deleted": True, "event": _outs([removed], user)[0]}


@router.post("/events/{event_id}/respond", response_model=EventOut)
async def respond_to_invite(
    req: Request,
    event_id: str,
    body: InviteResponseIn,
    user: CurrentUser = Depends(current_user),
):
    events = load_events()
    try:
        updated = respond(find_event(events, event_id), user.id, body.status, local_now())
    except ValidationError:
        record_validation_failure("respond")
        raise
    save_events(replace_event(events, updated))

    record_invite_response(body.status)
    audit_event("calendar_invite_respond", user.id, req, event_id=event_id, status=body.status)
    return _outs([updated], user)[0]


@router.get("/proposals", response_model=list[CandidateSlotOut])
async def proposals(
    horizon_days: Optional[int] = None,
    work_start_hour: Optional[int] = None,
    work_end_hour: Optional[int] = None,
    granularity_minutes: Optional[int] = None,
    duration_minutes: Optional[int] = None,
    top_n: Optional[int] = None,
    user: CurrentUser = Depends(current_user),
):
    work_hours = (
        S.work_day_start_hour if work_start_hour is None else work_start_hour,
        S.work_day_end_hour if work_end_hour is None else work_end_hour,
    )
    slots = propose_slots(
        load_events(),
        user.id,
        local_now(),
        horizon_days=horizon_days,
        work_hours=work_hours,
        granularity_minutes=granularity_minutes,
        duration_minutes=duration_minutes,
        top_n=top_n,
    )
    record_proposal(len(slots))
    return [
        CandidateSlotOut(date=s.date.isoformat(), start_time=s.start_time, end_time=s.end_time, score=s.score)
        for s in slots
    ]


@router.get("/busy", response_model=list[BusyDayOut])
async def busy(
    date_from: str = Query(..., description="First day, YYYY-MM-DD"),
    date_to: str = Query(..., description="Last day (inclusive), YYYY-MM-DD"),
    user: CurrentUser = Depends(current_user),
):
    start = parse_day(date_from, "date_from")
    end = parse_day(date_to, "date_to")
    if (end - start).days > MAX_BUSY_RANGE_DAYS:
        raise ValidationError(f"date range too long (max {MAX_BUSY_RANGE_DAYS} days)")
    index = build_conflict_index(load_events(), user.id, start, end)
    return [BusyDayOut(date=day.isoformat(), busy=_windows(intervals)) for day, intervals in index.items()]


@router.get("/openings", response_model=OpeningsOut)
async def openings(date: str = Query(..., description="Day, YYYY-MM-DD"), user: CurrentUser = Depends(current_user)):
    day = parse_day(date)
    free = openings_for_day(load_events(), user.id, day, (S.work_day_start_hour, S.work_day_end_hour))
    return OpeningsOut(date=day.isoformat(), openings=_windows(free))


@router.get("/directory/users", response_model=list[UserOut])
async def directory_users(user: CurrentUser = Depends(current_user)):
    return list_users()


@router.get("/directory/rooms", response_model=list[RoomOut])
async def directory_rooms(user: CurrentUser = Depends(current_user)):
    return list_rooms()
