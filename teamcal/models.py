from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

Visibility = Literal["busy", "free"]
Recurrence = Literal["none", "daily", "weekly", "monthly"]
Kind = Literal["meeting", "event"]
InviteStatus = Literal["pending", "accepted", "declined"]


class EventCreateIn(BaseModel):
    title: str = Field(max_length=200)
    description: str = Field(default="", max_length=5000)
    date: str
    start_time: str
    end_time: str
    location: Optional[str] = Field(default=None, max_length=200)
    visibility: Visibility = "busy"
    color_tag: str = Field(default="blue", max_length=32)
    is_online: bool = False
    meeting_link: Optional[str] = Field(default=None, max_length=2048)
    invited_group_id: Optional[str] = None
    recurrence: Recurrence = "none"
    kind: Kind = "event"
    attendee_ids: List[str] = Field(default_factory=list)


class EventPatchIn(BaseModel):
    # kind and attendee_ids are fixed after creation.
    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    location: Optional[str] = Field(default=None, max_length=200)
    visibility: Optional[Visibility] = None
    color_tag: Optional[str] = Field(default=None, max_length=32)
    is_online: Optional[bool] = None
    meeting_link: Optional[str] = Field(default=None, max_length=2048)
    invited_group_id: Optional[str] = None
    recurrence: Optional[Recurrence] = None


class InviteResponseIn(BaseModel):
    status: Literal["accepted", "declined"]


class EventSearchReq(BaseModel):
    query: str = ""


class EventOut(BaseModel):
    id: str
    title: str
    description: str = ""
    date: str
    start_time: str
    end_time: str
    location: Optional[str] = None
    visibility: Visibility = "busy"
    color_tag: str = "blue"
    is_online: bool = False
    meeting_link: Optional[str] = None
    invited_group_id: Optional[str] = None
    invited_group_name: Optional[str] = None
    recurrence: Recurrence = "none"
    kind: Kind = "event"
    organizer_id: str
    owner_id: Optional[str] = None
    attendee_ids: List[str] = Field(default_factory=list)
    is_invite: bool = False
    invite_status: Optional[InviteStatus] = None
    source_event_id: Optional[str] = None
    responded_at: Optional[str] = None
    created_at: str
    updated_at: str
    can_edit: bool = False
    can_respond: bool = False


class EventCreatedOut(BaseModel):
    event: EventOut
    invites: List[EventOut]


class EventSearchResp(BaseModel):
    query: str
    matches: List[EventOut]


class CandidateSlotOut(BaseModel):
    date: str
    start_time: str
    end_time: str
    score: int


class TimeWindowOut(BaseModel):
    start_time: str
    end_time: str


class BusyDayOut(BaseModel):
    date: str
    busy: List[TimeWindowOut]


class OpeningsOut(BaseModel):
    date: str
    openings: List[TimeWindowOut]


class UserOut(BaseModel):
    id: str
    name: str
    email: str = ""
    role: str = "user"


class RoomOut(BaseModel):
    id: str
    name: str
