from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from conftest import build_draft, build_event, build_invite
from teamcal.core.errors import MalformedTimeError, NotFoundError, ValidationError
from teamcal.services import events as events_service


def test_create_event_fans_out_one_copy_per_attendee(now):
    organizer, copies = events_service.create_event(build_draft(), "u1", ["a", "b", "c"], now)

    assert organizer["is_invite"] is False
    assert "invite_status" not in organizer
    assert organizer["organizer_id"] == "u1"
    assert organizer["owner_id"] == "u1"
    assert organizer["attendee_ids"] == ["a", "b", "c"]
    assert len(copies) == 3
    assert sorted(copy["owner_id"] for copy in copies) == ["a", "b", "c"]
    for copy in copies:
        assert copy["is_invite"] is True
        assert copy["invite_status"] == "pending"
        assert copy["organizer_id"] == "u1"
        assert copy["source_event_id"] == organizer["id"]
        assert copy["title"] == organizer["title"]
        assert copy["date"] == organizer["date"]
    assert len({organizer["id"], *(c["id"] for c in copies)}) == 4


def test_create_event_skips_organizer_and_duplicate_attendees(now):
    _, copies = events_service.create_event(build_draft(), "u1", ["u1", "a", "a", " ", "b"], now)
    assert [c["owner_id"] for c in copies] == ["a", "b"]


def test_daily_recurrence_suppresses_fan_out(now):
    organizer, copies = events_service.create_event(build_draft(recurrence="daily"), "u1", ["a", "b", "c"], now)
    assert copies == []
    assert organizer["attendee_ids"] == ["a", "b", "c"]
    assert organizer["recurrence"] == "daily"


@pytest.mark.parametrize("recurrence", ["none", "weekly", "monthly"])
def test_other_recurrences_fan_out(now, recurrence):
    _, copies = events_service.create_event(build_draft(recurrence=recurrence), "u1", ["a"], now)
    assert len(copies) == 1


def test_create_event_normalizes_fields(now):
    organizer, _ = events_service.create_event(
        build_draft(title="  Sync  ", start_time="9:00", end_time="9:30", location="  ", color_tag=None),
        "u1",
        [],
        now,
    )
    assert organizer["title"] == "Sync"
    assert organizer["start_time"] == "09:00"
    assert organizer["end_time"] == "09:30"
    assert organizer["location"] is None
    assert organizer["color_tag"] == "blue"
    assert organizer["kind"] == "meeting"
    assert organizer["created_at"] == organizer["updated_at"] == "2030-01-07T08:00:00"


def test_online_event_gets_meeting_link(now):
    organizer, copies = events_service.create_event(build_draft(is_online=True), "u1", ["a"], now)
    assert organizer["meeting_link"].startswith("https://")
    assert copies[0]["meeting_link"] == organizer["meeting_link"]


def test_supplied_meeting_link_is_kept(now):
    organizer, _ = events_service.create_event(
        build_draft(is_online=True, meeting_link="https://video.example/room"), "u1", [], now
    )
    assert organizer["meeting_link"] == "https://video.example/room"


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"title": "   "}, "title is required"),
        ({"start_time": "11:00", "end_time": "10:00"}, "end time must be after start time"),
        ({"start_time": "10:00", "end_time": "10:00"}, "end time must be after start time"),
        ({"date": "2030-01-06"}, "event date/time is in the past"),
        ({"date": "2030-01-07", "start_time": "07:30", "end_time": "08:30"}, "event date/time is in the past"),
        ({"visibility": "hidden"}, "visibility must be one of"),
        ({"recurrence": "yearly"}, "recurrence must be one of"),
        ({"kind": "party"}, "kind must be one of"),
        ({"date": "next week"}, "Invalid date"),
    ],
)
def test_create_event_validation_names_the_constraint(now, overrides, message):
    with pytest.raises(ValidationError) as exc:
        events_service.create_event(build_draft(**overrides), "u1", [], now)
    assert message in exc.value.detail


def test_create_event_at_current_minute_is_allowed(now):
    organizer, _ = events_service.create_event(
        build_draft(date="2030-01-07", start_time="08:00", end_time="08:30"), "u1", [], now
    )
    assert organizer["start_time"] == "08:00"


def test_create_event_with_aware_now_stores_naive_stamps(now):
    aware = now.replace(tzinfo=timezone.utc)
    organizer, copies = events_service.create_event(build_draft(), "u1", ["u2"], aware)
    assert organizer["created_at"] == "2030-01-07T08:00:00"
    assert copies[0]["updated_at"] == organizer["created_at"]


def test_create_event_rejects_malformed_time(now):
    with pytest.raises(MalformedTimeError):
        events_service.create_event(build_draft(start_time="ten"), "u1", [], now)


def test_update_event_applies_patch_and_preserves_kind(now):
    events = [build_event(date="2030-01-08", kind="meeting")]
    updated = events_service.update_event(events, "evt1", {"title": "Retro", "kind": "event", "start_time": "10:00", "end_time": "11:00"}, now)
    assert updated["title"] == "Retro"
    assert updated["kind"] == "meeting"
    assert updated["start_time"] == "10:00"
    assert updated["updated_at"] == "2030-01-07T08:00:00"
    assert updated["created_at"] == "2030-01-01T08:00:00"
    assert events[0]["title"] == "Standup"


def test_update_event_ignores_identity_fields(now):
    events = [build_invite(date="2030-01-08", invite_status="accepted")]
    patch = {"organizer_id": "x", "owner_id": "x", "is_invite": False, "invite_status": "pending", "attendee_ids": []}
    updated = events_service.update_event(events, "copy1", patch, now)
    assert updated["organizer_id"] == "u1"
    assert updated["owner_id"] == "u2"
    assert updated["is_invite"] is True
    assert updated["invite_status"] == "accepted"
    assert updated["attendee_ids"] == ["u2"]


def test_update_event_none_leaves_required_fields(now):
    events = [build_event(date="2030-01-08")]
    updated = events_service.update_event(events, "evt1", {"title": None, "location": None}, now)
    assert updated["title"] == "Standup"
    assert updated["location"] is None


def test_update_past_event_without_moving_it_succeeds():
    now = datetime(2030, 1, 10, 12, 0)
    events = [build_event(date="2030-01-07")]
    updated = events_service.update_event(events, "evt1", {"description": "notes added"}, now)
    assert updated["description"] == "notes added"
    assert updated["date"] == "2030-01-07"


def test_update_past_event_to_earlier_date_fails():
    now = datetime(2030, 1, 10, 12, 0)
    events = [build_event(date="2030-01-07")]
    with pytest.raises(ValidationError) as exc:
        events_service.update_event(events, "evt1", {"date": "2030-01-05"}, now)
    assert "earlier date" in exc.value.detail


def test_update_past_event_to_earlier_time_same_day_fails():
    now = datetime(2030, 1, 10, 12, 0)
    events = [build_event(date="2030-01-07", start_time="10:00", end_time="11:00")]
    with pytest.raises(ValidationError) as exc:
        events_service.update_event(events, "evt1", {"start_time": "06:00", "end_time": "07:00"}, now)
    assert "earlier time" in exc.value.detail


def test_update_past_event_to_later_time_same_day_succeeds():
    now = datetime(2030, 1, 10, 12, 0)
    events = [build_event(date="2030-01-07", start_time="10:00", end_time="11:00")]
    updated = events_service.update_event(events, "evt1", {"start_time": "14:00", "end_time": "15:00"}, now)
    assert updated["start_time"] == "14:00"


def test_update_past_event_to_later_past_date_succeeds():
    now = datetime(2030, 1, 10, 12, 0)
    events = [build_event(date="2030-01-07")]
    updated = events_service.update_event(events, "evt1", {"date": "2030-01-08"}, now)
    assert updated["date"] == "2030-01-08"


def test_update_future_event_into_past_fails(now):
    events = [build_event(date="2030-01-09")]
    with pytest.raises(ValidationError) as exc:
        events_service.update_event(events, "evt1", {"date": "2030-01-06"}, now)
    assert "in the past" in exc.value.detail


def test_update_rejects_inverted_window(now):
    events = [build_event(date="2030-01-09")]
    with pytest.raises(ValidationError) as exc:
        events_service.update_event(events, "evt1", {"end_time": "08:00"}, now)
    assert exc.value.detail == "end time must be after start time"


def test_update_turning_online_assigns_link(now):
    events = [build_event(date="2030-01-09")]
    updated = events_service.update_event(events, "evt1", {"is_online": True}, now)
    assert updated["meeting_link"]
    offline = events_service.update_event([updated], "evt1", {"is_online": False}, now)
    assert offline["meeting_link"] is None


def test_update_unknown_event_raises_not_found(now):
    with pytest.raises(NotFoundError):
        events_service.update_event([], "missing", {"title": "x"}, now)


def test_update_does_not_touch_invitee_copies(now):
    organizer = build_event(date="2030-01-09", attendee_ids=["u2"])
    copy = build_invite(date="2030-01-09")
    updated = events_service.update_event([organizer, copy], "evt1", {"start_time": "11:00", "end_time": "12:00"}, now)
    snapshot = events_service.replace_event([organizer, copy], updated)
    assert snapshot[0]["start_time"] == "11:00"
    assert snapshot[1]["start_time"] == "09:00"


def test_delete_event_removes_only_target():
    organizer = build_event(attendee_ids=["u2"])
    copy = build_invite()
    remaining, removed = events_service.delete_event([organizer, copy], "evt1")
    assert removed["id"] == "evt1"
    assert [e["id"] for e in remaining] == ["copy1"]


def test_delete_unknown_event_raises_not_found():
    with pytest.raises(NotFoundError):
        events_service.delete_event([build_event()], "nope")


def test_visible_events_shows_owned_records():
    events = [
        build_event(id="mine"),
        build_invite(id="invite-to-u2"),
        build_event(id="legacy", owner_id=None, organizer_id="u2"),
        build_event(id="theirs", organizer_id="u3", owner_id="u3"),
    ]
    assert [e["id"] for e in events_service.visible_events(events, "u1")] == ["mine"]
    assert [e["id"] for e in events_service.visible_events(events, "u2")] == ["invite-to-u2", "legacy"]


def test_events_for_date_sorted_by_start():
    events = [
        build_event(id="late", start_time="15:00", end_time="16:00"),
        build_event(id="early", start_time="08:00", end_time="08:30"),
        build_event(id="other-day", date="2030-01-08"),
    ]
    result = events_service.events_for_date(events, "u1", date(2030, 1, 7))
    assert [e["id"] for e in result] == ["early", "late"]


def test_search_events_matches_title_description_location():
    events = [
        build_event(id="a", title="Budget review"),
        build_event(id="b", description="discuss the BUDGET"),
        build_event(id="c", location="Budget room"),
        build_event(id="d", title="Lunch"),
        build_event(id="e", title="Budget", organizer_id="u9", owner_id="u9"),
    ]
    assert [e["id"] for e in events_service.search_events(events, "u1", "budget")] == ["a", "b", "c"]
    assert len(events_service.search_events(events, "u1", "  ")) == 4
