from __future__ import annotations

import copy
from datetime import datetime
from typing import Any, Dict, List, Optional

import pytest

NOW = datetime(2030, 1, 7, 8, 0)  # a Monday


class FakeTable:
    """In-memory stand-in for a DynamoDB Table keyed by one or more attributes."""

    def __init__(self, key_fields: tuple[str, ...], items: Optional[List[Dict[str, Any]]] = None, page_size: int = 0):
        self.key_fields = key_fields
        self.items: Dict[tuple, Dict[str, Any]] = {}
        self.page_size = page_size
        self.put_count = 0
        for item in items or []:
            self.items[self._key(item)] = copy.deepcopy(item)

    def _key(self, item: Dict[str, Any]) -> tuple:
        return tuple(item[field] for field in self.key_fields)

    def get_item(self, Key: Dict[str, Any]) -> Dict[str, Any]:
        item = self.items.get(self._key(Key))
        return {"Item": copy.deepcopy(item)} if item else {}

    def put_item(self, Item: Dict[str, Any]) -> Dict[str, Any]:
        self.put_count += 1
        self.items[self._key(Item)] = copy.deepcopy(Item)
        return {}

    def update_item(self, **kwargs: Any) -> Dict[str, Any]:
        return {}

    def scan(self, **kwargs: Any) -> Dict[str, Any]:
        values = [copy.deepcopy(v) for v in self.items.values()]
        if not self.page_size:
            return {"Items": values}
        offset = int((kwargs.get("ExclusiveStartKey") or {}).get("offset", 0))
        page = values[offset:offset + self.page_size]
        resp: Dict[str, Any] = {"Items": page}
        if offset + self.page_size < len(values):
            resp["LastEvaluatedKey"] = {"offset": offset + self.page_size}
        return resp


def build_event(**overrides: Any) -> Dict[str, Any]:
    event = {
        "id": "evt1",
        "title": "Standup",
        "description": "",
        "date": "2030-01-07",
        "start_time": "09:00",
        "end_time": "10:00",
        "location": None,
        "visibility": "busy",
        "color_tag": "blue",
        "is_online": False,
        "meeting_link": None,
        "invited_group_id": None,
        "recurrence": "none",
        "kind": "meeting",
        "organizer_id": "u1",
        "owner_id": "u1",
        "attendee_ids": [],
        "is_invite": False,
        "source_event_id": None,
        "created_at": "2030-01-01T08:00:00",
        "updated_at": "2030-01-01T08:00:00",
    }
    event.update(overrides)
    return event


def build_invite(**overrides: Any) -> Dict[str, Any]:
    invite = build_event(
        id="copy1",
        owner_id="u2",
        attendee_ids=["u2"],
        is_invite=True,
        invite_status="pending",
        source_event_id="evt1",
        responded_at=None,
    )
    invite.update(overrides)
    return invite


def build_draft(**overrides: Any) -> Dict[str, Any]:
    draft = {
        "title": "Planning",
        "description": "Quarter planning",
        "date": "2030-01-08",
        "start_time": "10:00",
        "end_time": "11:00",
        "location": "Room A",
        "visibility": "busy",
        "color_tag": "green",
        "is_online": False,
        "meeting_link": None,
        "invited_group_id": None,
        "recurrence": "none",
        "kind": "meeting",
    }
    draft.update(overrides)
    return draft


@pytest.fixture
def now() -> datetime:
    return NOW
