from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from teamcal.core.errors import ValidationError
from teamcal.core.tables import T


def _scan_all(table: Any) -> List[Dict[str, Any]]:
    items: List[Dict[str, Any]] = []
    last_key = None
    while True:
        kwargs: Dict[str, Any] = {"Limit": 200}
        if last_key:
            kwargs["ExclusiveStartKey"] = last_key
        resp = table.scan(**kwargs)
        items.extend(resp.get("Items", []))
        last_key = resp.get("LastEvaluatedKey")
        if not last_key:
            break
    return items


def list_users() -> List[Dict[str, Any]]:
    return [
        {"id": it["id"], "name": it.get("name", ""), "email": it.get("email", ""), "role": it.get("role", "user")}
        for it in _scan_all(T.users)
        if it.get("id")
    ]


def list_rooms() -> List[Dict[str, Any]]:
    return [{"id": it["id"], "name": it.get("name", "")} for it in _scan_all(T.rooms) if it.get("id")]


def get_user(user_id: str) -> Optional[Dict[str, Any]]:
    return T.users.get_item(Key={"id": user_id}).get("Item")


def room_names() -> Dict[str, str]:
    return {room["id"]: room["name"] for room in list_rooms()}


def require_known_users(user_ids: Iterable[str]) -> None:
    wanted = [u for u in user_ids if u]
    if not wanted:
        return
    known = {user["id"] for user in list_users()}
    unknown = [u for u in wanted if u not in known]
    if unknown:
        raise ValidationError(f"Unknown invitee ids: {', '.join(unknown)}")


def require_known_room(room_id: Optional[str]) -> None:
    if not room_id:
        return
    item = T.rooms.get_item(Key={"id": room_id}).get("Item")
    if not item:
        raise ValidationError(f"Unknown room: {room_id}")
