from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from fastapi import Depends, Header, HTTPException, Request

from teamcal.auth.deps import get_authenticated_user_sub
from teamcal.core.errors import AuthorizationError
from teamcal.core.settings import S
from teamcal.core.tables import T
from teamcal.core.time import now_ts
from teamcal.services.directory import get_user

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrentUser:
    id: str
    name: str
    role: str


async def require_ui_session(
    request: Request,
    user_sub: str = Depends(get_authenticated_user_sub),
    x_session_id: Optional[str] = Header(default=None, alias="X-SESSION-ID"),
) -> Dict[str, str]:
    if not x_session_id:
        raise HTTPException(401, "Missing X-SESSION-ID")
    it = T.sessions.get_item(Key={"user_sub": user_sub, "session_id": x_session_id}).get("Item")
    if not it:
        raise HTTPException(401, "Unknown session")
    if it.get("revoked", False):
        raise HTTPException(401, "Session revoked")

    ts = now_ts()
    last = int(it.get("last_seen_at", 0) or 0)
    key = {"user_sub": user_sub, "session_id": x_session_id}
    if last and (ts - last) > S.ui_inactivity_seconds:
        T.sessions.update_item(Key=key, UpdateExpression="SET revoked=:t", ExpressionAttributeValues={":t": True})
        raise HTTPException(401, "Session expired (inactive)")

    # Touch last_seen (best effort)
    try:
        T.sessions.update_item(Key=key, UpdateExpression="SET last_seen_at=:t", ExpressionAttributeValues={":t": ts})
    except Exception:
        logger.warning("could not refresh last_seen_at for session %s", x_session_id, exc_info=True)

    request.state.user_sub = user_sub
    return {"user_sub": user_sub, "session_id": x_session_id}


async def current_user(ctx: Dict[str, str] = Depends(require_ui_session)) -> CurrentUser:
    """Resolve the session's user to an id/name/role triple from the directory."""
    record = get_user(ctx["user_sub"])
    if not record:
        raise AuthorizationError("user is not registered in the directory")
    return CurrentUser(
        id=str(record["id"]),
        name=str(record.get("name") or record["id"]),
        role=str(record.get("role") or "user"),
    )


def is_admin(user: CurrentUser) -> bool:
    return user.role == S.admin_role


def require_admin(user: CurrentUser) -> None:
    if not is_admin(user):
        logger.warning("user %s with role %s denied calendar management", user.id, user.role)
        raise AuthorizationError("only administrators can create, edit or delete events")
