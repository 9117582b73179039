"""Invitation lifecycle for fan-out copies.

A copy starts ``pending`` and moves once to ``accepted`` or ``declined``; both
are terminal. Organizer records carry no invitation state. A copy that is
still awaiting a response cannot be edited or deleted by its owner.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from teamcal.core.errors import AuthorizationError, ValidationError
from teamcal.core.time import iso_local
from teamcal.services.events import owner_of
from teamcal.services.sessions import CurrentUser, is_admin

logger = logging.getLogger(__name__)

PENDING = "pending"
ACCEPTED = "accepted"
DECLINED = "declined"
DECISIONS = (ACCEPTED, DECLINED)


def is_pending_invite(event: Dict[str, Any]) -> bool:
    return (
        bool(event.get("is_invite"))
        and event.get("invite_status") == PENDING
        and event.get("recurrence") != "daily"
    )


def can_respond(event: Dict[str, Any], user_id: str) -> bool:
    return is_pending_invite(event) and owner_of(event) == user_id


def respond(event: Dict[str, Any], user_id: str, decision: str, now: datetime) -> Dict[str, Any]:
    if decision not in DECISIONS:
        raise ValidationError(f"decision must be one of: {', '.join(DECISIONS)}")
    if not event.get("is_invite"):
        raise ValidationError("only invitations can be accepted or declined")
    if owner_of(event) != user_id:
        logger.warning("user %s tried to answer invitation %s owned by %s", user_id, event.get("id"), owner_of(event))
        raise AuthorizationError("only the invitee can respond to this invitation")
    status = event.get("invite_status")
    if status != PENDING:
        raise ValidationError(f"invitation already {status}")
    if event.get("recurrence") == "daily":
        raise ValidationError("daily recurring events do not take invitation responses")

    ts = iso_local(now)
    updated = {**event, "invite_status": decision, "responded_at": ts, "updated_at": ts}
    logger.info("invitation %s %s by %s", event.get("id"), decision, user_id)
    return updated


def modify_denial(event: Dict[str, Any], user: CurrentUser) -> Optional[str]:
    if not is_admin(user):
        return "only administrators can create, edit or delete events"
    if event.get("is_invite"):
        if owner_of(event) != user.id:
            return "only the invitee can change their copy of an invitation"
        if is_pending_invite(event):
            return "respond to the invitation before editing or deleting it"
        return None
    if event.get("organizer_id") != user.id:
        return "only the organizer can change this event"
    return None


def can_modify(event: Dict[str, Any], user: CurrentUser) -> bool:
    return modify_denial(event, user) is None


def require_can_modify(event: Dict[str, Any], user: CurrentUser) -> None:
    reason = modify_denial(event, user)
    if reason:
        logger.warning("user %s denied change to event %s: %s", user.id, event.get("id"), reason)
        raise AuthorizationError(reason)
