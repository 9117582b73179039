from __future__ import annotations

import logging
import uuid
from typing import Any, Dict

from teamcal.core.settings import S
from teamcal.core.tables import T
from teamcal.core.time import now_ts

logger = logging.getLogger(__name__)


def _client_ip(req) -> str:
    forwarded = req.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return req.client.host if req.client else "0.0.0.0"


def _safe_details(fields: Dict[str, Any]) -> Dict[str, Any]:
    safe: Dict[str, Any] = {}
    for k, v in fields.items():
        if v is None:
            continue
        if isinstance(v, (int, bool)):
            safe[k] = v
        else:
            safe[k] = str(v)[:512]
    return safe


def audit_event(event: str, user_id: str, request=None, **fields: Any) -> None:
    """Record a calendar action for the audit trail.

    Best effort: a failed write is logged and the calling request continues.
    """
    if not S.audit_log_enabled:
        return
    ts = now_ts()
    item: Dict[str, Any] = {
        "user_id": user_id,
        "audit_id": f"{ts:010d}#{uuid.uuid4().hex}",
        "ts": ts,
        "event": event,
        "outcome": str(fields.pop("outcome", "success")),
        "details": _safe_details(fields),
        S.ddb_ttl_attr: ts + int(S.audit_ttl_days) * 86400,
    }
    if request is not None:
        item["ip"] = _client_ip(request)
        item["user_agent"] = request.headers.get("user-agent", "")[:256]

    try:
        T.audit.put_item(Item=item)
    except Exception:
        logger.warning("audit write failed for %s by %s", event, user_id, exc_info=True)
