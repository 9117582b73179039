"""Event snapshot persistence.

The whole event collection lives in one item of the store table, keyed by
namespace. Reads return the full list and writes replace it wholesale, so
callers read, modify and write back the complete collection.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from botocore.exceptions import ClientError

from teamcal.core.errors import StoreError
from teamcal.core.settings import S
from teamcal.core.tables import T

logger = logging.getLogger(__name__)


def load_events(namespace: Optional[str] = None) -> List[Dict[str, Any]]:
    ns = namespace or S.calendar_events_namespace
    try:
        item = T.store.get_item(Key={"namespace": ns}).get("Item")
    except ClientError as exc:
        logger.exception("failed to read event snapshot %s", ns)
        raise StoreError("calendar store unavailable") from exc
    if not item:
        return []
    return list(item.get("events") or [])


def save_events(events: List[Dict[str, Any]], namespace: Optional[str] = None) -> None:
    ns = namespace or S.calendar_events_namespace
    try:
        T.store.put_item(Item={"namespace": ns, "events": list(events)})
    except ClientError as exc:
        logger.exception("failed to write event snapshot %s (%d events)", ns, len(events))
        raise StoreError("calendar store unavailable") from exc
