from __future__ import annotations

import time
from datetime import datetime


def now_ts() -> int:
    return int(time.time())


def local_now() -> datetime:
    # Wall-clock time without tzinfo; the calendar does not normalize timezones.
    return datetime.now().replace(microsecond=0)


def iso_local(dt: datetime) -> str:
    return dt.replace(microsecond=0).isoformat()
