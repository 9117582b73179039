from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .aws import ddb
from .settings import S

@dataclass(frozen=True)
class Tables:
    sessions: Any
    store: Any
    users: Any
    rooms: Any
    audit: Any

T = Tables(
    sessions=ddb.Table(S.ddb_sessions_table),
    store=ddb.Table(S.calendar_store_table),
    users=ddb.Table(S.users_table_name),
    rooms=ddb.Table(S.rooms_table_name),
    audit=ddb.Table(S.audit_table_name),
)
