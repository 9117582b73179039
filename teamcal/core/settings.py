from __future__ import annotations

import os
from dataclasses import dataclass


def _flag(name: str, default: str) -> bool:
    return os.environ.get(name, default) not in ("0", "false", "False")


@dataclass(frozen=True)
class Settings:
    # AWS
    aws_region: str = os.environ.get("AWS_REGION", "us-east-1")

    # Token verification (optional; any OIDC issuer with a JWKS endpoint)
    auth_issuer: str = os.environ.get("AUTH_ISSUER", "").rstrip("/")
    auth_jwks_url: str = os.environ.get("AUTH_JWKS_URL", "")
    auth_audience: str = os.environ.get("AUTH_AUDIENCE", "")

    # DynamoDB tables
    ddb_sessions_table: str = os.environ.get("DDB_SESSIONS_TABLE", "sessions")
    calendar_store_table: str = os.environ.get("CALENDAR_STORE_TABLE", "calendar_store")
    users_table_name: str = os.environ.get("USERS_TABLE_NAME", "users")
    rooms_table_name: str = os.environ.get("ROOMS_TABLE_NAME", "rooms")
    audit_table_name: str = os.environ.get("AUDIT_TABLE_NAME", "calendar_audit")

    # Snapshot namespace inside the store table
    calendar_events_namespace: str = os.environ.get("CALENDAR_EVENTS_NAMESPACE", "calendar-events")

    # TTL
    ddb_ttl_attr: str = os.environ.get("DDB_TTL_ATTR", "ttl_epoch")

    # Audit
    audit_log_enabled: bool = _flag("AUDIT_LOG_ENABLED", "1")
    audit_ttl_days: int = int(os.environ.get("AUDIT_TTL_DAYS", "90"))

    # Sessions / roles
    ui_inactivity_seconds: int = int(os.environ.get("UI_INACTIVITY_SECONDS", "900"))
    admin_role: str = os.environ.get("ADMIN_ROLE", "admin")

    # Slot proposals
    proposal_horizon_days: int = int(os.environ.get("PROPOSAL_HORIZON_DAYS", "7"))
    work_day_start_hour: int = int(os.environ.get("WORK_DAY_START_HOUR", "9"))
    work_day_end_hour: int = int(os.environ.get("WORK_DAY_END_HOUR", "17"))
    slot_granularity_minutes: int = int(os.environ.get("SLOT_GRANULARITY_MINUTES", "30"))
    meeting_duration_minutes: int = int(os.environ.get("MEETING_DURATION_MINUTES", "60"))
    proposal_top_n: int = int(os.environ.get("PROPOSAL_TOP_N", "5"))
    lookahead_buffer_minutes: int = int(os.environ.get("LOOKAHEAD_BUFFER_MINUTES", "15"))

    # Online meetings
    meeting_link_base_url: str = os.environ.get("MEETING_LINK_BASE_URL", "https://meet.teamcal.app").rstrip("/")

    # Observability
    metrics_enabled: bool = _flag("METRICS_ENABLED", "1")
    log_level: str = os.environ.get("LOG_LEVEL", "INFO").upper()


S = Settings()
