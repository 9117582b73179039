from __future__ import annotations

import time
from typing import Callable, Optional

from fastapi import Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Gauge, Histogram, Info, generate_latest

REGISTRY = CollectorRegistry()

HTTP_REQUESTS = Counter(
    "teamcal_http_requests_total",
    "HTTP requests served, by route template",
    ["method", "route", "status"],
    registry=REGISTRY,
)
HTTP_FAILURES = Counter(
    "teamcal_http_failures_total",
    "HTTP requests answered with a 5xx status",
    ["method", "route"],
    registry=REGISTRY,
)
HTTP_LATENCY = Histogram(
    "teamcal_http_request_seconds",
    "Time spent handling a request",
    ["method", "route"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5),
    registry=REGISTRY,
)
HTTP_RESPONSE_BYTES = Histogram(
    "teamcal_http_response_bytes",
    "Declared response body size",
    ["route"],
    buckets=(256, 1024, 4096, 16384, 65536, 262144),
    registry=REGISTRY,
)
HTTP_ACTIVE = Gauge("teamcal_http_requests_active", "Requests currently being handled", registry=REGISTRY)

EVENTS_CREATED = Counter(
    "calendar_events_created_total",
    "Organizer events created",
    ["kind"],
    registry=REGISTRY,
)
INVITES_FANNED_OUT = Counter(
    "calendar_invites_fanned_out_total",
    "Invitee copies created by fan-out",
    registry=REGISTRY,
)
INVITE_RESPONSES = Counter(
    "calendar_invite_responses_total",
    "Invitation responses",
    ["status"],
    registry=REGISTRY,
)
SLOT_PROPOSALS = Counter(
    "calendar_slot_proposals_total",
    "Slot proposal requests",
    ["outcome"],
    registry=REGISTRY,
)
VALIDATION_FAILURES = Counter(
    "calendar_validation_failures_total",
    "Rejected calendar operations",
    ["operation"],
    registry=REGISTRY,
)

PROCESS_UPTIME = Gauge("teamcal_uptime_seconds", "Seconds since the process started", registry=REGISTRY)
BUILD_INFO = Info("teamcal_build", "Service name and version", registry=REGISTRY)

_STARTED = time.monotonic()


def _route_label(request: Request) -> str:
    # Raw paths carry event ids; unmatched requests share one label.
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


def record_event_created(kind: str, invite_count: int) -> None:
    EVENTS_CREATED.labels(kind=kind).inc()
    if invite_count:
        INVITES_FANNED_OUT.inc(invite_count)


def record_invite_response(status: str) -> None:
    INVITE_RESPONSES.labels(status=status).inc()


def record_proposal(found: int) -> None:
    SLOT_PROPOSALS.labels(outcome="found" if found else "empty").inc()


def record_validation_failure(operation: str) -> None:
    VALIDATION_FAILURES.labels(operation=operation).inc()


def _observe(request: Request, response: Optional[Response], elapsed: float) -> None:
    route = _route_label(request)
    status = response.status_code if response is not None else 500
    HTTP_REQUESTS.labels(method=request.method, route=route, status=str(status)).inc()
    HTTP_LATENCY.labels(method=request.method, route=route).observe(elapsed)
    if status >= 500:
        HTTP_FAILURES.labels(method=request.method, route=route).inc()
    if response is not None:
        size = response.headers.get("content-length")
        if size and size.isdigit():
            HTTP_RESPONSE_BYTES.labels(route=route).observe(int(size))


async def metrics_middleware(request: Request, call_next: Callable[[Request], Response]) -> Response:
    HTTP_ACTIVE.inc()
    started = time.perf_counter()
    response: Optional[Response] = None
    try:
        response = await call_next(request)
        return response
    finally:
        HTTP_ACTIVE.dec()
        _observe(request, response, time.perf_counter() - started)


def set_app_info(name: str, version: str) -> None:
    BUILD_INFO.info({"name": name, "version": version})


def metrics_endpoint() -> Response:
    PROCESS_UPTIME.set(time.monotonic() - _STARTED)
    return Response(generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)
