from __future__ import annotations

from fastapi import HTTPException


class CalendarError(HTTPException):
    status_code = 400

    def __init__(self, detail: str) -> None:
        super().__init__(status_code=self.status_code, detail=detail)


class ValidationError(CalendarError):
    status_code = 400


class MalformedTimeError(ValidationError):
    pass


class AuthorizationError(CalendarError):
    status_code = 403


class NotFoundError(CalendarError):
    status_code = 404


class StoreError(CalendarError):
    status_code = 503
