from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse


class ApiError(Exception):
    def __init__(self, status_code: int, code: str, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message


class InvalidRangeError(ApiError):
    """Raised at the request boundary for unparseable or reversed date ranges."""

    def __init__(self, message: str):
        super().__init__(422, "INVALID_RANGE", message)


class UpstreamFetchError(Exception):
    """A schedule-history or attendance store call failed.

    Stores wrap their driver errors in this type; the processing service lets
    it propagate untouched so the caller decides about retries.
    """

    def __init__(self, store: str, employee_id: int | None, message: str):
        super().__init__(message)
        self.store = store
        self.employee_id = employee_id
        self.message = message


def get_request_id(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        return str(request_id)
    return "unknown"


def error_response(request: Request, *, status_code: int, code: str, message: str) -> JSONResponse:
    payload = {
        "error": {
            "code": code,
            "message": message,
            "request_id": get_request_id(request),
        }
    }
    return JSONResponse(status_code=status_code, content=payload)
