from __future__ import annotations

import logging

from fastapi import HTTPException

from app.domain.errors import (
    Conflict,
    DividendTrackerError,
    InvalidInput,
    NotFound,
    Unauthorized,
    UpstreamUnavailable,
)

log = logging.getLogger(__name__)

GENERIC_ERROR = "failed to load Yahoo Finance data"


def to_http_exception(exc: Exception) -> HTTPException:
    """
    Map domain errors onto status codes. Anything unexpected becomes a bare 500;
    internal detail only goes to the log.
    """
    if isinstance(exc, InvalidInput):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, Unauthorized):
        return HTTPException(status_code=401, detail=str(exc))
    if isinstance(exc, NotFound):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, Conflict):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, UpstreamUnavailable):
        return HTTPException(
            status_code=502,
            detail={
                "error": f"Yahoo Finance {exc.operation} request failed",
                "detail": exc.last_failure.to_dict() if exc.last_failure else None,
            },
        )
    if not isinstance(exc, DividendTrackerError):
        log.exception("unexpected error: %s", exc)
    return HTTPException(status_code=500, detail=GENERIC_ERROR)
