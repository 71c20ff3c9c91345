from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


class DividendTrackerError(Exception):
    """Base class for errors the API layer knows how to translate."""


class InvalidInput(DividendTrackerError):
    """A required parameter is missing or blank; no upstream call was made."""


class NotFound(DividendTrackerError):
    """Upstream answered, but the requested symbol was not in the result set."""


class Conflict(DividendTrackerError):
    pass


class Unauthorized(DividendTrackerError):
    pass


@dataclass(frozen=True)
class UpstreamFailure:
    url: str
    status: int
    status_text: str
    body: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "status": self.status,
            "status_text": self.status_text,
            "body": self.body,
        }


class UpstreamUnavailable(DividendTrackerError):
    """Every mirror for an operation failed. Only the last failure is kept."""

    def __init__(self, operation: str, last_failure: Optional[UpstreamFailure] = None) -> None:
        self.operation = operation
        self.last_failure = last_failure
        super().__init__(f"all mirrors failed for {operation}")
