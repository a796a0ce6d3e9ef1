"""Error taxonomy for the check-in pipeline."""
from __future__ import annotations

import enum
from typing import Optional


class AcquisitionErrorKind(str, enum.Enum):
    NOT_FOUND = "not_found"
    DEVICE_UNAVAILABLE = "device_unavailable"


class AcquisitionError(Exception):
    """Raised by an acquisition source when no payload can be produced."""

    def __init__(self, kind: AcquisitionErrorKind, detail: Optional[str] = None) -> None:
        super().__init__(detail or kind.value)
        self.kind = kind
        self.detail = detail


class CheckinRejected(Exception):
    """The ticketing service refused the check-in, or could not be reached."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthenticationError(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidTransition(RuntimeError):
    """A scan session was asked to move backwards or repeat a state."""


__all__ = [
    "AcquisitionError",
    "AcquisitionErrorKind",
    "AuthenticationError",
    "CheckinRejected",
    "InvalidTransition",
]
