"""Scan session state definitions shared by the controller and the UI boundary."""
from __future__ import annotations

import enum
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .errors import InvalidTransition


class ScanMode(str, enum.Enum):
    CAMERA_STREAM = "camera_stream"
    IMAGE_UPLOAD = "image_upload"


class ScanState(str, enum.Enum):
    IDLE = "idle"
    ACQUIRING = "acquiring"
    DECODED = "decoded"
    SUBMITTING = "submitting"
    SETTLED = "settled"


_ORDER = {state: index for index, state in enumerate(ScanState)}


@dataclass(frozen=True)
class CheckinResult:
    """Outcome of a single check-in attempt, rendered as-is."""

    success: bool
    message: str

    def as_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "message": self.message}


@dataclass
class ScanSession:
    """One check-in attempt. States only ever move forward."""

    mode: ScanMode
    state: ScanState = ScanState.IDLE
    raw_payload: Optional[str] = None
    ticket_id: Optional[str] = None
    outcome: Optional[CheckinResult] = None
    cancelled: bool = False
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    started_at: float = field(default_factory=time.time)

    @property
    def is_terminal(self) -> bool:
        return self.cancelled or self.state == ScanState.SETTLED

    def advance(self, state: ScanState) -> None:
        if self.cancelled:
            raise InvalidTransition(f"session {self.session_id} was cancelled")
        if _ORDER[state] <= _ORDER[self.state]:
            raise InvalidTransition(f"{self.state.value} -> {state.value}")
        self.state = state

    def decoded(self, raw_payload: str, ticket_id: str) -> None:
        self.advance(ScanState.DECODED)
        self.raw_payload = raw_payload
        self.ticket_id = ticket_id

    def settle(self, result: CheckinResult) -> None:
        self.advance(ScanState.SETTLED)
        self.outcome = result

    def cancel(self) -> None:
        if self.state != ScanState.ACQUIRING or self.cancelled:
            raise InvalidTransition(f"cannot cancel from {self.state.value}")
        self.cancelled = True


@dataclass
class ScanSnapshot:
    """Renderable view of the controller: idle prompt, scanning, or result panel."""

    state: ScanState
    mode: Optional[ScanMode] = None
    outcome: Optional[CheckinResult] = None
    ticket_id: Optional[str] = None
    session_id: Optional[str] = None

    @classmethod
    def idle(cls) -> "ScanSnapshot":
        return cls(state=ScanState.IDLE)

    @classmethod
    def of(cls, session: Optional[ScanSession]) -> "ScanSnapshot":
        if session is None or session.cancelled:
            return cls.idle()
        return cls(
            state=session.state,
            mode=session.mode,
            outcome=session.outcome,
            ticket_id=session.ticket_id,
            session_id=session.session_id,
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "mode": self.mode.value if self.mode else None,
            "outcome": self.outcome.as_dict() if self.outcome else None,
            "ticket_id": self.ticket_id,
            "session_id": self.session_id,
        }


@dataclass
class ControllerEvent:
    """Event payload distributed to UI clients over the local WebSocket."""

    type: str
    snapshot: ScanSnapshot
    data: Dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return {"type": self.type, **self.snapshot.as_dict(), "data": self.data}


__all__ = [
    "CheckinResult",
    "ControllerEvent",
    "ScanMode",
    "ScanSession",
    "ScanSnapshot",
    "ScanState",
]
