"""Capability interface shared by both acquisition modes."""
from __future__ import annotations

from typing import Protocol

from ..state import ScanMode


class AcquisitionSource(Protocol):
    mode: ScanMode

    async def acquire(self) -> str:
        """Wait for decoded QR text; raises ``AcquisitionError`` on failure."""

    def cancel(self) -> None:
        """Stop acquiring and give back any device held."""
