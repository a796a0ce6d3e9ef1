"""Check-in submission: one remote call, mapped to a user-facing result."""
from __future__ import annotations

import logging
from typing import Optional

import httpx

from ..config import Settings
from ..errors import CheckinRejected
from ..state import CheckinResult
from .http_client import TicketingHttpClient

logger = logging.getLogger(__name__)


def _server_message(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    message = body.get("message")
    if isinstance(message, str) and message.strip():
        return message
    return None


class CheckinClient:
    """Marks a ticket as used. Failures are final for the session and never retried."""

    def __init__(self, http_client: TicketingHttpClient, settings: Settings) -> None:
        self._http = http_client
        self._success_message = settings.success_message
        self._failure_message = settings.failure_message

    async def check_in(self, ticket_id: str) -> None:
        """Raise ``CheckinRejected`` unless the service accepted the check-in."""

        try:
            await self._http.check_ticket(ticket_id)
        except httpx.HTTPStatusError as exc:
            message = _server_message(exc.response) or self._failure_message
            raise CheckinRejected(message, status_code=exc.response.status_code) from exc
        except httpx.HTTPError as exc:
            logger.warning("Check-in transport failure for %r: %s", ticket_id, exc)
            raise CheckinRejected(self._failure_message) from exc

    async def submit(self, ticket_id: str) -> CheckinResult:
        logger.info("Submitting check-in for ticket %r", ticket_id)
        try:
            await self.check_in(ticket_id)
        except CheckinRejected as exc:
            logger.info("Check-in rejected for %r (status=%s): %s", ticket_id, exc.status_code, exc.message)
            return CheckinResult(success=False, message=exc.message)
        return CheckinResult(success=True, message=self._success_message)


__all__ = ["CheckinClient"]
