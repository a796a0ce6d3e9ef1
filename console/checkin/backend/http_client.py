"""HTTP client for the remote ticketing service."""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

import httpx

from ..config import Settings
from .security import bearer_header

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]


class TicketingHttpClient:
    """Thin wrapper around the `/sessions`, `/events`, `/files` and `/tickets` endpoints."""

    def __init__(
        self,
        settings: Settings,
        *,
        token_provider: Optional[TokenProvider] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings
        self._token_provider = token_provider or (lambda: settings.api_token)
        self._client = httpx.AsyncClient(
            base_url=settings.api_base_url,
            timeout=settings.request_timeout_s,
            transport=transport,
        )

    def set_token_provider(self, provider: TokenProvider) -> None:
        self._token_provider = provider

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        headers = {**bearer_header(self._token_provider()), **kwargs.pop("headers", {})}
        resp = await self._client.request(method, url, headers=headers, **kwargs)
        logger.debug("%s %s -> %s", method, url, resp.status_code)
        resp.raise_for_status()
        return resp

    async def login(self, email: str, password: str) -> str:
        resp = await self._request("POST", "/sessions", json={"email": email, "password": password})
        data = resp.json()
        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            logger.error("Session response missing token: %s", data)
            raise ValueError("session response missing token")
        return token

    async def list_events(self) -> List[Dict[str, Any]]:
        resp = await self._request("GET", "/events")
        return resp.json()

    async def get_event(self, event_id: str) -> Dict[str, Any]:
        resp = await self._request("GET", f"/events/{event_id}")
        return resp.json()

    async def create_event(self, body: Dict[str, Any]) -> Dict[str, Any]:
        resp = await self._request("POST", "/events", json=body)
        return resp.json()

    async def update_event(self, event_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        resp = await self._request("PUT", f"/events/{event_id}", json=body)
        return resp.json()

    async def delete_event(self, event_id: str) -> None:
        await self._request("DELETE", f"/events/{event_id}")

    async def upload_file(self, filename: str, content: bytes, content_type: str = "application/octet-stream") -> Dict[str, Any]:
        resp = await self._request("POST", "/files", files={"file": (filename, content, content_type)})
        return resp.json()

    async def check_ticket(self, ticket_id: str) -> httpx.Response:
        return await self._request("PUT", f"/tickets/{ticket_id}", json={"check": True})

    async def aclose(self) -> None:
        await self._client.aclose()


__all__ = ["TicketingHttpClient"]
