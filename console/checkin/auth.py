"""Bearer credential holder standing in for the console's login session."""
from __future__ import annotations

import logging
from typing import Optional

import httpx

from .backend.http_client import TicketingHttpClient
from .backend.security import CurrentUser, decode_token_claims, user_from_token
from .config import Settings
from .errors import AuthenticationError

logger = logging.getLogger(__name__)

LOGIN_FAILED_MESSAGE = "Login failed"


class AuthSession:
    def __init__(self, settings: Settings, http_client: TicketingHttpClient) -> None:
        self._fallback_token = settings.api_token
        self._http = http_client
        self._token: Optional[str] = None
        self._user: Optional[CurrentUser] = None
        http_client.set_token_provider(lambda: self.token)

    @property
    def token(self) -> Optional[str]:
        return self._token or self._fallback_token

    @property
    def user(self) -> Optional[CurrentUser]:
        return self._user

    async def login(self, email: str, password: str) -> CurrentUser:
        try:
            token = await self._http.login(email, password)
        except httpx.HTTPStatusError as exc:
            message = LOGIN_FAILED_MESSAGE
            try:
                body = exc.response.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and isinstance(body.get("message"), str):
                message = body["message"]
            raise AuthenticationError(message) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise AuthenticationError(LOGIN_FAILED_MESSAGE) from exc

        user = user_from_token(token)
        if user is None:
            logger.warning("Login token carried no subject claim: %s", sorted(decode_token_claims(token)))
            raise AuthenticationError("Login returned an unreadable token")
        self._token = token
        self._user = user
        logger.info("Logged in as %s", user.email or user.id)
        return user

    def logout(self) -> None:
        if self._user:
            logger.info("Logged out %s", self._user.email or self._user.id)
        self._token = None
        self._user = None


__all__ = ["AuthSession", "LOGIN_FAILED_MESSAGE"]
