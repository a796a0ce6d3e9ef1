"""Bearer credential helpers for the ticketing service."""
from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class CurrentUser:
    id: str
    email: Optional[str] = None
    name: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "email": self.email, "name": self.name}


def _decode_base64url(value: str) -> bytes | None:
    padding = "=" * (-len(value) % 4)
    try:
        return base64.urlsafe_b64decode(value + padding)
    except (binascii.Error, ValueError):
        return None


def decode_token_claims(token: str) -> Dict[str, Any]:
    """Read the JWT payload segment. The signature is the service's concern, not ours."""

    parts = token.strip().split(".")
    if len(parts) < 2:
        return {}
    raw = _decode_base64url(parts[1])
    if raw is None:
        return {}
    try:
        claims = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError):
        return {}
    return claims if isinstance(claims, dict) else {}


def user_from_token(token: str) -> Optional[CurrentUser]:
    claims = decode_token_claims(token)
    user_id = claims.get("sub") or claims.get("id")
    if not user_id:
        return None
    return CurrentUser(id=str(user_id), email=claims.get("email"), name=claims.get("name"))


def bearer_header(token: Optional[str]) -> Dict[str, str]:
    if not token:
        return {}
    return {"Authorization": f"Bearer {token}"}


__all__ = ["CurrentUser", "bearer_header", "decode_token_claims", "user_from_token"]
