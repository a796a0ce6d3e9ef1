"""Ticket identifier normalization for decoded QR payloads."""
from __future__ import annotations

import re

_DISALLOWED = re.compile(r"[^A-Za-z0-9\-]")


def normalize_ticket_id(raw_payload: str) -> str:
    """Reduce decoded QR text to the identifier used in ``PUT /tickets/{id}``.

    URLs contribute only their last path segment. The result may be empty for
    QR codes that are not tickets; the ticketing service rejects those.
    """

    value = raw_payload.strip()
    if value.startswith("http"):
        value = value.rsplit("/", 1)[-1]
    return _DISALLOWED.sub("", value)


__all__ = ["normalize_ticket_id"]
