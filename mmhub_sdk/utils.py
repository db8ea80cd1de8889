"""Utilities: request-ID helpers and error-envelope inspection."""

from __future__ import annotations

import uuid
from typing import Any, Optional


def generate_request_id() -> str:
    """Generate a short UUID4 hex string for X-Request-ID."""
    return uuid.uuid4().hex[:12]


def envelope_status(body: Any) -> Optional[int]:
    """Return the embedded error status of a Mattermost error object.

    Mattermost reports failures as ``{"id": "api...app_error", "message": ...,
    "status_code": 404}``. Some proxies and older servers send that body with a
    200, so the transport status alone is not enough.
    """
    if not isinstance(body, dict):
        return None
    raw = body.get("status_code")
    try:
        code = int(raw)
    except (TypeError, ValueError):
        return None
    if 400 <= code <= 599:
        return code
    return None


def error_message(body: Any, default: str = "(no message)") -> str:
    """Pull a safe, short message out of an error body.

    Only ``message`` (or ``error``) is exposed; full bodies can carry request
    metadata.
    """
    if isinstance(body, dict):
        for key in ("message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return default
