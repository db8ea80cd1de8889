"""Token masking and redaction for logs and console output.

Never prints a secret in full; the summary's export lines are the only place a
freshly minted token is shown.
"""

from __future__ import annotations

import re

REDACTED = "***REDACTED***"

_BEARER_RE = re.compile(r"(Bearer\s+)\S+", re.IGNORECASE)


def mask_token(token: str, visible: int = 8) -> str:
    """Show the first ``visible`` characters of a token, e.g. ``abcd1234...``."""
    if not token:
        return ""
    if len(token) <= visible:
        return "*" * len(token)
    return token[:visible] + "..."


def redact_text(text: str) -> str:
    """Replace bearer credentials in free text."""
    if not text:
        return text
    return _BEARER_RE.sub(r"\1" + REDACTED, text)
