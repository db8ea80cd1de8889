"""Session token handling for the Mattermost SDK.

Mattermost hands out the session token of ``POST /users/login`` in different
places depending on the server version and the proxy in front of it: a
``Token`` response header, a ``token`` body field, or only the
``MMAUTHTOKEN`` session cookie. :func:`login` walks those in a fixed order.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import httpx

from mmhub_sdk.errors import AuthenticationError

if TYPE_CHECKING:
    from mmhub_sdk.client import MattermostClient

logger = logging.getLogger(__name__)

TOKEN_HEADER = "Token"
SESSION_COOKIE = "MMAUTHTOKEN"


def build_auth_headers(token: Optional[str] = None) -> Dict[str, str]:
    """Return an Authorization header dict if a token is available.

    Returns an empty dict when no token is configured.
    """
    if token:
        return {"Authorization": f"Bearer {token}"}
    return {}


# ── Extraction strategies ────────────────────────────────────────


def token_from_header(resp: httpx.Response) -> str:
    """Strategy (a): the dedicated ``Token`` response header."""
    return (resp.headers.get(TOKEN_HEADER) or "").strip()


def token_from_body(resp: httpx.Response) -> str:
    """Strategy (b): a ``token`` field in the JSON body."""
    try:
        body = resp.json()
    except ValueError:
        return ""
    if not isinstance(body, dict):
        return ""
    value = body.get("token")
    return value.strip() if isinstance(value, str) else ""


def token_from_raw_dump(resp: httpx.Response) -> str:
    """Strategy (c) extraction: scan the raw header list, then the session cookie.

    Works when a proxy rewrites the header name's case or folds it into a
    duplicate header that the parsed view hides.
    """
    for name, value in resp.headers.raw:
        if name.decode("latin-1").strip().lower() == TOKEN_HEADER.lower():
            token = value.decode("latin-1").strip()
            if token:
                return token
    return (resp.cookies.get(SESSION_COOKIE) or "").strip()


def login(client: "MattermostClient", login_id: str, password: str) -> str:
    """Exchange admin credentials for a session token.

    Strategies run in order and each only when the previous one came back
    empty: (a) header of the login response, (b) body of that same response,
    (c) a second login request whose raw headers and cookie are scanned.

    Raises:
        AuthenticationError: If every strategy yields an empty token. Bad
            credentials or an incompatible server are not retried.
    """
    try:
        resp = client.login_raw(login_id, password)
        strategies: List[Tuple[str, Callable[[], str]]] = [
            ("header", lambda: token_from_header(resp)),
            ("body", lambda: token_from_body(resp)),
            ("raw-dump", lambda: token_from_raw_dump(client.login_raw(login_id, password))),
        ]
        for name, strategy in strategies:
            token = strategy()
            if token:
                logger.debug("session token obtained via %s strategy", name)
                return token
            logger.debug("login strategy %s yielded no token", name)
    except httpx.HTTPError as e:
        raise AuthenticationError(f"login request to {client.api_url} failed: {e}") from e

    raise AuthenticationError(
        f"Failed to authenticate as '{login_id}' (HTTP {resp.status_code}). "
        "Check MM_ADMIN_USERNAME and MM_ADMIN_PASSWORD."
    )


def token_from_env(
    env: Mapping[str, str], names: Sequence[str]
) -> Tuple[Optional[str], Optional[str]]:
    """Return ``(token, variable_name)`` for the first non-empty variable in ``names``."""
    for name in names:
        value = (env.get(name) or "").strip()
        if value:
            return value, name
    return None, None
