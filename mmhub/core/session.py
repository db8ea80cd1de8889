"""Bearer credential resolution for a provisioning run."""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from mmhub.core.errors import PreconditionError
from mmhub.core.secrets import mask_token
from mmhub_sdk import MattermostClient, login

logger = logging.getLogger(__name__)


def resolve_session(
    client: MattermostClient,
    login_id: Optional[str],
    password: Optional[str],
    token: Optional[str] = None,
) -> Tuple[str, str]:
    """Attach a bearer token to ``client`` and return ``(token, source)``.

    Priority: a pre-issued token from configuration, then the login exchange.
    The token lives only on the client object for the rest of the process.

    Raises:
        PreconditionError: If neither a token nor login credentials are given.
        AuthenticationError: If the login exchange yields no token.
    """
    if token:
        source = "pre-issued token"
    elif login_id and password:
        token = login(client, login_id, password)
        source = f"login as {login_id}"
    else:
        raise PreconditionError(
            "admin password required (--password or MM_ADMIN_PASSWORD env), "
            "or a pre-issued token (--token or MM_ADMIN_TOKEN env)"
        )

    client.token = token
    logger.info("authenticated via %s, token %s", source, mask_token(token))
    return token, source
