"""Personal access tokens for bot accounts.

Mattermost shows a token's secret exactly once, in the create response. A bot
that already has a token can be detected but its secret cannot be read back,
so provisioning reports three distinct outcomes instead of a token-or-None.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from mmhub_sdk import ApiError, MattermostClient

logger = logging.getLogger(__name__)

EXISTING_PLACEHOLDER = "<existing-token-see-mattermost-console>"
MANUAL_PLACEHOLDER = "<generate-manually>"


class TokenStatus(str, enum.Enum):
    MINTED = "minted"
    EXISTS_UNREADABLE = "exists_unreadable"
    MINT_FAILED = "mint_failed"


@dataclass(frozen=True)
class TokenOutcome:
    status: TokenStatus
    token: Optional[str] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        """True unless minting failed; an unreadable existing token is not a failure."""
        return self.status is not TokenStatus.MINT_FAILED

    def display(self) -> str:
        """Value for the ``export MM_TOKEN_...=`` line."""
        if self.status is TokenStatus.MINTED and self.token:
            return self.token
        if self.status is TokenStatus.EXISTS_UNREADABLE:
            return EXISTING_PLACEHOLDER
        return MANUAL_PLACEHOLDER


def provision_token(client: MattermostClient, user_id: str, description: str) -> TokenOutcome:
    """Mint a token for ``user_id`` unless one already exists.

    Nothing is minted when the listing fails: the bot may already hold a
    token, and Mattermost would happily issue a second one. That case is
    reported as MINT_FAILED so a re-run can settle it.
    """
    try:
        existing = client.list_user_access_tokens(user_id)
    except (ApiError, httpx.TransportError) as e:
        message = e.message if isinstance(e, ApiError) else str(e)
        logger.warning("could not list tokens for %s, not minting: %s", user_id, message)
        return TokenOutcome(
            TokenStatus.MINT_FAILED,
            detail=f"could not verify existing tokens: {message}",
        )

    if existing:
        return TokenOutcome(
            TokenStatus.EXISTS_UNREADABLE,
            detail="use 'Revoke and regenerate' in the Mattermost System Console to obtain a new value",
        )

    try:
        minted = client.create_user_access_token(user_id, description)
    except (ApiError, httpx.TransportError) as e:
        message = e.message if isinstance(e, ApiError) else str(e)
        logger.warning("could not generate token for %s: %s", user_id, message)
        return TokenOutcome(TokenStatus.MINT_FAILED, detail=message)

    if not minted.token:
        return TokenOutcome(TokenStatus.MINT_FAILED, detail="server returned no token value")
    return TokenOutcome(TokenStatus.MINTED, token=minted.token)
