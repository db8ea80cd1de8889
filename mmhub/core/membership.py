"""Team and channel membership for provisioned bots.

Membership is binary: a bot either is or is not a member. Each pair is checked
with a direct lookup and joined only when the lookup finds nothing, so
repeating a sync never creates a second relation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional

import httpx

from mmhub_sdk import ApiError, MattermostClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MembershipResult:
    container: str  # "team" or "channel"
    container_id: str
    user_id: str
    ok: bool
    joined: bool = False
    error: Optional[str] = None


class MembershipSynchronizer:
    """Ensures bot membership, one pair at a time.

    Callers must ensure team membership for a bot before any of its channel
    memberships; Mattermost refuses channel joins for non-members of the team.
    """

    def __init__(self, client: MattermostClient) -> None:
        self.client = client

    def ensure_team_member(self, team_id: str, user_id: str) -> MembershipResult:
        return self._ensure(
            "team",
            team_id,
            user_id,
            check=lambda: self.client.get_team_member(team_id, user_id).user_id,
            join=lambda: self.client.add_team_member(team_id, user_id),
        )

    def ensure_channel_member(self, channel_id: str, user_id: str) -> MembershipResult:
        return self._ensure(
            "channel",
            channel_id,
            user_id,
            check=lambda: self.client.get_channel_member(channel_id, user_id).user_id,
            join=lambda: self.client.add_channel_member(channel_id, user_id),
        )

    def sync_channels(
        self, channel_ids: Mapping[str, str], bot_ids: Mapping[str, str]
    ) -> Dict[str, List[MembershipResult]]:
        """Ensure every bot is in every channel; results keyed by channel name."""
        results: Dict[str, List[MembershipResult]] = {}
        for channel_name, channel_id in channel_ids.items():
            results[channel_name] = [
                self.ensure_channel_member(channel_id, bot_id) for bot_id in bot_ids.values()
            ]
        return results

    def _ensure(
        self,
        container: str,
        container_id: str,
        user_id: str,
        check: Callable[[], str],
        join: Callable[[], object],
    ) -> MembershipResult:
        try:
            if check():
                return MembershipResult(container, container_id, user_id, ok=True)
        except (ApiError, httpx.TransportError) as e:
            logger.debug("%s %s member check for %s: %s", container, container_id, user_id, e)

        try:
            join()
        except ApiError as e:
            # "api.channel.add_member.exists.app_error" and friends
            if e.error_id and "exists" in e.error_id:
                return MembershipResult(container, container_id, user_id, ok=True)
            logger.warning("could not add %s to %s %s: %s", user_id, container, container_id, e.message)
            return MembershipResult(container, container_id, user_id, ok=False, error=e.message)
        except httpx.TransportError as e:
            logger.warning("could not add %s to %s %s: %s", user_id, container, container_id, e)
            return MembershipResult(container, container_id, user_id, ok=False, error=str(e))

        logger.debug("added %s to %s %s", user_id, container, container_id)
        return MembershipResult(container, container_id, user_id, ok=True, joined=True)
