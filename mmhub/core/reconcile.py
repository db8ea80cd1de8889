"""Find-or-create reconciliation for teams, bot accounts and channels.

Every resource kind exposes the same two operations:

- ``lookup(client)``: return the id of the existing resource, or None
- ``create(client)``: create it and return the new id

:func:`reconcile` composes them. Nothing is cached between runs; the server is
the only source of truth, so running it twice converges to the same ids.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import httpx

from mmhub.core.errors import ReconciliationError
from mmhub.core.manifest import BotSpec, ChannelSpec, TeamSpec
from mmhub_sdk import ApiError, MattermostClient

logger = logging.getLogger(__name__)


class Resource(Protocol):
    kind: str
    key: str

    def lookup(self, client: MattermostClient) -> Optional[str]: ...

    def create(self, client: MattermostClient) -> Optional[str]: ...


@dataclass(frozen=True)
class Reconciled:
    """Outcome of one reconciliation.

    ``planned`` is set in dry-run mode for a resource that would be created;
    its ``id`` is then None.
    """
    kind: str
    key: str
    id: Optional[str]
    created: bool
    planned: bool = False


def _valid(resource_id: Optional[str]) -> Optional[str]:
    if isinstance(resource_id, str) and resource_id.strip():
        return resource_id.strip()
    return None


def reconcile(client: MattermostClient, resource: Resource, dry_run: bool = False) -> Reconciled:
    """Return the id of ``resource``, creating it only when the lookup finds nothing.

    A lookup that errors (server error as well as not-found) counts as absent.
    If the create then fails, for example because another operator created the
    resource in between, the failure is raised as a ReconciliationError and
    the caller moves on.

    Raises:
        ReconciliationError: If creation fails or returns no id.
    """
    try:
        existing = _valid(resource.lookup(client))
    except (ApiError, httpx.TransportError) as e:
        logger.debug("%s '%s' lookup failed, treating as absent: %s", resource.kind, resource.key, e)
        existing = None

    if existing:
        logger.debug("%s '%s' exists: %s", resource.kind, resource.key, existing)
        return Reconciled(resource.kind, resource.key, existing, created=False)

    if dry_run:
        logger.info("%s '%s' would be created (dry run)", resource.kind, resource.key)
        return Reconciled(resource.kind, resource.key, None, created=False, planned=True)

    try:
        created = _valid(resource.create(client))
    except (ApiError, httpx.TransportError) as e:
        message = e.message if isinstance(e, ApiError) else str(e)
        raise ReconciliationError(resource.kind, resource.key, message) from e

    if not created:
        raise ReconciliationError(resource.kind, resource.key, "create returned no id")
    logger.info("%s '%s' created: %s", resource.kind, resource.key, created)
    return Reconciled(resource.kind, resource.key, created, created=True)


# ── Resource kinds ───────────────────────────────────────────────


class TeamResource:
    kind = "team"

    def __init__(self, spec: TeamSpec) -> None:
        self.spec = spec
        self.key = spec.name

    def lookup(self, client: MattermostClient) -> Optional[str]:
        return client.get_team_by_name(self.spec.name).id

    def create(self, client: MattermostClient) -> Optional[str]:
        return client.create_team(self.spec.name, self.spec.display_name, self.spec.type).id


class BotResource:
    kind = "bot"

    def __init__(self, spec: BotSpec) -> None:
        self.spec = spec
        self.key = spec.username

    def lookup(self, client: MattermostClient) -> Optional[str]:
        return client.get_user_by_username(self.spec.username).id

    def create(self, client: MattermostClient) -> Optional[str]:
        bot = client.create_bot(self.spec.username, self.spec.display_name, self.spec.description)
        return bot.user_id


class ChannelResource:
    kind = "channel"

    def __init__(self, team_id: str, spec: ChannelSpec) -> None:
        self.team_id = team_id
        self.spec = spec
        self.key = spec.name

    def lookup(self, client: MattermostClient) -> Optional[str]:
        return client.get_channel_by_name(self.team_id, self.spec.name).id

    def create(self, client: MattermostClient) -> Optional[str]:
        return client.create_channel(
            self.team_id,
            self.spec.name,
            self.spec.display_name,
            purpose=self.spec.purpose,
            type=self.spec.type,
        ).id
