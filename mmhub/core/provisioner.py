"""Provisioning run: team → bots → tokens → team membership → channels → channel membership.

One :class:`ProvisioningSession` owns the id maps for a single invocation.
They are rebuilt from the server every run and discarded afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

import httpx

from mmhub.core.errors import PreconditionError, ReconciliationError
from mmhub.core.manifest import BotSpec, ChannelSpec, WorkspaceManifest
from mmhub.core.membership import MembershipResult, MembershipSynchronizer
from mmhub.core.reconcile import BotResource, ChannelResource, Reconciled, TeamResource, reconcile
from mmhub.core.tokens import TokenOutcome, TokenStatus, provision_token
from mmhub_sdk import ApiError, MattermostClient

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_PARTIAL = 2


@dataclass
class BotReport:
    spec: BotSpec
    reconciled: Optional[Reconciled] = None
    token: Optional[TokenOutcome] = None
    team_membership: Optional[MembershipResult] = None
    error: Optional[str] = None


@dataclass
class ChannelReport:
    spec: ChannelSpec
    reconciled: Optional[Reconciled] = None
    memberships: List[MembershipResult] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def failed_memberships(self) -> List[MembershipResult]:
        return [m for m in self.memberships if not m.ok]


@dataclass
class ProvisionReport:
    manifest: WorkspaceManifest
    dry_run: bool = False
    admin_id: Optional[str] = None
    team: Optional[Reconciled] = None
    bots: Dict[str, BotReport] = field(default_factory=dict)
    channels: Dict[str, ChannelReport] = field(default_factory=dict)

    @property
    def failures(self) -> List[str]:
        """One line per failed resource, token mint or membership."""
        out: List[str] = []
        for name, bot in self.bots.items():
            if bot.error:
                out.append(f"bot @{name}: {bot.error}")
            if bot.token and not bot.token.ok:
                out.append(f"token @{name}: {bot.token.detail or 'minting failed'}")
            if bot.team_membership and not bot.team_membership.ok:
                out.append(f"team membership @{name}: {bot.team_membership.error}")
        for name, ch in self.channels.items():
            if ch.error:
                out.append(f"channel #{name}: {ch.error}")
            for m in ch.failed_memberships:
                out.append(f"channel membership #{name} / {m.user_id}: {m.error}")
        return out

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def exit_code(self) -> int:
        """0 on full success, 2 when any individual resource failed."""
        return EXIT_OK if self.ok else EXIT_PARTIAL

    @property
    def bot_ids(self) -> Dict[str, str]:
        return {
            name: b.reconciled.id
            for name, b in self.bots.items()
            if b.reconciled is not None and b.reconciled.id
        }

    @property
    def channel_ids(self) -> Dict[str, str]:
        return {
            name: c.reconciled.id
            for name, c in self.channels.items()
            if c.reconciled is not None and c.reconciled.id
        }


def _noop(message: str) -> None:
    pass


class ProvisioningSession:
    """Converges one Mattermost server to a :class:`WorkspaceManifest`.

    ``echo`` receives one progress line per step (the CLI passes a rich
    console's ``print``); the same lines go to the module logger at DEBUG.
    """

    def __init__(
        self,
        client: MattermostClient,
        manifest: WorkspaceManifest,
        dry_run: bool = False,
        echo: Callable[[str], None] = _noop,
    ) -> None:
        self.client = client
        self.manifest = manifest
        self.dry_run = dry_run
        self._echo = echo
        self.members = MembershipSynchronizer(client)
        self.report = ProvisionReport(manifest=manifest, dry_run=dry_run)

    def emit(self, message: str) -> None:
        logger.debug(message)
        self._echo(message)

    def run(self) -> ProvisionReport:
        """Run every step in dependency order and return the report.

        Raises:
            PreconditionError: If the team cannot be found or created; nothing
                else can be provisioned without it.
        """
        self.resolve_admin()
        team_id = self.ensure_team()
        self.ensure_bots(team_id)
        self.ensure_channels(team_id)
        self.sync_channel_membership()
        return self.report

    # ── Steps ────────────────────────────────────────────────────

    def resolve_admin(self) -> Optional[str]:
        try:
            me = self.client.get_me()
        except (ApiError, httpx.TransportError) as e:
            message = e.message if isinstance(e, ApiError) else str(e)
            self.emit(f"  Could not resolve admin user: {message}")
            return None
        self.report.admin_id = me.id
        self.emit(f"  Admin: @{me.username} ({me.id})")
        return me.id

    def ensure_team(self) -> Optional[str]:
        spec = self.manifest.team
        try:
            result = reconcile(self.client, TeamResource(spec), dry_run=self.dry_run)
        except ReconciliationError as e:
            raise PreconditionError(f"Cannot continue without team '{spec.name}': {e.message}") from e

        self.report.team = result
        if result.planned:
            self.emit(f"  Team '{spec.name}' would be created")
        elif result.created:
            self.emit(f"  Created team: {result.id}")
        else:
            self.emit(f"  Team already exists: {result.id}")
        return result.id

    def ensure_bots(self, team_id: Optional[str]) -> Dict[str, str]:
        for spec in self.manifest.bots:
            self.report.bots[spec.username] = self.ensure_bot(spec, team_id)
        return self.report.bot_ids

    def ensure_bot(self, spec: BotSpec, team_id: Optional[str]) -> BotReport:
        report = BotReport(spec=spec)
        self.emit(f"  Bot: @{spec.username}...")
        try:
            report.reconciled = reconcile(self.client, BotResource(spec), dry_run=self.dry_run)
        except ReconciliationError as e:
            report.error = e.message
            logger.warning("failed to create bot @%s: %s", spec.username, e.message)
            self.emit(f"    ERROR: Failed to create bot @{spec.username}: {e.message}")
            return report

        bot_id = report.reconciled.id
        if report.reconciled.planned:
            self.emit("    Would be created")
            return report
        self.emit(f"    {'Created' if report.reconciled.created else 'Already exists'}: {bot_id}")

        if self.dry_run:
            return report

        description = f"{self.manifest.team.display_name} bot token for @{spec.username}"
        report.token = provision_token(self.client, bot_id, description)
        if report.token.status is TokenStatus.MINTED:
            self.emit("    Token generated")
        elif report.token.status is TokenStatus.EXISTS_UNREADABLE:
            self.emit("    Token already exists (cannot be read back; revoke and regenerate in Mattermost if needed)")
        else:
            self.emit(f"    WARNING: Could not generate token for @{spec.username}: {report.token.detail}")

        # Team membership strictly before any channel membership for this bot.
        if team_id:
            report.team_membership = self.members.ensure_team_member(team_id, bot_id)
            if not report.team_membership.ok:
                self.emit(f"    ERROR: Could not add to team: {report.team_membership.error}")
            elif report.team_membership.joined:
                self.emit("    Added to team")
            else:
                self.emit("    Already a team member")
        return report

    def ensure_channels(self, team_id: Optional[str]) -> Dict[str, str]:
        for spec in self.manifest.channels:
            report = ChannelReport(spec=spec)
            self.report.channels[spec.name] = report
            if not team_id:
                # Team itself is only planned; nothing to look up yet.
                report.reconciled = Reconciled("channel", spec.name, None, created=False, planned=True)
                self.emit(f"  #{spec.name}: would be created")
                continue
            try:
                report.reconciled = reconcile(
                    self.client, ChannelResource(team_id, spec), dry_run=self.dry_run
                )
            except ReconciliationError as e:
                report.error = e.message
                logger.warning("failed to create channel #%s: %s", spec.name, e.message)
                self.emit(f"  ERROR: Failed to create #{spec.name}: {e.message}")
                continue
            if report.reconciled.planned:
                self.emit(f"  #{spec.name}: would be created")
            elif report.reconciled.created:
                self.emit(f"  #{spec.name}: created ({report.reconciled.id})")
            else:
                self.emit(f"  #{spec.name}: already exists ({report.reconciled.id})")
        return self.report.channel_ids

    def sync_channel_membership(self) -> None:
        if self.dry_run:
            return
        bot_ids = {
            name: bot_id
            for name, bot_id in self.report.bot_ids.items()
            if self._in_team(name)
        }
        results = self.members.sync_channels(self.report.channel_ids, bot_ids)
        for channel_name, memberships in results.items():
            report = self.report.channels[channel_name]
            report.memberships = memberships
            failed = report.failed_memberships
            if failed:
                self.emit(f"  #{channel_name}: {len(failed)} of {len(memberships)} bots could not be added")
            else:
                self.emit(f"  #{channel_name}: all bots added")

    def _in_team(self, username: str) -> bool:
        membership = self.report.bots[username].team_membership
        return membership is not None and membership.ok
