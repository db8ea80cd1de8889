"""mmhub provision — idempotent team, bot, token and channel setup."""

from __future__ import annotations

from typing import Optional, Union

import httpx
from rich.console import Console
from rich.table import Table

from mmhub.core.manifest import load_manifest
from mmhub.core.provisioner import ProvisioningSession, ProvisionReport
from mmhub.core.secrets import mask_token
from mmhub.core.session import resolve_session
from mmhub.core.settings import ProvisionSettings
from mmhub.core.tokens import TokenStatus
from mmhub_sdk import MattermostClient

console = Console()
err_console = Console(stderr=True)

REQUEST_TIMEOUT = 30.0


def _make_client(url: str, timeout: Union[float, httpx.Timeout] = REQUEST_TIMEOUT) -> MattermostClient:
    return MattermostClient(url, timeout=timeout)


def _echo(message: str) -> None:
    console.print(message, markup=False, highlight=False)


def _step(number: int, title: str) -> None:
    console.print(f"\n[bold]=== Step {number}: {title} ===[/bold]")


def run(settings: ProvisionSettings, client: Optional[MattermostClient] = None) -> int:
    """Provision the workspace described by ``settings``.

    Returns:
        0 = everything converged, 2 = some resources failed (see summary).
    """
    settings.require_valid()
    manifest = load_manifest(settings.manifest).with_team_name(settings.team_name)

    with client or _make_client(settings.url) as mm:
        _step(1, f"Authenticating as {settings.admin}")
        token, source = resolve_session(mm, settings.admin, settings.password, settings.token)
        _echo(f"  Authenticated ({source}). Token: {mask_token(token)}")

        session = ProvisioningSession(mm, manifest, dry_run=settings.dry_run, echo=_echo)

        _step(2, "Resolving admin user ID")
        session.resolve_admin()

        _step(3, f"Team: {manifest.team.display_name}")
        team_id = session.ensure_team()

        _step(4, "Bot accounts")
        session.ensure_bots(team_id)

        _step(5, "Channels")
        session.ensure_channels(team_id)

        _step(6, "Channel membership")
        session.sync_channel_membership()

    render_summary(session.report, settings.url)
    return session.report.exit_code


def render_summary(report: ProvisionReport, url: str) -> None:
    """Print the summary table and the token export lines."""
    manifest = report.manifest
    title = "provisioning plan (dry run)" if report.dry_run else "provisioning complete"
    if not report.ok:
        title = "provisioning finished with errors"

    console.print()
    table = Table(title=f"{manifest.team.display_name} {title}", title_style="bold", border_style="blue")
    table.add_column("Resource", style="dim")
    table.add_column("Name")
    table.add_column("Status")
    table.add_column("ID")

    team = report.team
    table.add_row("team", manifest.team.name, _status(team), (team.id if team else None) or "-")
    for name, bot in report.bots.items():
        status = "[red]FAILED[/red]" if bot.error else _status(bot.reconciled)
        table.add_row("bot", f"@{name}", status, (bot.reconciled.id if bot.reconciled else None) or "-")
    for name, ch in report.channels.items():
        if ch.error:
            status = "[red]FAILED[/red]"
        elif ch.failed_memberships:
            status = f"[yellow]{len(ch.failed_memberships)} member(s) missing[/yellow]"
        else:
            status = _status(ch.reconciled)
        table.add_row("channel", f"#{name}", status, (ch.reconciled.id if ch.reconciled else None) or "-")
    console.print(table)
    console.print(f"URL: {url}", markup=False, highlight=False)

    if not report.dry_run:
        console.print("\nBot tokens (copy to .envrc.mattermost):\n")
        _echo("# ── Mattermost Bot Tokens ──")
        for spec in manifest.bots:
            bot = report.bots.get(spec.username)
            if bot is None or bot.token is None:
                value = "<not-generated>"
            else:
                value = bot.token.display()
            console.print(f"export {spec.env_var}={value}", markup=False, highlight=False, soft_wrap=True)
        if any(
            b.token is not None and b.token.status is TokenStatus.EXISTS_UNREADABLE
            for b in report.bots.values()
        ):
            console.print(
                "\n[dim]Existing tokens cannot be read back; use 'Revoke and regenerate' "
                "in the Mattermost System Console if you need the value.[/dim]"
            )

    if report.failures:
        err_console.print(f"\n[red bold]Failures ({len(report.failures)}):[/red bold]")
        for line in report.failures:
            err_console.print(f"  • {line}", markup=False, highlight=False)
        err_console.print("[dim]Re-run the same command after fixing the cause; existing resources are reused.[/dim]")
    elif not report.dry_run:
        console.print("\nNext steps:")
        console.print("  1. Copy the tokens above into .envrc.mattermost")
        console.print("  2. Run: direnv allow")
        console.print("  3. Run: mmhub mcp-config")


def _status(result) -> str:
    if result is None:
        return "[red]FAILED[/red]"
    if result.planned:
        return "[yellow]would create[/yellow]"
    if result.created:
        return "[green]created[/green]"
    return "exists"
