"""mmhub CLI — Typer app with all subcommands."""

from __future__ import annotations

import logging
import sys
import traceback
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from mmhub import __version__
from mmhub.core.provisioner import EXIT_FATAL
from mmhub.core.secrets import redact_text

console = Console(stderr=True)

app = typer.Typer(
    name="mmhub",
    help=(
        "mmhub — idempotent Mattermost workspace bootstrap.\n\n"
        "Creates the team, bot accounts, access tokens and channels, and writes the "
        "MCP bridge config. Safe to re-run: existing resources are reused.\n"
        "Exit codes: 0=OK, 1=FATAL, 2=PARTIAL (some resources failed)."
    ),
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    epilog=(
        "Quick start:\n"
        "  mmhub provision --url http://localhost:8065 --admin admin --password ...\n"
        "  mmhub mcp-config --team-name zeroclaw-hq\n"
        "  mmhub version\n\n"
        f"mmhub v{__version__}"
    ),
)


def _version_callback(value: bool) -> None:
    if value:
        from rich.panel import Panel
        c = Console()
        c.print(Panel(f"[bold]mmhub[/bold] v{__version__}", border_style="blue"))
        raise typer.Exit()


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=level,
        stream=sys.stderr,
    )


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version and exit.",
        callback=_version_callback, is_eager=True,
    ),
) -> None:
    """mmhub — idempotent Mattermost workspace bootstrap."""
    pass


# ── provision ────────────────────────────────────────────────────

@app.command()
def provision(
    url: Optional[str] = typer.Option(
        None, "--url", help="Mattermost site URL (env: MM_SITE_URL, default http://localhost:8065)."
    ),
    admin: Optional[str] = typer.Option(
        None, "--admin", help="Admin login id (env: MM_ADMIN_USERNAME, default admin)."
    ),
    password: Optional[str] = typer.Option(
        None, "--password", help="Admin password (env: MM_ADMIN_PASSWORD)."
    ),
    token: Optional[str] = typer.Option(
        None, "--token", help="Pre-issued admin token, skips login (env: MM_ADMIN_TOKEN)."
    ),
    team_name: Optional[str] = typer.Option(
        None, "--team-name", help="Override the team slug (env: MM_TEAM_NAME)."
    ),
    manifest: Optional[str] = typer.Option(
        None, "--manifest", "-m", help="YAML manifest with team/bots/channels."
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Look resources up but create nothing."
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Show detailed output."),
) -> None:
    """Create or reuse the team, bots, tokens, channels and memberships.

    Exit codes: 0=all resources converged, 1=fatal error, 2=some resources failed.

    Example:
      mmhub provision --password secret
      mmhub provision --manifest workspace.yaml --dry-run
    """
    _run_safe(
        lambda: _provision_impl(url, admin, password, token, team_name, manifest, dry_run),
        verbose=verbose,
    )


def _provision_impl(
    url: Optional[str], admin: Optional[str], password: Optional[str], token: Optional[str],
    team_name: Optional[str], manifest: Optional[str], dry_run: bool,
) -> None:
    from mmhub.commands.provision import run
    from mmhub.core.settings import ProvisionSettings

    settings = ProvisionSettings.resolve(
        url=url, admin=admin, password=password, token=token,
        team_name=team_name, manifest=manifest, dry_run=dry_run,
    )
    exit_code = run(settings)
    if exit_code != 0:
        raise SystemExit(exit_code)


# ── mcp-config ───────────────────────────────────────────────────

@app.command(name="mcp-config")
def mcp_config(
    url: Optional[str] = typer.Option(
        None, "--url", help="Mattermost site URL (env: MM_SITE_URL, default http://localhost:8065)."
    ),
    team_name: Optional[str] = typer.Option(
        None, "--team-name", help="Team to resolve (env: MM_TEAM_NAME, default zeroclaw-hq)."
    ),
    mcp_dir: Optional[str] = typer.Option(
        None, "--mcp-dir", help="Checkout of the MCP server (default ~/Github/mattermost-mcp)."
    ),
    out: Optional[str] = typer.Option(
        None, "--out", "-o", help="Output path (default <mcp-dir>/config.local.json)."
    ),
    env_file: str = typer.Option(
        ".envrc.mattermost", "--env-file", help="Env file with MM_* tokens, loaded if present."
    ),
    skip_build_check: bool = typer.Option(
        False, "--skip-build-check", help="Do not require <mcp-dir>/build/index.js."
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Show detailed output."),
) -> None:
    """Resolve the team id and write config.local.json for the MCP bridge.

    Token priority: MM_CLAUDE_TOKEN > MM_ADMIN_TOKEN > MM_TOKEN_SOKKA.

    Example:
      mmhub mcp-config
      mmhub mcp-config --team-name my-team --out ./config.local.json --skip-build-check
    """
    _run_safe(
        lambda: _mcp_config_impl(url, team_name, mcp_dir, out, env_file, skip_build_check),
        verbose=verbose,
    )


def _mcp_config_impl(
    url: Optional[str], team_name: Optional[str], mcp_dir: Optional[str],
    out: Optional[str], env_file: str, skip_build_check: bool,
) -> None:
    from mmhub.commands.mcp_config import run

    exit_code = run(
        url=url, team_name=team_name, mcp_dir=mcp_dir, out=out,
        env_file=env_file, skip_build_check=skip_build_check,
    )
    if exit_code != 0:
        raise SystemExit(exit_code)


# ── version ──────────────────────────────────────────────────────

@app.command()
def version() -> None:
    """Show mmhub version, Python version, and platform."""
    import platform

    from rich.table import Table

    from mmhub_sdk import __version__ as sdk_version

    table = Table(show_header=False, border_style="blue", title="mmhub", title_style="bold")
    table.add_column("Key", style="dim")
    table.add_column("Value")

    table.add_row("Version", __version__)
    table.add_row("SDK", sdk_version)
    table.add_row("Python", platform.python_version())
    table.add_row("Platform", f"{platform.system()} {platform.machine()}")

    c = Console()
    c.print(table)


# ── Error handling ───────────────────────────────────────────────

def _run_safe(fn, verbose: bool = False) -> None:
    """Run a function with clean error handling."""
    _setup_logging(verbose)
    try:
        fn()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        raise SystemExit(130)
    except Exception as e:
        console.print(f"\n[red bold]Error:[/red bold] {escape(redact_text(str(e)))}", highlight=False)
        if verbose:
            console.print(traceback.format_exc(), markup=False)
        else:
            console.print("[dim]Run with --verbose for full traceback.[/dim]")
        raise SystemExit(EXIT_FATAL)
