"""mmhub mcp-config — write config.local.json for the Mattermost MCP bridge."""

from __future__ import annotations

from typing import Optional

from rich.console import Console

from mmhub.core.bridge_config import bridge_timeout, resolve_bridge_config, write_bridge_config
from mmhub.core.errors import ConfigResolutionError
from mmhub.core.io import load_env_file
from mmhub.core.settings import DEFAULT_ENV_FILE, BridgeSettings
from mmhub_sdk import MattermostClient

console = Console()
err_console = Console(stderr=True)


def _make_client(url: str, token: str) -> MattermostClient:
    return MattermostClient(url, token=token, timeout=bridge_timeout())


def run(
    url: Optional[str] = None,
    team_name: Optional[str] = None,
    mcp_dir: Optional[str] = None,
    out: Optional[str] = None,
    env_file: str = DEFAULT_ENV_FILE,
    skip_build_check: bool = False,
) -> int:
    """Resolve the team id and write the bridge config.

    Returns:
        0 = written, 1 = lookup failed (nothing written).
    """
    if not load_env_file(env_file):
        err_console.print(
            f"NOTE: {env_file} not found; relying on existing environment variables.",
            markup=False, highlight=False,
        )

    settings = BridgeSettings.resolve(
        url=url, team_name=team_name, mcp_dir=mcp_dir, out=out, skip_build_check=skip_build_check,
    )
    console.print(f"Using token: {settings.token_source}", markup=False, highlight=False)
    console.print(f"Site URL:    {settings.url}", markup=False, highlight=False)
    console.print(f"Team:        {settings.team_name}", markup=False, highlight=False)
    settings.require_valid()

    console.print(f"Querying Mattermost for team '{settings.team_name}'...", markup=False, highlight=False)
    with _make_client(settings.url, settings.token) as mm:
        try:
            config = resolve_bridge_config(mm, settings.url, settings.token, settings.team_name)
        except ConfigResolutionError as e:
            err_console.print(f"ERROR: {e.message}", markup=False, highlight=False)
            if e.hint:
                err_console.print(f"  {e.hint}", markup=False, highlight=False)
            return 1

    console.print(f"[green]✓[/green] Team '{settings.team_name}' → ID: {config.team_id}")
    path = write_bridge_config(config, settings.out_path)
    console.print(f"[green]✓[/green] Written to {path}")

    console.print("\nNext steps:")
    console.print("  1. Restart Claude Code (or reload MCP servers)")
    console.print("  2. You should see mattermost_* tools available in your session")
    console.print("  3. Test: use mattermost_list_channels to verify connectivity")
    return 0
