"""Settings for the provision and mcp-config commands.

Precedence: CLI flag > environment variable > manifest > built-in default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Optional

from mmhub.core.bridge_config import TOKEN_ENV_PRIORITY
from mmhub.core.errors import PreconditionError
from mmhub_sdk.auth import token_from_env

DEFAULT_SITE_URL = "http://localhost:8065"
DEFAULT_ADMIN = "admin"
DEFAULT_TEAM_NAME = "zeroclaw-hq"
DEFAULT_MCP_DIR = "~/Github/mattermost-mcp"
DEFAULT_ENV_FILE = ".envrc.mattermost"
BRIDGE_CONFIG_NAME = "config.local.json"


def _pick(*values: Optional[str]) -> Optional[str]:
    for v in values:
        if v is not None and str(v).strip():
            return str(v).strip()
    return None


def _check_url(url: str) -> List[str]:
    if not url.startswith(("http://", "https://")):
        return [f"url must start with http:// or https://, got '{url}'"]
    return []


@dataclass
class ProvisionSettings:
    """Inputs of ``mmhub provision``."""
    url: str = DEFAULT_SITE_URL
    admin: str = DEFAULT_ADMIN
    password: Optional[str] = None
    token: Optional[str] = None
    team_name: Optional[str] = None
    manifest: Optional[str] = None
    dry_run: bool = False

    @classmethod
    def resolve(
        cls,
        url: Optional[str] = None,
        admin: Optional[str] = None,
        password: Optional[str] = None,
        token: Optional[str] = None,
        team_name: Optional[str] = None,
        manifest: Optional[str] = None,
        dry_run: bool = False,
        env: Optional[Mapping[str, str]] = None,
    ) -> "ProvisionSettings":
        env = os.environ if env is None else env
        return cls(
            url=(_pick(url, env.get("MM_SITE_URL")) or DEFAULT_SITE_URL).rstrip("/"),
            admin=_pick(admin, env.get("MM_ADMIN_USERNAME")) or DEFAULT_ADMIN,
            password=_pick(password, env.get("MM_ADMIN_PASSWORD")),
            token=_pick(token, env.get("MM_ADMIN_TOKEN")),
            team_name=_pick(team_name, env.get("MM_TEAM_NAME")),
            manifest=manifest,
            dry_run=dry_run,
        )

    def validate(self) -> List[str]:
        """Return list of validation errors."""
        errors = _check_url(self.url)
        if not self.password and not self.token:
            errors.append(
                "admin password required (--password or MM_ADMIN_PASSWORD env), "
                "or a pre-issued token (--token or MM_ADMIN_TOKEN env)"
            )
        return errors

    def require_valid(self) -> None:
        errors = self.validate()
        if errors:
            raise PreconditionError("; ".join(errors))


@dataclass
class BridgeSettings:
    """Inputs of ``mmhub mcp-config``."""
    url: str
    token: str
    token_source: str
    team_name: str
    mcp_dir: Path
    out_path: Path
    skip_build_check: bool = False

    @classmethod
    def resolve(
        cls,
        url: Optional[str] = None,
        team_name: Optional[str] = None,
        mcp_dir: Optional[str] = None,
        out: Optional[str] = None,
        skip_build_check: bool = False,
        env: Optional[Mapping[str, str]] = None,
    ) -> "BridgeSettings":
        """Resolve from flags and environment.

        Token priority: MM_CLAUDE_TOKEN > MM_ADMIN_TOKEN > MM_TOKEN_SOKKA.

        Raises:
            PreconditionError: If no token variable is set.
        """
        env = os.environ if env is None else env
        token, source = token_from_env(env, TOKEN_ENV_PRIORITY)
        if not token:
            raise PreconditionError(
                "No Mattermost token found. Set MM_CLAUDE_TOKEN (preferred) or "
                f"MM_ADMIN_TOKEN in {DEFAULT_ENV_FILE}"
            )
        if source != TOKEN_ENV_PRIORITY[0]:
            source = f"{source} (fallback)"

        directory = Path(mcp_dir or DEFAULT_MCP_DIR).expanduser()
        return cls(
            url=(_pick(url, env.get("MM_SITE_URL")) or DEFAULT_SITE_URL).rstrip("/"),
            token=token,
            token_source=source,
            team_name=_pick(team_name, env.get("MM_TEAM_NAME")) or DEFAULT_TEAM_NAME,
            mcp_dir=directory,
            out_path=Path(out).expanduser() if out else directory / BRIDGE_CONFIG_NAME,
            skip_build_check=skip_build_check,
        )

    @property
    def build_entrypoint(self) -> Path:
        return self.mcp_dir / "build" / "index.js"

    def validate(self) -> List[str]:
        """Return list of validation errors."""
        errors = _check_url(self.url)
        if not self.skip_build_check and not self.build_entrypoint.is_file():
            errors.append(
                f"MCP server not built at {self.build_entrypoint}\n"
                f"  Run: cd '{self.mcp_dir}' && npm install && npm run build"
            )
        return errors

    def require_valid(self) -> None:
        errors = self.validate()
        if errors:
            raise PreconditionError("; ".join(errors))
