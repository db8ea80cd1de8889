"""Bridge config for the Mattermost MCP server (``config.local.json``).

Resolves the team id by name and writes the JSON file the bridge reads on
startup. Nothing is written unless the lookup succeeds and the response
passes validation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union

import httpx

from mmhub.core.errors import ConfigResolutionError
from mmhub.core.io import write_json_atomic
from mmhub_sdk import (
    ApiError,
    AuthError,
    ErrorEnvelope,
    ForbiddenError,
    InvalidResponseError,
    MattermostClient,
    NotFoundError,
)
from mmhub_sdk.client import API_PREFIX

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT = 5.0
# httpx bounds each read, write and pool wait separately; there is no whole-request limit.
PHASE_TIMEOUT = 15.0
MIN_TEAM_ID_LENGTH = 10

TOKEN_ENV_PRIORITY = ("MM_CLAUDE_TOKEN", "MM_ADMIN_TOKEN", "MM_TOKEN_SOKKA")


def bridge_timeout() -> httpx.Timeout:
    return httpx.Timeout(PHASE_TIMEOUT, connect=CONNECT_TIMEOUT)


@dataclass
class MonitoringDefaults:
    enabled: bool = False
    schedule: str = "*/15 * * * *"
    channels: List[str] = field(default_factory=lambda: ["town-square"])
    topics: List[str] = field(default_factory=list)
    message_limit: int = 30

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "schedule": self.schedule,
            "channels": list(self.channels),
            "topics": list(self.topics),
            "messageLimit": self.message_limit,
        }


@dataclass
class BridgeConfig:
    base_url: str
    token: str
    team_id: str
    monitoring: MonitoringDefaults = field(default_factory=MonitoringDefaults)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mattermostUrl": f"{self.base_url.rstrip('/')}{API_PREFIX}",
            "token": self.token,
            "teamId": self.team_id,
            "monitoring": self.monitoring.to_dict(),
        }


def resolve_team_id(client: MattermostClient, team_name: str) -> str:
    """Look up ``team_name`` and return its id.

    Raises:
        ConfigResolutionError: Classified by what went wrong, see ``reason``.
    """
    try:
        team = client.get_team_by_name(team_name)
    except httpx.TimeoutException as e:
        raise ConfigResolutionError(
            "timeout", f"Timed out querying {client.base_url} for team '{team_name}': {e}",
            retryable=True,
        ) from e
    except httpx.TransportError as e:
        raise ConfigResolutionError(
            "connection", f"Could not connect to {client.base_url}: {e}", retryable=True,
        ) from e
    except (AuthError, ForbiddenError) as e:
        raise ConfigResolutionError(
            "credential",
            f"Mattermost returned HTTP {e.status_code} for team '{team_name}': {e.message}",
            status_code=e.status_code,
        ) from e
    except NotFoundError as e:
        raise ConfigResolutionError(
            "not_found",
            f"Mattermost returned HTTP 404 for team '{team_name}': team not found",
            status_code=404,
        ) from e
    except ErrorEnvelope as e:
        raise ConfigResolutionError(
            "invalid_response", f"API returned error: {e.message}", status_code=200,
        ) from e
    except InvalidResponseError as e:
        raise ConfigResolutionError(
            "invalid_response", f"Mattermost returned an unusable response: {e.message}",
            status_code=e.status_code,
        ) from e
    except ApiError as e:
        raise ConfigResolutionError(
            "server",
            f"Mattermost returned HTTP {e.status_code} for team '{team_name}': {e.message}",
            status_code=e.status_code,
        ) from e

    if len(team.id) < MIN_TEAM_ID_LENGTH:
        raise ConfigResolutionError(
            "invalid_response", "response contains no valid team id", status_code=200,
        )
    return team.id


def resolve_bridge_config(
    client: MattermostClient, site_url: str, token: str, team_name: str
) -> BridgeConfig:
    """Build the bridge config for ``team_name``; the client must carry ``token``."""
    team_id = resolve_team_id(client, team_name)
    logger.info("team '%s' resolved to %s", team_name, team_id)
    return BridgeConfig(base_url=site_url, token=token, team_id=team_id)


def write_bridge_config(config: BridgeConfig, path: Union[str, Path]) -> Path:
    """Atomically write ``config`` as JSON to ``path``.

    Values go through ``json.dump`` only; nothing is spliced into code or a
    shell command, so ids and tokens cannot inject anything.
    """
    try:
        return write_json_atomic(path, config.to_dict())
    except OSError as e:
        raise ConfigResolutionError("write", f"Could not write config to {path}: {e}") from e
