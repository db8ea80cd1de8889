"""Workspace manifest: the team, bot roster and channels to provision.

The built-in roster is the ZeroClaw HQ workspace. A YAML manifest can replace
any of its sections::

    team: {name: zeroclaw-hq, display_name: ZeroClaw HQ, type: I}
    bots:
      - {username: sokka, display_name: Sokka, description: PM Bot}
    channels:
      - {name: general, display_name: General, purpose: Open discussion, type: O}
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from mmhub.core.errors import ManifestError
from mmhub.core.io import read_yaml

TEAM_TYPES = ("O", "I")
CHANNEL_TYPES = ("O", "P")


@dataclass(frozen=True)
class TeamSpec:
    """Team to ensure. ``type``: O = open, I = invite only."""
    name: str
    display_name: str
    type: str = "I"


@dataclass(frozen=True)
class BotSpec:
    """Bot account to ensure, keyed by username."""
    username: str
    display_name: str
    description: str = ""

    @property
    def env_var(self) -> str:
        """Name of the export line printed for this bot's token."""
        return "MM_TOKEN_" + self.username.upper().replace("-", "_").replace(".", "_")


@dataclass(frozen=True)
class ChannelSpec:
    """Channel to ensure inside the team. ``type``: O = public, P = private."""
    name: str
    display_name: str
    purpose: str = ""
    type: str = "O"


DEFAULT_TEAM = TeamSpec(name="zeroclaw-hq", display_name="ZeroClaw HQ", type="I")

DEFAULT_BOTS = (
    BotSpec("sokka", "Sokka",
            "PM Bot — Linear, project status, backlog, standups. Strategic thinker with sarcastic humor."),
    BotSpec("toph", "Toph",
            "DevOps Bot — Deployments, CI/CD, Docker, infrastructure. Blunt and direct."),
    BotSpec("azula", "Azula",
            "Security Bot — Code review, vulnerability scanning, audit. Precise and methodical."),
    BotSpec("iroh", "Iroh",
            "Creative Bot — Brainstorming, architecture ideation. Wise and philosophical."),
    BotSpec("katara", "Katara",
            "Dev Bot — Code, debugging, PR review, fixes. Detail-oriented, high standards."),
    BotSpec("aang", "Aang",
            "Coordinator Bot — Routes work, big picture, balance. Bridges all team members."),
)

DEFAULT_CHANNELS = (
    ChannelSpec("general", "General", "Open discussion for the whole team"),
    ChannelSpec("alerts", "Alerts", "Webhook-fed alerts from GitHub, Vercel, Supabase, Upstash"),
    ChannelSpec("standup", "Standup", "Daily coordination and async standups"),
    ChannelSpec("decisions", "Decisions", "Important decisions logged here for reference"),
    ChannelSpec("zc-general", "ZC General", "zeroclaw repo — general discussion"),
    ChannelSpec("zc-ops", "ZC Ops", "zeroclaw repo — operations, deployments, infra"),
)


@dataclass
class WorkspaceManifest:
    """Everything one provisioning run should converge the server to."""
    team: TeamSpec = DEFAULT_TEAM
    bots: List[BotSpec] = field(default_factory=lambda: list(DEFAULT_BOTS))
    channels: List[ChannelSpec] = field(default_factory=lambda: list(DEFAULT_CHANNELS))

    def validate(self) -> List[str]:
        """Return list of validation errors."""
        errors: List[str] = []

        if not self.team.name:
            errors.append("team.name is required")
        if self.team.type not in TEAM_TYPES:
            errors.append(f"team.type must be one of {TEAM_TYPES}, got '{self.team.type}'")

        seen_bots = set()
        for i, bot in enumerate(self.bots):
            if not bot.username:
                errors.append(f"bots[{i}].username is required")
            elif bot.username in seen_bots:
                errors.append(f"duplicate bot username '{bot.username}'")
            seen_bots.add(bot.username)

        seen_channels = set()
        for i, ch in enumerate(self.channels):
            if not ch.name:
                errors.append(f"channels[{i}].name is required")
            elif ch.name in seen_channels:
                errors.append(f"duplicate channel name '{ch.name}'")
            seen_channels.add(ch.name)
            if ch.type not in CHANNEL_TYPES:
                errors.append(
                    f"channels[{i}].type must be one of {CHANNEL_TYPES}, got '{ch.type}'"
                )

        return errors

    def with_team_name(self, name: Optional[str]) -> "WorkspaceManifest":
        """Copy with the team slug overridden (display name kept)."""
        if not name:
            return self
        return WorkspaceManifest(
            team=replace(self.team, name=name),
            bots=list(self.bots),
            channels=list(self.channels),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkspaceManifest":
        """Build a manifest from parsed YAML; missing sections use the defaults."""
        if not isinstance(data, dict):
            raise ManifestError("manifest must be a mapping with team/bots/channels keys")

        manifest = cls()
        try:
            if "team" in data:
                team = data["team"] or {}
                manifest.team = TeamSpec(
                    name=str(team.get("name", "")),
                    display_name=str(team.get("display_name") or team.get("name", "")),
                    type=str(team.get("type", "I")),
                )
            if "bots" in data:
                manifest.bots = [
                    BotSpec(
                        username=str(b.get("username", "")),
                        display_name=str(b.get("display_name") or b.get("username", "")),
                        description=str(b.get("description", "")),
                    )
                    for b in (data["bots"] or [])
                ]
            if "channels" in data:
                manifest.channels = [
                    ChannelSpec(
                        name=str(c.get("name", "")),
                        display_name=str(c.get("display_name") or c.get("name", "")),
                        purpose=str(c.get("purpose", "")),
                        type=str(c.get("type", "O")),
                    )
                    for c in (data["channels"] or [])
                ]
        except AttributeError as e:
            raise ManifestError(f"malformed manifest entry: {e}") from e
        return manifest


def load_manifest(path: Optional[Union[str, Path]] = None) -> WorkspaceManifest:
    """Load and validate a manifest; ``None`` returns the built-in roster.

    Raises:
        ManifestError: If the file is missing, unparsable or invalid.
    """
    if path is None:
        return WorkspaceManifest()

    p = Path(path)
    if not p.is_file():
        raise ManifestError(f"Manifest not found: {p}")
    try:
        data = read_yaml(p)
    except yaml.YAMLError as e:
        raise ManifestError(f"Cannot parse manifest {p}: {e}") from e

    manifest = WorkspaceManifest.from_dict(data)
    errors = manifest.validate()
    if errors:
        raise ManifestError(f"Invalid manifest {p}:\n  - " + "\n  - ".join(errors))
    return manifest
