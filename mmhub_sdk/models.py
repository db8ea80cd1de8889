"""Pydantic response models for the Mattermost SDK.

Only the fields the provisioning tools read are declared; everything else the
server sends is ignored.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


# ── Users / Bots ─────────────────────────────────────────────────

class User(BaseModel):
    id: str
    username: str
    email: Optional[str] = None
    is_bot: bool = False


class Bot(BaseModel):
    user_id: str
    username: str
    display_name: str = ""
    description: str = ""
    owner_id: Optional[str] = None


# ── Access tokens ────────────────────────────────────────────────

class UserAccessToken(BaseModel):
    id: str
    user_id: str
    description: str = ""
    # Only present in the create response; never re-disclosed afterwards.
    token: Optional[str] = None
    is_active: bool = True


# ── Teams / Channels ─────────────────────────────────────────────

class Team(BaseModel):
    id: str
    name: str
    display_name: str = ""
    type: str = "O"


class Channel(BaseModel):
    id: str
    team_id: str
    name: str
    display_name: str = ""
    purpose: str = ""
    type: str = "O"


# ── Membership ───────────────────────────────────────────────────

class TeamMember(BaseModel):
    team_id: str
    user_id: str


class ChannelMember(BaseModel):
    channel_id: str
    user_id: str
