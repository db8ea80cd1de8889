"""Tests for provision and bridge settings resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from mmhub.core.errors import PreconditionError
from mmhub.core.settings import BridgeSettings, ProvisionSettings


class TestProvisionSettings:
    def test_defaults(self) -> None:
        s = ProvisionSettings.resolve(password="pw", env={})
        assert s.url == "http://localhost:8065"
        assert s.admin == "admin"
        assert s.team_name is None
        assert s.validate() == []

    def test_env_fills_gaps(self) -> None:
        env = {
            "MM_SITE_URL": "https://chat.example.com/",
            "MM_ADMIN_USERNAME": "root",
            "MM_ADMIN_PASSWORD": "pw",
            "MM_TEAM_NAME": "acme",
        }
        s = ProvisionSettings.resolve(env=env)
        assert s.url == "https://chat.example.com"
        assert s.admin == "root"
        assert s.password == "pw"
        assert s.team_name == "acme"

    def test_flags_beat_env(self) -> None:
        env = {"MM_SITE_URL": "http://env:8065", "MM_ADMIN_PASSWORD": "env-pw"}
        s = ProvisionSettings.resolve(url="http://flag:8065", password="flag-pw", env=env)
        assert s.url == "http://flag:8065"
        assert s.password == "flag-pw"

    def test_token_alone_is_enough(self) -> None:
        s = ProvisionSettings.resolve(env={"MM_ADMIN_TOKEN": "tok"})
        assert s.validate() == []

    def test_missing_password(self) -> None:
        s = ProvisionSettings.resolve(env={})
        with pytest.raises(PreconditionError, match="MM_ADMIN_PASSWORD"):
            s.require_valid()

    def test_bad_url(self) -> None:
        s = ProvisionSettings.resolve(url="localhost:8065", password="pw", env={})
        assert any("http://" in e for e in s.validate())


class TestBridgeSettings:
    def test_token_priority(self) -> None:
        env = {"MM_CLAUDE_TOKEN": "claude", "MM_ADMIN_TOKEN": "admin", "MM_TOKEN_SOKKA": "sokka"}
        s = BridgeSettings.resolve(env=env)
        assert s.token == "claude"
        assert s.token_source == "MM_CLAUDE_TOKEN"

    def test_fallback_is_labelled(self) -> None:
        s = BridgeSettings.resolve(env={"MM_TOKEN_SOKKA": "sokka"})
        assert s.token == "sokka"
        assert s.token_source == "MM_TOKEN_SOKKA (fallback)"

    def test_no_token(self) -> None:
        with pytest.raises(PreconditionError, match="MM_CLAUDE_TOKEN"):
            BridgeSettings.resolve(env={})

    def test_default_paths(self) -> None:
        s = BridgeSettings.resolve(env={"MM_ADMIN_TOKEN": "t"})
        assert s.team_name == "zeroclaw-hq"
        assert s.mcp_dir == Path("~/Github/mattermost-mcp").expanduser()
        assert s.out_path == s.mcp_dir / "config.local.json"

    def test_out_override(self, tmp_path) -> None:
        s = BridgeSettings.resolve(mcp_dir=str(tmp_path), out=str(tmp_path / "x.json"),
                                   env={"MM_ADMIN_TOKEN": "t"})
        assert s.out_path == tmp_path / "x.json"

    def test_build_check(self, tmp_path) -> None:
        s = BridgeSettings.resolve(mcp_dir=str(tmp_path), env={"MM_ADMIN_TOKEN": "t"})
        with pytest.raises(PreconditionError, match="npm run build"):
            s.require_valid()

        (tmp_path / "build").mkdir()
        (tmp_path / "build" / "index.js").write_text("", encoding="utf-8")
        s.require_valid()

    def test_skip_build_check(self, tmp_path) -> None:
        s = BridgeSettings.resolve(mcp_dir=str(tmp_path), skip_build_check=True,
                                   env={"MM_ADMIN_TOKEN": "t"})
        assert s.validate() == []
