"""Tests for bridge config resolution and writing."""

from __future__ import annotations

import json
import os

import httpx
import pytest

from mmhub.core.bridge_config import (
    CONNECT_TIMEOUT,
    PHASE_TIMEOUT,
    BridgeConfig,
    MonitoringDefaults,
    bridge_timeout,
    resolve_bridge_config,
    resolve_team_id,
    write_bridge_config,
)
from mmhub.core.errors import ConfigResolutionError
from mmhub_sdk import MattermostClient
from mmhub_sdk.testing import envelope


def _raising_client(exc_cls):
    def handler(request):
        raise exc_cls("boom", request=request)

    http = httpx.Client(base_url="http://mm.invalid", transport=httpx.MockTransport(handler))
    return MattermostClient("http://mm.invalid", token="t", http_client=http)


class TestResolveTeamId:
    def test_found(self, fake, mm) -> None:
        team = fake.add_team("zeroclaw-hq")
        assert resolve_team_id(mm, "zeroclaw-hq") == team["id"]

    def test_not_found(self, mm) -> None:
        with pytest.raises(ConfigResolutionError) as exc_info:
            resolve_team_id(mm, "nope")
        err = exc_info.value
        assert err.reason == "not_found"
        assert err.status_code == 404
        assert "--team-name" in err.hint
        assert err.retryable is False

    def test_bad_token(self, fake) -> None:
        fake.add_team("zeroclaw-hq")
        with fake.client(token="revoked") as mm:
            with pytest.raises(ConfigResolutionError) as exc_info:
                resolve_team_id(mm, "zeroclaw-hq")
        assert exc_info.value.reason == "credential"
        assert exc_info.value.status_code == 401

    def test_forbidden(self, fake, mm) -> None:
        fake.team_lookup_response = (403, envelope(403, "api.context.permissions.app_error", "no"))
        with pytest.raises(ConfigResolutionError) as exc_info:
            resolve_team_id(mm, "zeroclaw-hq")
        assert exc_info.value.reason == "credential"

    def test_server_error(self, fake, mm) -> None:
        fake.team_lookup_response = (500, envelope(500, "app.team.get.app_error", "db down"))
        with pytest.raises(ConfigResolutionError) as exc_info:
            resolve_team_id(mm, "zeroclaw-hq")
        assert exc_info.value.reason == "server"
        assert exc_info.value.status_code == 500

    def test_envelope_with_200(self, fake, mm) -> None:
        fake.team_lookup_response = (200, envelope(404, "app.team.get_by_name.missing.app_error", "gone"))
        with pytest.raises(ConfigResolutionError) as exc_info:
            resolve_team_id(mm, "zeroclaw-hq")
        assert exc_info.value.reason == "invalid_response"
        assert "gone" in exc_info.value.message

    def test_short_id(self, fake, mm) -> None:
        fake.team_lookup_response = (200, {"id": "abc", "name": "zeroclaw-hq"})
        with pytest.raises(ConfigResolutionError, match="no valid team id") as exc_info:
            resolve_team_id(mm, "zeroclaw-hq")
        assert exc_info.value.reason == "invalid_response"

    def test_non_json(self, fake, mm) -> None:
        fake.team_lookup_response = (200, "<html>login</html>")
        with pytest.raises(ConfigResolutionError) as exc_info:
            resolve_team_id(mm, "zeroclaw-hq")
        assert exc_info.value.reason == "invalid_response"

    def test_timeout_is_retryable(self) -> None:
        with _raising_client(httpx.ConnectTimeout) as mm:
            with pytest.raises(ConfigResolutionError) as exc_info:
                resolve_team_id(mm, "zeroclaw-hq")
        assert exc_info.value.reason == "timeout"
        assert exc_info.value.retryable is True

    def test_connection_refused_is_retryable(self) -> None:
        with _raising_client(httpx.ConnectError) as mm:
            with pytest.raises(ConfigResolutionError) as exc_info:
                resolve_team_id(mm, "zeroclaw-hq")
        assert exc_info.value.reason == "connection"
        assert exc_info.value.retryable is True


class TestBridgeConfig:
    def test_shape(self) -> None:
        config = BridgeConfig("http://localhost:8065/", "tok", "abcdefghijklmnopqrstuvwxyz")
        assert config.to_dict() == {
            "mattermostUrl": "http://localhost:8065/api/v4",
            "token": "tok",
            "teamId": "abcdefghijklmnopqrstuvwxyz",
            "monitoring": {
                "enabled": False,
                "schedule": "*/15 * * * *",
                "channels": ["town-square"],
                "topics": [],
                "messageLimit": 30,
            },
        }

    def test_monitoring_defaults_not_shared(self) -> None:
        a = MonitoringDefaults()
        a.channels.append("alerts")
        assert MonitoringDefaults().channels == ["town-square"]

    def test_timeouts_apply_per_phase(self) -> None:
        timeout = bridge_timeout()
        assert timeout.connect == CONNECT_TIMEOUT == 5.0
        assert timeout.read == timeout.write == timeout.pool == PHASE_TIMEOUT == 15.0

    def test_resolve(self, fake, mm) -> None:
        team = fake.add_team("zeroclaw-hq")
        config = resolve_bridge_config(mm, "http://localhost:8065", "tok", "zeroclaw-hq")
        assert config.team_id == team["id"]
        assert config.token == "tok"


class TestWrite:
    def test_writes_json(self, tmp_path) -> None:
        path = tmp_path / "mcp" / "config.local.json"
        config = BridgeConfig("http://localhost:8065", 'tok"with\'quotes', "abcdefghijklmnopqrstuvwxyz")

        written = write_bridge_config(config, path)

        assert written == path
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["token"] == 'tok"with\'quotes'
        assert data["teamId"] == "abcdefghijklmnopqrstuvwxyz"
        assert os.listdir(path.parent) == ["config.local.json"]

    def test_overwrites_existing(self, tmp_path) -> None:
        path = tmp_path / "config.local.json"
        path.write_text("{}", encoding="utf-8")
        write_bridge_config(BridgeConfig("http://x", "t", "abcdefghijklmnopqrstuvwxyz"), path)
        assert json.loads(path.read_text(encoding="utf-8"))["mattermostUrl"] == "http://x/api/v4"

    def test_unwritable_location(self, tmp_path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("", encoding="utf-8")
        with pytest.raises(ConfigResolutionError) as exc_info:
            write_bridge_config(BridgeConfig("http://x", "t", "abcdefghijklmnopqrstuvwxyz"),
                                blocker / "config.local.json")
        assert exc_info.value.reason == "write"
