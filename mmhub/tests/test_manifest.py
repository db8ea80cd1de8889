"""Tests for the workspace manifest."""

from __future__ import annotations

import pytest

from mmhub.core.errors import ManifestError
from mmhub.core.manifest import (
    DEFAULT_BOTS,
    DEFAULT_CHANNELS,
    BotSpec,
    WorkspaceManifest,
    load_manifest,
)


class TestDefaults:
    def test_default_roster(self) -> None:
        manifest = load_manifest()
        assert manifest.team.name == "zeroclaw-hq"
        assert manifest.team.display_name == "ZeroClaw HQ"
        assert manifest.team.type == "I"
        assert [b.username for b in manifest.bots] == ["sokka", "toph", "azula", "iroh", "katara", "aang"]
        assert [c.name for c in manifest.channels] == [
            "general", "alerts", "standup", "decisions", "zc-general", "zc-ops",
        ]
        assert manifest.validate() == []

    def test_defaults_are_not_shared(self) -> None:
        a = WorkspaceManifest()
        a.bots.pop()
        assert len(WorkspaceManifest().bots) == len(DEFAULT_BOTS)

    def test_env_var_names(self) -> None:
        assert BotSpec("sokka", "Sokka").env_var == "MM_TOKEN_SOKKA"
        assert BotSpec("ops-bot.2", "Ops").env_var == "MM_TOKEN_OPS_BOT_2"

    def test_with_team_name(self) -> None:
        manifest = WorkspaceManifest().with_team_name("acme")
        assert manifest.team.name == "acme"
        assert manifest.team.display_name == "ZeroClaw HQ"
        assert WorkspaceManifest().with_team_name(None).team.name == "zeroclaw-hq"


class TestValidate:
    def test_duplicate_bot(self) -> None:
        manifest = WorkspaceManifest(bots=[BotSpec("a", "A"), BotSpec("a", "A2")])
        assert any("duplicate bot" in e for e in manifest.validate())

    def test_bad_channel_type(self) -> None:
        manifest = WorkspaceManifest.from_dict({"channels": [{"name": "x", "type": "D"}]})
        assert any("channels[0].type" in e for e in manifest.validate())

    def test_missing_team_name(self) -> None:
        manifest = WorkspaceManifest.from_dict({"team": {"display_name": "Nameless"}})
        assert "team.name is required" in manifest.validate()


class TestLoad:
    def test_partial_yaml_keeps_other_defaults(self, tmp_path) -> None:
        path = tmp_path / "workspace.yaml"
        path.write_text(
            "team:\n"
            "  name: acme\n"
            "  display_name: Acme\n"
            "  type: O\n"
            "bots:\n"
            "  - username: scout\n"
            "    description: Recon\n",
            encoding="utf-8",
        )
        manifest = load_manifest(path)
        assert manifest.team.name == "acme"
        assert manifest.team.type == "O"
        assert [b.username for b in manifest.bots] == ["scout"]
        assert manifest.bots[0].display_name == "scout"
        assert len(manifest.channels) == len(DEFAULT_CHANNELS)

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(ManifestError, match="not found"):
            load_manifest(tmp_path / "nope.yaml")

    def test_unparsable(self, tmp_path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("team: [unclosed\n", encoding="utf-8")
        with pytest.raises(ManifestError, match="Cannot parse"):
            load_manifest(path)

    def test_not_a_mapping(self, tmp_path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ManifestError, match="mapping"):
            load_manifest(path)

    def test_malformed_entry(self, tmp_path) -> None:
        path = tmp_path / "entry.yaml"
        path.write_text("bots:\n  - just-a-string\n", encoding="utf-8")
        with pytest.raises(ManifestError, match="malformed"):
            load_manifest(path)

    def test_invalid_manifest_lists_errors(self, tmp_path) -> None:
        path = tmp_path / "dupes.yaml"
        path.write_text(
            "channels:\n  - {name: ops}\n  - {name: ops}\n", encoding="utf-8"
        )
        with pytest.raises(ManifestError, match="duplicate channel name 'ops'"):
            load_manifest(path)
