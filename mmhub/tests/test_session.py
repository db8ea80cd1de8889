"""Tests for session resolution before provisioning."""

from __future__ import annotations

import pytest

from mmhub.commands import provision
from mmhub.core.errors import PreconditionError
from mmhub.core.session import resolve_session
from mmhub.core.settings import ProvisionSettings
from mmhub_sdk import AuthenticationError
from mmhub_sdk.testing import FakeMattermost


class TestResolveSession:
    def test_pre_issued_token_skips_login(self, fake) -> None:
        session_token = fake.issue_session()
        with fake.client() as mm:
            token, source = resolve_session(mm, "admin", fake.admin_password, session_token)
            assert mm.token == session_token
            assert mm.get_me().id == fake.admin_id
        assert source == "pre-issued token"
        assert fake.login_attempts == 0

    def test_login_attaches_token(self, fake) -> None:
        with fake.client() as mm:
            token, source = resolve_session(mm, "admin", fake.admin_password)
            assert mm.token == token
        assert source == "login as admin"
        assert token in fake.sessions

    def test_no_credentials(self, fake) -> None:
        with fake.client() as mm:
            with pytest.raises(PreconditionError, match="password required"):
                resolve_session(mm, "admin", None)
        assert fake.calls == []


class TestAuthFailureStopsEverything:
    def _settings(self, fake, password):
        return ProvisionSettings(url="http://testserver", admin="admin", password=password)

    def test_no_token_from_any_strategy(self) -> None:
        fake = FakeMattermost(login_mode="none")
        with pytest.raises(AuthenticationError):
            provision.run(self._settings(fake, fake.admin_password), client=fake.client())
        assert fake.calls
        assert all(path.endswith("/users/login") for _, path in fake.calls)

    def test_wrong_password(self) -> None:
        fake = FakeMattermost()
        with pytest.raises(AuthenticationError):
            provision.run(self._settings(fake, "wrong"), client=fake.client())
        assert fake.write_calls == []
        assert fake.teams == {}
