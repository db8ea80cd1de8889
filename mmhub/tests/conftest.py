"""Shared test fixtures for mmhub tests."""

from __future__ import annotations

import pytest

from mmhub.core.manifest import WorkspaceManifest
from mmhub_sdk.testing import FakeMattermost


@pytest.fixture
def fake():
    """Fresh fake Mattermost server per test."""
    return FakeMattermost()


@pytest.fixture
def mm(fake):
    """Client already holding a valid admin session on ``fake``."""
    client = fake.client(token=fake.issue_session())
    yield client
    client.close()


@pytest.fixture
def manifest():
    return WorkspaceManifest()
