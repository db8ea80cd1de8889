"""Shared test fixtures for the Mattermost SDK tests."""

from __future__ import annotations

import pytest

from mmhub_sdk.testing import FakeMattermost


@pytest.fixture
def fake():
    return FakeMattermost()
