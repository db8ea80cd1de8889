"""Repo-wide test fixtures.

Snapshots and restores the MM_* environment variables between tests; the
env-file loader writes straight into os.environ.
"""

from __future__ import annotations

import os

import pytest

_SENSITIVE_ENV_VARS = [
    "MM_SITE_URL",
    "MM_ADMIN_USERNAME",
    "MM_ADMIN_PASSWORD",
    "MM_ADMIN_TOKEN",
    "MM_TEAM_NAME",
    "MM_CLAUDE_TOKEN",
    "MM_TOKEN_SOKKA",
]


@pytest.fixture(autouse=True)
def _restore_env():
    """Snapshot sensitive env vars before each test and restore after."""
    snapshot = {}
    for var in _SENSITIVE_ENV_VARS:
        val = os.environ.get(var)
        if val is not None:
            snapshot[var] = val

    yield

    # Restore: remove any that were added, reset any that changed
    for var in _SENSITIVE_ENV_VARS:
        if var in snapshot:
            os.environ[var] = snapshot[var]
        else:
            os.environ.pop(var, None)


@pytest.fixture
def clean_env(monkeypatch):
    """Start a test with none of the MM_* variables set."""
    for var in _SENSITIVE_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
