"""Error taxonomy for the provisioning and bridge-config pipelines.

Fatal errors (:class:`PreconditionError`, :class:`ConfigResolutionError`, and
the SDK's ``AuthenticationError``) unwind to the command wrapper.
:class:`ReconciliationError` is caught per resource and the batch goes on.
"""

from __future__ import annotations

from typing import Optional


class MmhubError(Exception):
    """Base exception for mmhub."""
    pass


class PreconditionError(MmhubError):
    """A required credential, file or setting is missing."""
    pass


class ManifestError(PreconditionError):
    """Workspace manifest is unreadable or invalid."""
    pass


class ReconciliationError(MmhubError):
    """Lookup and create both failed for a single resource."""

    def __init__(self, kind: str, key: str, message: str) -> None:
        self.kind = kind
        self.key = key
        self.message = message
        super().__init__(f"{kind} '{key}': {message}")


class ConfigResolutionError(MmhubError):
    """Workspace lookup for the bridge config failed.

    ``reason`` is one of ``credential``, ``not_found``, ``server``,
    ``invalid_response``, ``timeout``, ``connection`` or ``write``.
    """

    HINTS = {
        "credential": "Check that the token is valid and has team read permissions.",
        "not_found": "Use --team-name to specify the correct team name.",
        "timeout": "The server did not answer in time; re-run once it is reachable.",
        "connection": "Check that Mattermost is running and --url is correct.",
    }

    def __init__(
        self,
        reason: str,
        message: str,
        status_code: Optional[int] = None,
        retryable: bool = False,
    ) -> None:
        self.reason = reason
        self.message = message
        self.status_code = status_code
        self.retryable = retryable
        super().__init__(message)

    @property
    def hint(self) -> Optional[str]:
        return self.HINTS.get(self.reason)
