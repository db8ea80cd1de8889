"""Mattermost Python SDK — typed client for the Mattermost REST API v4."""

from mmhub_sdk.auth import login
from mmhub_sdk.client import MattermostClient
from mmhub_sdk.errors import (
    ApiError,
    AuthError,
    AuthenticationError,
    BadRequestError,
    ErrorEnvelope,
    ForbiddenError,
    InvalidResponseError,
    NotFoundError,
    ServerError,
)

__version__ = "1.0.0"

__all__ = [
    "MattermostClient",
    "login",
    "ApiError",
    "AuthError",
    "AuthenticationError",
    "BadRequestError",
    "ErrorEnvelope",
    "ForbiddenError",
    "InvalidResponseError",
    "NotFoundError",
    "ServerError",
]
