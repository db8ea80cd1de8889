"""MattermostClient — typed Python SDK for the Mattermost REST API v4."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Type, TypeVar, Union

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as ModelValidationError

from mmhub_sdk.auth import build_auth_headers
from mmhub_sdk.errors import (
    ApiError,
    AuthError,
    BadRequestError,
    ErrorEnvelope,
    ForbiddenError,
    InvalidResponseError,
    NotFoundError,
    ServerError,
)
from mmhub_sdk.models import (
    Bot,
    Channel,
    ChannelMember,
    Team,
    TeamMember,
    User,
    UserAccessToken,
)
from mmhub_sdk.utils import envelope_status, error_message, generate_request_id

API_PREFIX = "/api/v4"

M = TypeVar("M", bound=BaseModel)

_STATUS_ERRORS: Dict[int, Type[ApiError]] = {
    400: BadRequestError,
    401: AuthError,
    403: ForbiddenError,
    404: NotFoundError,
}


class MattermostClient:
    """Synchronous client for the Mattermost API.

    Usage::

        from mmhub_sdk import MattermostClient

        with MattermostClient("http://localhost:8065", token="...") as mm:
            team = mm.get_team_by_name("zeroclaw-hq")
            print(team.id)

    ``token`` may be set after construction (see :mod:`mmhub_sdk.auth`); every
    request made afterwards carries it as a bearer credential.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8065",
        token: Optional[str] = None,
        timeout: Union[float, httpx.Timeout] = 30.0,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self.token = token
        self._timeout = timeout
        self._client = http_client or httpx.Client(base_url=self._base_url, timeout=timeout)

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def api_url(self) -> str:
        return f"{self._base_url}{API_PREFIX}"

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "MattermostClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ── Internal helpers ─────────────────────────────────────────

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        headers.update(build_auth_headers(self.token))
        if extra:
            headers.update(extra)
        if "x-request-id" not in {k.lower() for k in headers}:
            headers["X-Request-ID"] = generate_request_id()
        return headers

    def _raise_for_status(self, resp: httpx.Response) -> Any:
        """Return the parsed body, raising when the response is an error.

        A response is an error when the transport status is >= 400 or when the
        body is an error object with a 4xx/5xx ``status_code``.
        """
        request_id = resp.headers.get("x-request-id")
        try:
            body: Any = resp.json()
        except ValueError:
            body = resp.text

        status = resp.status_code
        embedded = envelope_status(body)
        if status < 400 and embedded is None:
            if isinstance(body, str):
                raise InvalidResponseError(status, "response is not JSON", None, request_id)
            return body

        message = error_message(body)
        error_id = body.get("id") if isinstance(body, dict) else None
        if status < 400:
            raise ErrorEnvelope(embedded, message, body, request_id, error_id)
        if status >= 500:
            raise ServerError(status, message, body, request_id, error_id)
        exc_cls = _STATUS_ERRORS.get(status, ApiError)
        raise exc_cls(status, message, body, request_id, error_id)

    def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Any:
        headers = self._headers()
        resp = self._client.request(method, f"{API_PREFIX}{path}", json=json, headers=headers)
        return self._raise_for_status(resp)

    def _get(self, path: str) -> Any:
        return self._request("GET", path)

    def _post(self, path: str, json: Dict[str, Any]) -> Any:
        return self._request("POST", path, json=json)

    @staticmethod
    def _model(model: Type[M], body: Any) -> M:
        try:
            return model.model_validate(body)
        except ModelValidationError as e:
            raise InvalidResponseError(
                200, f"unexpected {model.__name__} response: {e.error_count()} invalid field(s)", body
            ) from e

    # ── Auth ─────────────────────────────────────────────────────

    def login_raw(self, login_id: str, password: str) -> httpx.Response:
        """POST /users/login — returns the raw response without raising.

        The session token may be in a header, the body or a cookie depending on
        the server version, so callers inspect the response themselves.
        """
        return self._client.post(
            f"{API_PREFIX}/users/login",
            json={"login_id": login_id, "password": password},
            headers={"X-Request-ID": generate_request_id()},
        )

    def get_me(self) -> User:
        """GET /users/me"""
        return self._model(User, self._get("/users/me"))

    # ── Teams ────────────────────────────────────────────────────

    def get_team_by_name(self, name: str) -> Team:
        """GET /teams/name/{name}"""
        return self._model(Team, self._get(f"/teams/name/{name}"))

    def create_team(self, name: str, display_name: str, type: str = "O") -> Team:
        """POST /teams"""
        body = {"name": name, "display_name": display_name, "type": type}
        return self._model(Team, self._post("/teams", json=body))

    def get_team_member(self, team_id: str, user_id: str) -> TeamMember:
        """GET /teams/{team_id}/members/{user_id}"""
        return self._model(TeamMember, self._get(f"/teams/{team_id}/members/{user_id}"))

    def add_team_member(self, team_id: str, user_id: str) -> TeamMember:
        """POST /teams/{team_id}/members"""
        body = {"team_id": team_id, "user_id": user_id}
        return self._model(TeamMember, self._post(f"/teams/{team_id}/members", json=body))

    # ── Users / Bots ─────────────────────────────────────────────

    def get_user_by_username(self, username: str) -> User:
        """GET /users/username/{username}"""
        return self._model(User, self._get(f"/users/username/{username}"))

    def create_bot(self, username: str, display_name: str = "", description: str = "") -> Bot:
        """POST /bots"""
        body = {"username": username, "display_name": display_name, "description": description}
        return self._model(Bot, self._post("/bots", json=body))

    def list_user_access_tokens(self, user_id: str) -> List[UserAccessToken]:
        """GET /users/{user_id}/tokens — token values are never included."""
        body = self._get(f"/users/{user_id}/tokens")
        if not isinstance(body, list):
            raise InvalidResponseError(200, "expected a list of tokens", body)
        return [self._model(UserAccessToken, item) for item in body]

    def create_user_access_token(self, user_id: str, description: str) -> UserAccessToken:
        """POST /users/{user_id}/tokens — the only response that carries the secret."""
        body = {"description": description}
        return self._model(UserAccessToken, self._post(f"/users/{user_id}/tokens", json=body))

    # ── Channels ─────────────────────────────────────────────────

    def get_channel_by_name(self, team_id: str, name: str) -> Channel:
        """GET /teams/{team_id}/channels/name/{name}"""
        return self._model(Channel, self._get(f"/teams/{team_id}/channels/name/{name}"))

    def create_channel(
        self,
        team_id: str,
        name: str,
        display_name: str,
        purpose: str = "",
        type: str = "O",
    ) -> Channel:
        """POST /channels"""
        body = {
            "team_id": team_id,
            "name": name,
            "display_name": display_name,
            "purpose": purpose,
            "type": type,
        }
        return self._model(Channel, self._post("/channels", json=body))

    def get_channel_member(self, channel_id: str, user_id: str) -> ChannelMember:
        """GET /channels/{channel_id}/members/{user_id}"""
        return self._model(ChannelMember, self._get(f"/channels/{channel_id}/members/{user_id}"))

    def add_channel_member(self, channel_id: str, user_id: str) -> ChannelMember:
        """POST /channels/{channel_id}/members"""
        body = {"user_id": user_id}
        return self._model(ChannelMember, self._post(f"/channels/{channel_id}/members", json=body))
