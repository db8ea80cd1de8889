"""In-memory fake of the Mattermost REST API v4 for tests.

Covers just the endpoints mmhub uses, with Mattermost's error envelopes and
status codes. Drive it through Starlette's TestClient (an ``httpx.Client``)::

    fake = FakeMattermost()
    client = fake.client()          # MattermostClient, no network
    token = login(client, "admin", fake.admin_password)

Requires the ``test`` extra (FastAPI).
"""

from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional, Set, Tuple

from fastapi import Body, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.testclient import TestClient

from mmhub_sdk.client import API_PREFIX, MattermostClient

LOGIN_MODES = ("header", "body", "cookie", "second-attempt", "none")


def new_id() -> str:
    """26-character id, the length Mattermost uses."""
    return uuid.uuid4().hex[:26]


class ApiFailure(Exception):
    def __init__(self, status_code: int, error_id: str, message: str) -> None:
        self.status_code = status_code
        self.error_id = error_id
        self.message = message
        super().__init__(message)


def envelope(status_code: int, error_id: str, message: str) -> Dict[str, Any]:
    return {
        "id": error_id,
        "message": message,
        "detailed_error": "",
        "request_id": new_id(),
        "status_code": status_code,
    }


class FakeMattermost:
    """Server state plus the FastAPI app that serves it.

    Knobs:
        login_mode: where the login token is returned, see LOGIN_MODES.
        token_creation_enabled: False makes token minting fail with 501.
        fail_create: ``{("channel", "alerts"), ("bot", "toph"), ...}`` to reject creation.
        fail_lookup: same shape, lookups answer 500 instead of the record.
        member_exists_error: channel joins of existing members answer 400 "exists".
        team_lookup_response: ``(status, body)`` served for every team lookup.
    """

    def __init__(
        self,
        login_mode: str = "header",
        admin_login: str = "admin",
        admin_password: str = "s3cret-password",
        token_creation_enabled: bool = True,
    ) -> None:
        if login_mode not in LOGIN_MODES:
            raise ValueError(f"login_mode must be one of {LOGIN_MODES}")
        self.login_mode = login_mode
        self.admin_login = admin_login
        self.admin_password = admin_password
        self.token_creation_enabled = token_creation_enabled
        self.fail_create: Set[Tuple[str, str]] = set()
        self.fail_lookup: Set[Tuple[str, str]] = set()
        self.member_exists_error = False
        self.team_lookup_response: Optional[Tuple[int, Any]] = None

        self.users: Dict[str, Dict[str, Any]] = {}
        self.teams: Dict[str, Dict[str, Any]] = {}
        self.channels: Dict[str, Dict[str, Any]] = {}
        self.team_members: Set[Tuple[str, str]] = set()
        self.channel_members: Set[Tuple[str, str]] = set()
        self.access_tokens: Dict[str, List[Dict[str, Any]]] = {}
        self.sessions: Set[str] = set()
        self.calls: List[Tuple[str, str]] = []
        self.login_attempts = 0

        self.admin_id = new_id()
        self.users[self.admin_id] = {
            "id": self.admin_id, "username": admin_login, "email": f"{admin_login}@example.com",
            "is_bot": False,
        }
        self.app = self._build_app()

    # ── Test helpers ─────────────────────────────────────────────

    def client(self, token: Optional[str] = None, **kwargs: Any) -> MattermostClient:
        """A MattermostClient wired to this fake through Starlette's TestClient."""
        http = TestClient(self.app, base_url="http://testserver")
        return MattermostClient("http://testserver", token=token, http_client=http, **kwargs)

    def issue_session(self) -> str:
        token = new_id()
        self.sessions.add(token)
        return token

    def count(self, method: str, path_prefix: str) -> int:
        """Number of recorded calls whose path starts with ``path_prefix`` (after /api/v4)."""
        full = f"{API_PREFIX}{path_prefix}"
        return sum(1 for m, p in self.calls if m == method and p.startswith(full))

    @property
    def write_calls(self) -> List[Tuple[str, str]]:
        return [(m, p) for m, p in self.calls if m != "GET" and not p.endswith("/users/login")]

    def user_by_name(self, username: str) -> Optional[Dict[str, Any]]:
        for user in self.users.values():
            if user["username"] == username:
                return user
        return None

    def add_team(self, name: str, display_name: str = "", type: str = "I") -> Dict[str, Any]:
        team = {"id": new_id(), "name": name, "display_name": display_name or name, "type": type}
        self.teams[team["id"]] = team
        return team

    def add_bot(self, username: str, display_name: str = "") -> Dict[str, Any]:
        user = {"id": new_id(), "username": username, "email": None, "is_bot": True,
                "display_name": display_name or username}
        self.users[user["id"]] = user
        return user

    def add_access_token(self, user_id: str, description: str = "pre-existing") -> None:
        self.access_tokens.setdefault(user_id, []).append(
            {"id": new_id(), "user_id": user_id, "description": description,
             "token": new_id(), "is_active": True}
        )

    # ── App ──────────────────────────────────────────────────────

    def _build_app(self) -> FastAPI:
        app = FastAPI()
        fake = self

        @app.middleware("http")
        async def record(request: Request, call_next):
            fake.calls.append((request.method, request.url.path))
            return await call_next(request)

        @app.exception_handler(ApiFailure)
        async def api_failure(request: Request, exc: ApiFailure):
            return JSONResponse(status_code=exc.status_code,
                                content=envelope(exc.status_code, exc.error_id, exc.message))

        def require_session(request: Request) -> None:
            header = request.headers.get("authorization", "")
            token = header[len("Bearer "):] if header.startswith("Bearer ") else ""
            if token not in fake.sessions:
                raise ApiFailure(401, "api.context.session_expired.app_error",
                                 "Invalid or expired session, please login again.")

        def check_fault(kind: str, key: str, faults: Set[Tuple[str, str]], what: str) -> None:
            if (kind, key) in faults:
                raise ApiFailure(500, f"app.{kind}.{what}.app_error", f"Injected {what} failure.")

        # Auth

        @app.post(f"{API_PREFIX}/users/login")
        def users_login(payload: Dict[str, Any] = Body(default={})):
            fake.login_attempts += 1
            if (payload.get("login_id") != fake.admin_login
                    or payload.get("password") != fake.admin_password):
                raise ApiFailure(401, "api.user.login.invalid_credentials_email_username",
                                 "Enter a valid email or username and/or password.")
            body = dict(fake.users[fake.admin_id])
            mode = fake.login_mode
            if mode == "none" or (mode == "second-attempt" and fake.login_attempts == 1):
                return JSONResponse(body)
            token = fake.issue_session()
            if mode == "body":
                body["token"] = token
                return JSONResponse(body)
            response = JSONResponse(body)
            if mode == "cookie":
                response.set_cookie("MMAUTHTOKEN", token)
            else:
                response.headers["Token"] = token
            return response

        @app.get(f"{API_PREFIX}/users/me")
        def users_me(request: Request):
            require_session(request)
            return fake.users[fake.admin_id]

        # Users / bots

        @app.get(f"{API_PREFIX}/users/username/{{username}}")
        def user_by_username(username: str, request: Request):
            require_session(request)
            check_fault("bot", username, fake.fail_lookup, "get")
            user = fake.user_by_name(username)
            if user is None:
                raise ApiFailure(404, "app.user.missing_account.const", "Unable to find the user.")
            return user

        @app.post(f"{API_PREFIX}/bots", status_code=201)
        def create_bot(request: Request, payload: Dict[str, Any] = Body(...)):
            require_session(request)
            username = payload.get("username", "")
            check_fault("bot", username, fake.fail_create, "save")
            if fake.user_by_name(username) is not None:
                raise ApiFailure(400, "app.user.save.username_exists.app_error",
                                 "An account with that username already exists.")
            user = fake.add_bot(username, payload.get("display_name", ""))
            return {
                "user_id": user["id"], "username": username,
                "display_name": payload.get("display_name", ""),
                "description": payload.get("description", ""), "owner_id": fake.admin_id,
            }

        @app.get(f"{API_PREFIX}/users/{{user_id}}/tokens")
        def list_tokens(user_id: str, request: Request):
            require_session(request)
            return [
                {k: v for k, v in t.items() if k != "token"}
                for t in fake.access_tokens.get(user_id, [])
            ]

        @app.post(f"{API_PREFIX}/users/{{user_id}}/tokens")
        def create_token(user_id: str, request: Request, payload: Dict[str, Any] = Body(...)):
            require_session(request)
            if not fake.token_creation_enabled:
                raise ApiFailure(501, "api.user.create_user_access_token.disabled",
                                 "Personal access tokens are disabled on this server.")
            if user_id not in fake.users:
                raise ApiFailure(404, "app.user.missing_account.const", "Unable to find the user.")
            fake.add_access_token(user_id, payload.get("description", ""))
            return fake.access_tokens[user_id][-1]

        # Teams

        @app.get(f"{API_PREFIX}/teams/name/{{name}}")
        def team_by_name(name: str, request: Request):
            require_session(request)
            if fake.team_lookup_response is not None:
                status, body = fake.team_lookup_response
                if isinstance(body, str):
                    return PlainTextResponse(body, status_code=status)
                return JSONResponse(body, status_code=status)
            check_fault("team", name, fake.fail_lookup, "get")
            for team in fake.teams.values():
                if team["name"] == name:
                    return team
            raise ApiFailure(404, "app.team.get_by_name.missing.app_error",
                             "Unable to find the existing team.")

        @app.post(f"{API_PREFIX}/teams", status_code=201)
        def create_team(request: Request, payload: Dict[str, Any] = Body(...)):
            require_session(request)
            name = payload.get("name", "")
            check_fault("team", name, fake.fail_create, "save")
            if any(t["name"] == name for t in fake.teams.values()):
                raise ApiFailure(400, "app.team.save.existing.app_error",
                                 "A team with that name already exists.")
            return fake.add_team(name, payload.get("display_name", ""), payload.get("type", "O"))

        @app.get(f"{API_PREFIX}/teams/{{team_id}}/members/{{user_id}}")
        def team_member(team_id: str, user_id: str, request: Request):
            require_session(request)
            if (team_id, user_id) not in fake.team_members:
                raise ApiFailure(404, "app.team.get_member.missing.app_error",
                                 "No team member found for that user ID and team ID.")
            return {"team_id": team_id, "user_id": user_id, "roles": "team_user"}

        @app.post(f"{API_PREFIX}/teams/{{team_id}}/members", status_code=201)
        def add_team_member(team_id: str, request: Request, payload: Dict[str, Any] = Body(...)):
            require_session(request)
            if team_id not in fake.teams:
                raise ApiFailure(404, "app.team.get.find.app_error", "Unable to find the team.")
            user_id = payload.get("user_id", "")
            fake.team_members.add((team_id, user_id))
            return {"team_id": team_id, "user_id": user_id, "roles": "team_user"}

        # Channels

        @app.get(f"{API_PREFIX}/teams/{{team_id}}/channels/name/{{name}}")
        def channel_by_name(team_id: str, name: str, request: Request):
            require_session(request)
            check_fault("channel", name, fake.fail_lookup, "get")
            for ch in fake.channels.values():
                if ch["team_id"] == team_id and ch["name"] == name:
                    return ch
            raise ApiFailure(404, "app.channel.get_by_name.missing.app_error", "Channel does not exist.")

        @app.post(f"{API_PREFIX}/channels", status_code=201)
        def create_channel(request: Request, payload: Dict[str, Any] = Body(...)):
            require_session(request)
            team_id = payload.get("team_id", "")
            name = payload.get("name", "")
            check_fault("channel", name, fake.fail_create, "save")
            if any(c["team_id"] == team_id and c["name"] == name for c in fake.channels.values()):
                raise ApiFailure(400, "store.sql_channel.save_channel.exists.app_error",
                                 "A channel with that name already exists on the same team.")
            channel = {
                "id": new_id(), "team_id": team_id, "name": name,
                "display_name": payload.get("display_name", ""),
                "purpose": payload.get("purpose", ""), "type": payload.get("type", "O"),
            }
            fake.channels[channel["id"]] = channel
            return channel

        @app.get(f"{API_PREFIX}/channels/{{channel_id}}/members/{{user_id}}")
        def channel_member(channel_id: str, user_id: str, request: Request):
            require_session(request)
            if (channel_id, user_id) not in fake.channel_members:
                raise ApiFailure(404, "app.channel.get_member.missing.app_error",
                                 "No channel member found for that user ID and channel ID.")
            return {"channel_id": channel_id, "user_id": user_id, "roles": "channel_user"}

        @app.post(f"{API_PREFIX}/channels/{{channel_id}}/members", status_code=201)
        def add_channel_member(channel_id: str, request: Request, payload: Dict[str, Any] = Body(...)):
            require_session(request)
            channel = fake.channels.get(channel_id)
            if channel is None:
                raise ApiFailure(404, "app.channel.get.existing.app_error", "Unable to find the existing channel.")
            user_id = payload.get("user_id", "")
            if (channel["team_id"], user_id) not in fake.team_members:
                raise ApiFailure(403, "api.channel.add_user.to.channel.failed.deleted.app_error",
                                 "User is not a member of the team.")
            if fake.member_exists_error and (channel_id, user_id) in fake.channel_members:
                raise ApiFailure(400, "api.channel.add_member.exists.app_error",
                                 "User is already a member of this channel.")
            fake.channel_members.add((channel_id, user_id))
            return {"channel_id": channel_id, "user_id": user_id, "roles": "channel_user"}

        return app
