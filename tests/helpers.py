from __future__ import annotations

import base64
import json
from typing import Any
from urllib.parse import parse_qs, urlparse

from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlmodel import Session as DBSession
from sqlmodel import select

from app.core.security import create_session_token, session_expiry
from app.models.identity_binding import IdentityBinding
from app.models.session import Session
from app.models.user import User, UserGroup

HMAC_KEY = "test-hmac-key"
CLIENT_ID = "client-123"
CLIENT_SECRET = "secret-456789"
REDIRECT_URI = "https://wiki.example/auth/linkedin/callback"

TOKEN_URL = "https://www.linkedin.com/oauth/v2/accessToken"
USERINFO_URL = "https://api.linkedin.com/v2/userinfo"

JANE = {"sub": "u1", "name": "Jane Doe", "email": "jane@example.com"}


def seed(engine: Engine, *objs: Any) -> list[Any]:
    with DBSession(engine) as session:
        session.add_all(objs)
        session.commit()
        for obj in objs:
            session.refresh(obj)
    return list(objs)


def fetch_all(engine: Engine, model: Any) -> list[Any]:
    with DBSession(engine) as session:
        return list(session.exec(select(model)).all())


def users(engine: Engine) -> list[User]:
    return fetch_all(engine, User)


def bindings(engine: Engine) -> list[IdentityBinding]:
    return fetch_all(engine, IdentityBinding)


def group_names(engine: Engine, user_id: int) -> list[str]:
    return [g.group_name for g in fetch_all(engine, UserGroup) if g.user_id == user_id]


def auth_headers(engine: Engine, user: User) -> dict[str, str]:
    expires_at = session_expiry()
    (session,) = seed(engine, Session(user_id=user.id, expires_at=expires_at))
    token = create_session_token(
        sub=str(user.id), is_admin=user.is_admin, sid=session.id, expires_at=expires_at
    )
    return {"Authorization": f"Bearer {token}"}


def query_params(url: str) -> dict[str, str]:
    return {key: values[0] for key, values in parse_qs(urlparse(url).query).items()}


def encode_state(data: dict[str, Any]) -> str:
    return base64.b64encode(json.dumps(data).encode()).decode()


def decode_state(value: str) -> dict[str, Any]:
    return json.loads(base64.b64decode(value))


def start_login(client: TestClient, return_to: str | None = "/Some_Page") -> str:
    """Run the login step and return the ``state`` it sent to LinkedIn."""
    params = {"returnTo": return_to} if return_to is not None else {}
    response = client.get("/auth/linkedin/login", params=params)
    assert response.status_code == 302
    return query_params(response.headers["location"])["state"]


def set_cookie_headers(response: Any) -> list[str]:
    return response.headers.get_list("set-cookie")
