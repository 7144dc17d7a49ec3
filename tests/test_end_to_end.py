"""Full login: initiator, LinkedIn round trip, callback, auto-login, welcome."""

from __future__ import annotations

import time

import respx
from fastapi.testclient import TestClient
from helpers import (
    HMAC_KEY,
    JANE,
    TOKEN_URL,
    USERINFO_URL,
    bindings,
    decode_state,
    query_params,
    start_login,
    users,
)
from sqlalchemy.engine import Engine

from app.services import token_signer


def test_linkedin_login_end_to_end(client: TestClient, sync_engine: Engine):
    state = start_login(client, "/Some_Page")
    assert decode_state(state)["returnTo"] == "/Some_Page"

    with respx.mock() as router:
        router.post(TOKEN_URL).respond(200, json={"access_token": "tok", "expires_in": 3600})
        router.get(USERINFO_URL).respond(200, json=JANE)
        callback = client.get("/auth/linkedin/callback", params={"code": "abc", "state": state})

    assert callback.status_code == 302
    token = query_params(callback.headers["location"])["token"]
    claims = token_signer.verify(token, HMAC_KEY)
    exp = claims.pop("exp")
    assert abs(exp - (int(time.time()) + 120)) <= 5
    assert claims == {
        "sub": "u1",
        "name": "Jane Doe",
        "email": "jane@example.com",
        "picture": "",
        "given_name": "",
        "family_name": "",
        "returnTo": "/Some_Page",
    }

    auto_login = client.get("/auth/linkedin/auto-login", params={"token": token})

    assert auto_login.status_code == 200
    assert 'content="0;url=/Some_Page"' in auto_login.text
    (user,) = users(sync_engine)
    assert user.username == "Jane Doe LIN"
    (binding,) = bindings(sync_engine)
    assert binding.user_id == user.id
    assert binding.access_token == "tok"

    welcome = client.get("/auth/linkedin/welcome").json()
    assert welcome["logged_in"] is True
    assert welcome["user_id"] == user.id
    assert welcome["username"] == "Jane Doe LIN"


def test_health(client: TestClient):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json() == "OK"
