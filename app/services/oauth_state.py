from __future__ import annotations

import base64
import binascii
import json
import secrets
from datetime import timedelta

from fastapi import Request, Response
from loguru import logger
from pydantic import ValidationError
from sqlalchemy import delete
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import Config, settings
from app.core.db import upsert_stmt
from app.models.oauth_state import OAuthState
from app.schemas.auth import OAuthStatePayload
from app.utils.misc import get_utc_now


class OAuthStateStore:
    """Short-lived OAuth session kept apart from the main application session.

    The browser holds an opaque session id in its own cookie; the CSRF nonce
    and return path live server-side in ``oauth_states``.
    """

    def __init__(
        self, db: AsyncSession, request: Request, config: Config | None = None
    ) -> None:
        self.db = db
        self.config = config or settings
        self.session_id = request.cookies.get(self.config.oauth_cookie_name) or ""
        self._state: OAuthState | None = None
        self._loaded = False

    async def begin(self, return_to: str) -> str:
        """Seed a fresh CSRF nonce for this browser, replacing any earlier one."""
        if not self.session_id:
            self.session_id = secrets.token_urlsafe(32)
        csrf = secrets.token_hex(16)
        now = get_utc_now()
        expires_at = now + timedelta(seconds=self.config.oauth_state_ttl_seconds)

        stmt = upsert_stmt(self.db, OAuthState).values(
            session_id=self.session_id,
            csrf=csrf,
            return_to=return_to,
            expires_at=expires_at,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["session_id"],
            set_={
                "csrf": csrf,
                "return_to": return_to,
                "expires_at": expires_at,
                "updated_at": now,
            },
        )
        await self.db.execute(stmt)
        await self.db.execute(delete(OAuthState).where(col(OAuthState.expires_at) <= now))
        await self.db.commit()
        logger.debug(f"Started OAuth session {self.session_id[:8]}...")

        self._state = OAuthState(
            session_id=self.session_id, csrf=csrf, return_to=return_to, expires_at=expires_at
        )
        self._loaded = True
        return csrf

    async def _load(self) -> OAuthState | None:
        if self._loaded:
            return self._state
        self._loaded = True
        if not self.session_id:
            return None
        result = await self.db.exec(
            select(OAuthState).where(
                OAuthState.session_id == self.session_id,
                col(OAuthState.expires_at) > get_utc_now(),
            )
        )
        self._state = result.first()
        return self._state

    async def current_csrf(self) -> str:
        state = await self._load()
        return state.csrf if state else ""

    async def current_return_to(self) -> str:
        state = await self._load()
        return state.return_to if state else ""

    def set_cookie(self, response: Response) -> None:
        response.set_cookie(
            key=self.config.oauth_cookie_name,
            value=self.session_id,
            max_age=self.config.oauth_state_ttl_seconds,
            path="/",
            domain=self.config.oauth_cookie_domain,
            secure=True,
            httponly=True,
            samesite="none",
        )


def encode_state(payload: OAuthStatePayload) -> str:
    raw = json.dumps(payload.model_dump(by_alias=True), separators=(",", ":"))
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def decode_state(value: str) -> OAuthStatePayload:
    """Decode the ``state`` parameter; anything unreadable decodes as empty."""
    value = value.strip().replace(" ", "+").replace("-", "+").replace("_", "/")
    value += "=" * (-len(value) % 4)
    try:
        data = json.loads(base64.b64decode(value))
        if not isinstance(data, dict):
            return OAuthStatePayload()
        return OAuthStatePayload.model_validate(data)
    except (binascii.Error, ValueError, ValidationError):
        return OAuthStatePayload()
