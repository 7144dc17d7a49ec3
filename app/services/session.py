from __future__ import annotations

from typing import Literal, cast

from fastapi import Request, Response
from loguru import logger
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import Config, settings
from app.core.security import create_session_token, get_client_ip, session_expiry
from app.models.session import Session
from app.models.user import User

DEFAULT_SAMESITE = "lax"

SameSite = Literal["lax", "strict", "none"]


def resolve_samesite(value: str | None) -> SameSite:
    value = (value or "").strip().lower()
    if value in ("lax", "strict", "none"):
        return cast(SameSite, value)
    return DEFAULT_SAMESITE


class SessionService:
    def __init__(self, db: AsyncSession, config: Config | None = None) -> None:
        self.db = db
        self.config = config or settings

    async def establish(self, user: User, request: Request, response: Response) -> Session:
        """Persist a session for ``user`` and write its cookie onto ``response``."""
        if user.id is None:
            msg = "Cannot open a session for an unsaved user"
            raise ValueError(msg)

        expires_at = session_expiry()
        session = Session(user_id=user.id, ip=get_client_ip(request), expires_at=expires_at)
        self.db.add(session)
        await self.db.commit()
        await self.db.refresh(session)

        token = create_session_token(
            sub=str(user.id), is_admin=user.is_admin, sid=session.id or 0, expires_at=expires_at
        )
        # Full attribute set, re-asserted on every login.
        response.set_cookie(
            key=self.config.session_cookie_name,
            value=token,
            max_age=self.config.session_ttl_seconds,
            path=self.config.session_cookie_path,
            domain=self.config.session_cookie_domain,
            secure=True,
            httponly=True,
            samesite=resolve_samesite(self.config.session_cookie_samesite),
        )
        logger.info(f"Opened session {session.id} for {user.username}")
        return session
