from __future__ import annotations

import secrets
from datetime import UTC, datetime, timedelta
from typing import Annotated, Any

import jwt
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.db import get_db
from app.models.session import Session
from app.models.user import User

# HTTP Bearer scheme for FastAPI dependencies
bearer_scheme = HTTPBearer(auto_error=False)


def _get_jwt_secret() -> str:
    """Get the JWT secret, generating an ephemeral one for dev if not set.

    WARNING: If not set, an ephemeral secret is generated per-process, which will
    invalidate sessions on restart. Configure settings.jwt_secret in production.
    """
    if settings.jwt_secret:
        return settings.jwt_secret
    secret = secrets.token_urlsafe(32)
    logger.warning(
        "JWT secret not configured. Using ephemeral secret for this process; "
        "sessions will invalidate on restart."
    )
    # Cache on settings to keep it stable during process lifetime
    settings.jwt_secret = secret
    return secret


def create_session_token(*, sub: str, is_admin: bool, sid: int, expires_at: datetime) -> str:
    """Create the signed value of the main session cookie.

    Claims:
      - sub: local user id as string
      - is_admin: bool
      - sid: row id in ``sessions``
      - exp / iat
    """
    payload: dict[str, Any] = {
        "sub": sub,
        "is_admin": is_admin,
        "sid": sid,
        "iat": int(datetime.now(UTC).timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    return jwt.encode(payload, _get_jwt_secret(), algorithm=settings.jwt_algorithm)


def decode_session_token(token: str) -> dict[str, Any]:
    """Decode and validate a session token, returning claims or raising.

    Raises jwt.InvalidTokenError (caught by caller) on invalid token.
    """
    return jwt.decode(token, _get_jwt_secret(), algorithms=[settings.jwt_algorithm])


def session_expiry() -> datetime:
    return datetime.now(UTC) + timedelta(seconds=settings.session_ttl_seconds)


async def get_optional_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User | None:
    """Resolve the signed-in user from a Bearer token or the session cookie, if any."""
    if credentials and credentials.scheme.lower() == "bearer":
        token = credentials.credentials
    else:
        token = request.cookies.get(settings.session_cookie_name)
    if not token:
        return None

    try:
        claims = decode_session_token(token)
        user_id = int(claims.get("sub") or "")
        sid = int(claims.get("sid") or 0)
    except (jwt.InvalidTokenError, ValueError):
        return None

    result = await db.exec(
        select(User)
        .join(Session, col(Session.user_id) == col(User.id))
        .where(
            Session.id == sid,
            User.id == user_id,
            Session.revoked == False,  # noqa: E712
            col(Session.expires_at) > datetime.now(UTC),
        )
    )
    return result.first()


async def get_current_user(
    user: Annotated[User | None, Depends(get_optional_user)],
) -> User:
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def is_privileged(user: User | None) -> bool:
    return user is not None and user.is_admin


def require_admin(user: Annotated[User, Depends(get_current_user)]) -> User:
    if not is_privileged(user):
        raise HTTPException(status_code=403, detail="Administrator access required")
    return user


def get_client_ip(request: Request) -> str | None:
    # Best-effort, depends on deployment proxy
    ip = request.headers.get("x-forwarded-for") or (request.client.host if request.client else None)
    if ip and "," in ip:
        ip = ip.split(",")[0].strip()
    return ip
