from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Request
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import Config, LinkedInConfig, resolve_linkedin_config, settings
from app.core.db import get_db


@dataclass
class AuthContext:
    """Everything a login step needs about the current request."""

    request: Request
    config: LinkedInConfig
    settings: Config
    db: AsyncSession


async def get_auth_context(
    request: Request, db: Annotated[AsyncSession, Depends(get_db)]
) -> AuthContext:
    return AuthContext(
        request=request, config=resolve_linkedin_config(settings), settings=settings, db=db
    )
