from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse, Response
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.db import get_db
from app.core.security import get_optional_user, is_privileged
from app.models.user import User
from app.schemas.auth import WelcomeResponse
from app.services.account import AccountService
from app.services.auth import LinkedInAuthService
from app.services.session import resolve_samesite
from app.utils.html import render_auto_redirect, render_debug_dump
from app.utils.logging import debug_log

router = APIRouter(prefix="/auth/linkedin", tags=["auth"])


@router.get("/login")
async def linkedin_login(
    service: Annotated[LinkedInAuthService, Depends()],
    return_to: Annotated[str | None, Query(alias="returnTo")] = None,
) -> RedirectResponse:
    url = await service.begin_login(return_to)
    response = RedirectResponse(url, status_code=302)
    service.state_store.set_cookie(response)
    return response


@router.get("/callback")
async def linkedin_callback(
    service: Annotated[LinkedInAuthService, Depends()],
    code: str | None = None,
    state: str | None = None,
) -> RedirectResponse:
    url = await service.handle_callback(code, state)
    return RedirectResponse(url, status_code=302)


@router.get("/auto-login", response_model=None)
async def linkedin_auto_login(
    service: Annotated[LinkedInAuthService, Depends()],
    user: Annotated[User | None, Depends(get_optional_user)],
    token: str | None = None,
    debug: bool = False,
) -> Response:
    debug_log("AUTOLOGIN_START", hasToken=bool(token))
    payload = service.read_handoff(token)

    if debug and (is_privileged(user) or service.config.debug):
        debug_log("AUTOLOGIN_DEBUG_DUMP", sub=payload.sub)
        return PlainTextResponse(render_debug_dump(payload.model_dump(by_alias=True)))

    response = HTMLResponse(render_auto_redirect(payload.return_to))
    await service.complete_login(payload, response)
    debug_log("AUTOLOGIN_REDIRECT", returnTo=payload.return_to)
    return response


@router.get("/welcome")
async def linkedin_welcome(
    user: Annotated[User | None, Depends(get_optional_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> WelcomeResponse:
    """Summary of the session this browser is holding."""
    response = WelcomeResponse(
        logged_in=user is not None,
        cookie_name=settings.session_cookie_name,
        cookie_domain=settings.session_cookie_domain or "",
        cookie_path=settings.session_cookie_path,
        cookie_samesite=resolve_samesite(settings.session_cookie_samesite),
    )
    if user is None or user.id is None:
        return response

    groups = await AccountService(db).get_groups(user.id)
    response.username = user.username
    response.user_id = user.id
    response.groups = ", ".join(groups) or "(none)"
    if is_privileged(user):
        response.links = {
            "status": "/api/linkedin/status",
            "accounts": "/api/linkedin/accounts",
        }
    return response
