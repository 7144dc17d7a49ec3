"""LinkedIn login pipeline: authorization request, callback and auto-login.

A login spans two browser round trips. The callback proves the browser
started the login here (CSRF nonce in the OAuth session), talks to LinkedIn,
then hands the verified identity to the auto-login step as a short-lived
signed token. Auto-login provisions the account and opens the session.
"""

from __future__ import annotations

import hmac
from typing import Annotated
from urllib.parse import urlencode

from fastapi import Depends, Response
from pydantic import ValidationError

from app.core.context import AuthContext, get_auth_context
from app.core.enums import AuthErrorKind
from app.core.errors import (
    ConfigurationError,
    CsrfInvalid,
    MalformedPayload,
    ParamsMissing,
    TokenExpired,
)
from app.models.user import User
from app.schemas.auth import HANDOFF_TTL_SECONDS, HandoffPayload, LinkedInProfile, OAuthStatePayload
from app.services import token_signer
from app.services.account import AccountService
from app.services.identity_binding import IdentityBindingService
from app.services.linkedin import LinkedInClient, build_authorize_url
from app.services.oauth_state import OAuthStateStore, decode_state, encode_state
from app.services.session import SessionService
from app.utils.logging import debug_log
from app.utils.misc import get_unix_now
from app.utils.return_to import normalize_return_to


def append_query(url: str, **params: str) -> str:
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{urlencode(params)}"


class LinkedInAuthService:
    def __init__(self, ctx: Annotated[AuthContext, Depends(get_auth_context)]) -> None:
        self.ctx = ctx
        self.config = ctx.config
        self.state_store = OAuthStateStore(ctx.db, ctx.request, ctx.settings)
        self.bindings = IdentityBindingService(ctx.db)
        self.accounts = AccountService(ctx.db, ctx.settings)
        self.sessions = SessionService(ctx.db, ctx.settings)
        self.client = LinkedInClient(ctx.config)

    def normalize_return_to(self, value: str | None) -> str:
        return normalize_return_to(value, self.config.default_return_to)

    def _request_info(self) -> dict[str, str]:
        url = self.ctx.request.url
        return {"host": url.netloc, "uri": str(url.path) + (f"?{url.query}" if url.query else "")}

    async def begin_login(self, return_to: str | None) -> str:
        """Seed the OAuth session and return LinkedIn's authorization URL."""
        debug_log("LOGIN_START", **self._request_info())

        missing = self.config.missing(require_secret=False)
        if missing:
            debug_log("CONFIG_INVALID", missing=missing)
            raise ConfigurationError()

        return_to = self.normalize_return_to(return_to)
        debug_log("RETURN_TO_SET", returnTo=return_to)

        csrf = await self.state_store.begin(return_to)
        state = encode_state(OAuthStatePayload(csrf=csrf, return_to=return_to))
        debug_log("STATE_CREATED", state=state)

        url = build_authorize_url(self.config, state)
        debug_log("REDIRECT_LINKEDIN", url=url)
        return url

    async def handle_callback(self, code: str | None, state: str | None) -> str:
        """Validate the provider redirect and return the auto-login URL with the handoff token."""
        debug_log("CALLBACK_START", **self._request_info())

        missing = self.config.missing()
        if missing:
            debug_log("CONFIG_INVALID", missing=missing)
            raise ConfigurationError("LinkedIn authentication failed (incomplete config)")
        if not self.config.hmac_key:
            debug_log("HMAC_MISSING")
            raise ConfigurationError(
                "Internal error (session key missing)", kind=AuthErrorKind.HMAC_MISSING
            )

        if not code or not state:
            debug_log("PARAMS_MISSING")
            raise ParamsMissing()

        decoded = decode_state(state)
        session_csrf = await self.state_store.current_csrf()
        if (
            session_csrf
            and decoded.csrf
            and not hmac.compare_digest(session_csrf.encode("utf-8"), decoded.csrf.encode("utf-8"))
        ):
            debug_log("CSRF_INVALID")
            raise CsrfInvalid()

        return_to = self.normalize_return_to(
            decoded.return_to or await self.state_store.current_return_to()
        )

        token = await self.client.exchange_code(code)
        profile = await self.client.fetch_profile(token.access_token)

        await self.bindings.save_access_token(profile.sub, token.access_token, token.expires_in)
        debug_log("DB_TOKEN_SAVED", sub=profile.sub)
        debug_log("USER_APPROVED", sub=profile.sub, email=profile.email)

        handoff = self.issue_handoff(profile, return_to)
        url = append_query(self.config.auto_login_url, token=handoff)
        debug_log("REDIRECT_AUTOLOGIN", returnTo=return_to, url=self.config.auto_login_url)
        return url

    def issue_handoff(self, profile: LinkedInProfile, return_to: str) -> str:
        payload = HandoffPayload(
            **profile.model_dump(), return_to=return_to, exp=get_unix_now() + HANDOFF_TTL_SECONDS
        )
        return token_signer.sign(payload.model_dump(by_alias=True), self.config.hmac_key)

    def read_handoff(self, token: str | None) -> HandoffPayload:
        """Verify a handoff token and return its claims with a normalized return path."""
        if not token or token_signer.SEPARATOR not in token:
            raise MalformedPayload("Bad token", kind=AuthErrorKind.BAD_TOKEN)

        data = token_signer.verify(token, self.config.hmac_key)
        try:
            payload = HandoffPayload.model_validate(data)
        except ValidationError:
            debug_log("AUTOLOGIN_BAD_PAYLOAD")
            raise MalformedPayload() from None

        if payload.exp <= get_unix_now():
            debug_log("AUTOLOGIN_TOKEN_EXPIRED")
            raise TokenExpired()
        if not payload.sub or not payload.email:
            debug_log("AUTOLOGIN_MISSING_USERDATA")
            raise MalformedPayload("Missing user data", kind=AuthErrorKind.MISSING_USER_DATA)

        payload.return_to = self.normalize_return_to(payload.return_to)
        return payload

    async def complete_login(self, payload: HandoffPayload, response: Response) -> User:
        """Provision or update the account for ``payload`` and open its session on ``response``."""
        user = await self.accounts.resolve_account(payload)
        debug_log("AUTOLOGIN_USER_OK", userId=user.id, username=user.username)

        session = await self.sessions.establish(user, self.ctx.request, response)
        debug_log("AUTOLOGIN_SESSION", id=session.id)
        return user
