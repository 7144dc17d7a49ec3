from __future__ import annotations

from typing import Any
from urllib.parse import urlencode

import httpx
from loguru import logger
from pydantic import ValidationError

from app.core.config import LinkedInConfig
from app.core.enums import AuthErrorKind
from app.core.errors import ProviderCommunicationError
from app.schemas.auth import LinkedInProfile, LinkedInToken
from app.schemas.status import ConnectivityResult
from app.utils.logging import debug_log

LINKEDIN_AUTH_URL = "https://www.linkedin.com/oauth/v2/authorization"
LINKEDIN_TOKEN_URL = "https://www.linkedin.com/oauth/v2/accessToken"
LINKEDIN_USERINFO_URL = "https://api.linkedin.com/v2/userinfo"
LINKEDIN_DISCOVERY_URL = "https://www.linkedin.com/.well-known/openid-configuration"
LINKEDIN_SCOPE = "openid profile email"


def build_authorize_url(config: LinkedInConfig, state: str) -> str:
    params = {
        "response_type": "code",
        "client_id": config.client_id,
        "redirect_uri": config.redirect_uri,
        "scope": LINKEDIN_SCOPE,
        "state": state,
    }
    return f"{LINKEDIN_AUTH_URL}?{urlencode(params)}"


class LinkedInClient:
    """Server-to-server calls to LinkedIn's token and userinfo endpoints.

    Every call is a single attempt bounded by the configured timeout; a
    failure ends the login and the user starts over.
    """

    def __init__(self, config: LinkedInConfig) -> None:
        self.config = config

    async def exchange_code(self, code: str) -> LinkedInToken:
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.config.redirect_uri,
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
        }
        try:
            async with httpx.AsyncClient(timeout=self.config.timeout) as client:
                resp = await client.post(
                    LINKEDIN_TOKEN_URL,
                    data=data,
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
        except httpx.HTTPError as e:
            logger.error(f"LinkedIn token exchange failed: {type(e).__name__}: {e}")
            debug_log("TOKEN_EXCHANGE_FAILED", error=str(e))
            raise ProviderCommunicationError(
                "LinkedIn authentication failed (access token)"
            ) from None

        token = self._parse_token(resp)
        if token is None:
            logger.error(
                f"LinkedIn token exchange failed: HTTP {resp.status_code} "
                f"({AuthErrorKind.TOKEN_EXCHANGE_FAILED})"
            )
            debug_log("TOKEN_EXCHANGE_FAILED", status=resp.status_code, response=resp.text)
            raise ProviderCommunicationError("LinkedIn authentication failed (access token)")
        return token

    @staticmethod
    def _parse_token(resp: httpx.Response) -> LinkedInToken | None:
        if not resp.is_success:
            return None
        try:
            return LinkedInToken.model_validate(resp.json())
        except (ValueError, ValidationError):
            return None

    async def fetch_profile(self, access_token: str) -> LinkedInProfile:
        try:
            async with httpx.AsyncClient(timeout=self.config.timeout) as client:
                resp = await client.get(
                    LINKEDIN_USERINFO_URL, headers={"Authorization": f"Bearer {access_token}"}
                )
        except httpx.HTTPError as e:
            logger.error(f"LinkedIn userinfo failed: {type(e).__name__}: {e}")
            debug_log("USERINFO_FAILED", error=str(e))
            raise ProviderCommunicationError(
                "LinkedIn authentication failed (user info)", kind=AuthErrorKind.USERINFO_FAILED
            ) from None

        if not resp.is_success:
            logger.error(
                f"LinkedIn userinfo failed: HTTP {resp.status_code} "
                f"({AuthErrorKind.USERINFO_FAILED})"
            )
            debug_log("USERINFO_FAILED", status=resp.status_code, response=resp.text)
            raise ProviderCommunicationError(
                "LinkedIn authentication failed (user info)", kind=AuthErrorKind.USERINFO_FAILED
            )

        try:
            data: Any = resp.json()
            profile = LinkedInProfile.model_validate(data if isinstance(data, dict) else {})
        except (ValueError, ValidationError):
            profile = LinkedInProfile()

        if not (profile.sub and profile.name and profile.email):
            debug_log(
                "USERINFO_MISSING",
                sub="yes" if profile.sub else "no",
                email="yes" if profile.email else "no",
            )
            raise ProviderCommunicationError(
                "LinkedIn authentication failed (missing data)",
                kind=AuthErrorKind.USERINFO_MISSING,
            )
        return profile


async def check_connectivity(url: str = LINKEDIN_DISCOVERY_URL) -> ConnectivityResult:
    try:
        async with httpx.AsyncClient(timeout=5.0, follow_redirects=True) as client:
            resp = await client.get(url)
    except httpx.HTTPError as e:
        return ConnectivityResult(label=url, status="error", detail=str(e) or "request failed")

    return ConnectivityResult(
        label=url,
        status="ok" if resp.is_success else "warn",
        detail=f"HTTP {resp.status_code}",
    )
