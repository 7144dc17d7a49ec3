from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

HANDOFF_TTL_SECONDS = 120


class OAuthStatePayload(BaseModel):
    """Value carried through LinkedIn in the ``state`` parameter."""

    model_config = ConfigDict(populate_by_name=True)

    csrf: str = ""
    return_to: str = Field(default="", alias="returnTo")


class LinkedInProfile(BaseModel):
    """Claims returned by the LinkedIn userinfo endpoint."""

    sub: str = ""
    name: str = ""
    email: str = ""
    picture: str = ""
    given_name: str = ""
    family_name: str = ""

    @field_validator("sub", "name", "email", "picture", "given_name", "family_name", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return "" if value is None else value


class LinkedInToken(BaseModel):
    access_token: str
    expires_in: int = 0


class HandoffPayload(LinkedInProfile):
    """Verified identity handed from the callback to the auto-login step."""

    model_config = ConfigDict(populate_by_name=True)

    return_to: str = Field(default="", alias="returnTo")
    exp: int = 0


class WelcomeResponse(BaseModel):
    logged_in: bool
    username: str | None = None
    user_id: int | None = None
    groups: str = "(none)"
    cookie_name: str
    cookie_domain: str
    cookie_path: str
    cookie_samesite: str
    links: dict[str, str] | None = None
