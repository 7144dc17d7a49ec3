from dataclasses import dataclass
from typing import Literal

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings

CALLBACK_PATH = "/auth/linkedin/callback"
FALLBACK_RETURN_TO = "/Main_Page"


class Config(BaseSettings):
    db_url: str = "sqlite+aiosqlite:///./linkedin_auth.db"
    env: Literal["prod", "dev"] = "prod"
    public_base_url: str | None = None

    # Session JWT
    # IMPORTANT: set in environment for production
    jwt_secret: str | None = None
    jwt_algorithm: str = "HS256"
    session_ttl_seconds: int = 60 * 60  # 1 hour

    # LinkedIn
    linkedin_client_id: str | None = None
    linkedin_client_secret: str | None = None
    linkedin_redirect_uri: str | None = None
    linkedin_callback_url: str | None = None
    linkedin_login_url: str = "/auth/linkedin/login"
    linkedin_auto_login_url: str = "/auth/linkedin/auto-login"
    linkedin_hmac_key: str | None = None
    linkedin_default_return_to: str | None = None
    linkedin_debug: bool = False
    linkedin_log_path: str = "sso_login_debug.log"
    provider_timeout_seconds: float = 10.0

    # Short-lived OAuth session, shared across subdomains
    oauth_cookie_name: str = "oauth_linkedin"
    oauth_cookie_domain: str | None = None
    oauth_state_ttl_seconds: int = 600

    # Main application session
    session_cookie_name: str = "linkedin_session"
    session_cookie_domain: str | None = None
    session_cookie_path: str = "/"
    session_cookie_samesite: str | None = None

    reserved_usernames: list[str] = [
        "MediaWiki default",
        "Maintenance script",
        "Conversion script",
        "Template namespace initialisation script",
    ]

    @field_validator(
        "public_base_url",
        "linkedin_client_id",
        "linkedin_client_secret",
        "linkedin_redirect_uri",
        "linkedin_callback_url",
        "linkedin_hmac_key",
        "linkedin_default_return_to",
        "oauth_cookie_domain",
        "session_cookie_domain",
        "session_cookie_samesite",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @property
    def is_dev(self) -> bool:
        return self.env == "dev"


@dataclass(frozen=True)
class LinkedInConfig:
    """Resolved LinkedIn settings, consulted once per request."""

    client_id: str
    client_secret: str
    redirect_uri: str
    hmac_key: str
    login_url: str
    auto_login_url: str
    default_return_to: str
    debug: bool
    timeout: float

    def missing(self, *, require_secret: bool = True) -> list[str]:
        fields = {"client_id": self.client_id, "redirect_uri": self.redirect_uri}
        if require_secret:
            fields["client_secret"] = self.client_secret
        return [name for name, value in fields.items() if not value]


def resolve_linkedin_config(config: "Config | None" = None) -> LinkedInConfig:
    """Collapse the LinkedIn settings into a single typed result.

    Precedence for the redirect URI: explicit callback URL, then the
    configured redirect URI, then one derived from ``public_base_url``.
    """
    config = config or settings

    redirect_uri = config.linkedin_callback_url or config.linkedin_redirect_uri
    if not redirect_uri and config.public_base_url:
        redirect_uri = config.public_base_url.rstrip("/") + CALLBACK_PATH

    return LinkedInConfig(
        client_id=config.linkedin_client_id or "",
        client_secret=config.linkedin_client_secret or "",
        redirect_uri=redirect_uri or "",
        hmac_key=config.linkedin_hmac_key or "",
        login_url=config.linkedin_login_url,
        auto_login_url=config.linkedin_auto_login_url,
        default_return_to=config.linkedin_default_return_to or FALLBACK_RETURN_TO,
        debug=config.linkedin_debug,
        timeout=config.provider_timeout_seconds,
    )


load_dotenv()
settings = Config()
