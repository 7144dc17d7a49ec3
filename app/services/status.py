from __future__ import annotations

from app.core.config import Config, resolve_linkedin_config, settings
from app.schemas.status import ConfigStatus, ConnectivityResult
from app.services.linkedin import LINKEDIN_DISCOVERY_URL, check_connectivity

EMPTY = "(empty)"
MASK_KEEP = 3


def mask_secret(value: str) -> str:
    if len(value) <= MASK_KEEP * 2 + 2:
        return "*" * len(value)
    return value[:MASK_KEEP] + "*" * (len(value) - MASK_KEEP * 2) + value[-MASK_KEEP:]


class StatusService:
    def __init__(self, config: Config | None = None) -> None:
        self.config = config or settings

    def config_rows(self) -> list[ConfigStatus]:
        """Effective LinkedIn settings, with secrets masked."""
        resolved = resolve_linkedin_config(self.config)
        rows = {
            "client_id": resolved.client_id,
            "client_secret": mask_secret(resolved.client_secret),
            "redirect_uri": resolved.redirect_uri,
            "login_url": resolved.login_url,
            "auto_login_url": resolved.auto_login_url,
            "hmac_key": mask_secret(resolved.hmac_key),
            "default_return_to": resolved.default_return_to,
            "debug": "on" if resolved.debug else "off",
            "log_path": self.config.linkedin_log_path,
            "oauth_cookie_domain": self.config.oauth_cookie_domain or "",
            "session_cookie_domain": self.config.session_cookie_domain or "",
        }
        return [ConfigStatus(key=key, value=value or EMPTY) for key, value in rows.items()]

    async def check_connectivity(self) -> list[ConnectivityResult]:
        return [await check_connectivity(LINKEDIN_DISCOVERY_URL)]
