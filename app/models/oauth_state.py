from __future__ import annotations

from datetime import datetime

import sqlmodel

from ._base import BaseModel


class OAuthState(BaseModel, table=True):
    """Server-side OAuth session holding the CSRF nonce between login and callback."""

    __tablename__: str = "oauth_states"

    id: int = sqlmodel.Field(primary_key=True, index=True, default=None)
    session_id: str = sqlmodel.Field(max_length=255, index=True, unique=True)
    csrf: str = sqlmodel.Field(max_length=64)
    return_to: str = ""
    expires_at: datetime = sqlmodel.Field(index=True, sa_type=sqlmodel.DateTime(timezone=True))
