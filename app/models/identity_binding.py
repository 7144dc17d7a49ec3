from __future__ import annotations

import sqlmodel

from ._base import BaseModel


class IdentityBinding(BaseModel, table=True):
    """Durable mapping from a LinkedIn subject to a local account."""

    __tablename__: str = "identity_bindings"

    id: int | None = sqlmodel.Field(default=None, primary_key=True)
    sub: str = sqlmodel.Field(max_length=255, index=True, unique=True)
    """LinkedIn subject identifier"""
    user_id: int | None = sqlmodel.Field(default=None, index=True, foreign_key="users.id")
    username: str = ""
    access_token: str = ""
    expires_at: int = 0
    """Access token expiry as a unix timestamp"""
