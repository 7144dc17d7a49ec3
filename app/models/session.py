from __future__ import annotations

from datetime import datetime

import sqlmodel

from ._base import BaseModel


class Session(BaseModel, table=True):
    __tablename__: str = "sessions"

    id: int | None = sqlmodel.Field(default=None, primary_key=True)
    user_id: int = sqlmodel.Field(index=True, foreign_key="users.id")
    ip: str | None = None
    revoked: bool = False
    expires_at: datetime = sqlmodel.Field(sa_type=sqlmodel.DateTime(timezone=True))
