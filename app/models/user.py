from __future__ import annotations

from datetime import datetime

import sqlmodel

from ._base import BaseModel


class User(BaseModel, table=True):
    """Local account owned by the host application."""

    __tablename__: str = "users"

    id: int | None = sqlmodel.Field(default=None, primary_key=True)
    username: str = sqlmodel.Field(max_length=255, index=True, unique=True)
    email: str = ""
    email_verified_at: datetime | None = sqlmodel.Field(
        default=None, sa_type=sqlmodel.DateTime(timezone=True)
    )
    real_name: str = ""
    is_admin: bool = False
    edit_count: int = sqlmodel.Field(default=0, ge=0)
    """Number of edits the host recorded for this account"""


class UserGroup(BaseModel, table=True):
    __tablename__: str = "user_groups"
    __table_args__ = (sqlmodel.UniqueConstraint("user_id", "group_name", name="uq_user_group"),)

    id: int | None = sqlmodel.Field(default=None, primary_key=True)
    user_id: int = sqlmodel.Field(foreign_key="users.id", index=True)
    group_name: str = sqlmodel.Field(max_length=64)


class UserPreference(BaseModel, table=True):
    __tablename__: str = "user_preferences"

    user_id: int = sqlmodel.Field(foreign_key="users.id", primary_key=True)
    key: str = sqlmodel.Field(primary_key=True, max_length=255)
    value: str
