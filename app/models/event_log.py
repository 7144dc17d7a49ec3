import sqlmodel

from app.core.enums import ActivityType

from ._base import BaseModel


class EventLog(BaseModel, table=True):
    """Activity the host application attributes to an account."""

    __tablename__: str = "event_logs"

    id: int = sqlmodel.Field(primary_key=True, index=True, default=None)
    user_id: int = sqlmodel.Field(foreign_key="users.id", index=True)
    event_type: ActivityType
    context: dict = sqlmodel.Field(default_factory=dict, sa_column=sqlmodel.Column(sqlmodel.JSON))
