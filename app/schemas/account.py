from datetime import datetime

from pydantic import BaseModel


class LinkedInAccount(BaseModel):
    """One provisioned LinkedIn identity as shown to administrators."""

    sub: str
    email: str = ""
    name: str = ""
    user_id: int | None = None
    username: str = ""
    token_updated_at: datetime | None = None
