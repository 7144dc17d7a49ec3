from typing import Literal

from pydantic import BaseModel


class ConfigStatus(BaseModel):
    key: str
    value: str


class ConnectivityResult(BaseModel):
    label: str
    status: Literal["ok", "warn", "error"]
    detail: str
