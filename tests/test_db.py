from types import SimpleNamespace

import pytest
from sqlalchemy.dialects import sqlite
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.db import upsert_stmt
from app.models.identity_binding import IdentityBinding


def _session(dialect: str) -> AsyncSession:
    bind = SimpleNamespace(dialect=SimpleNamespace(name=dialect))
    return SimpleNamespace(bind=bind)  # type: ignore[return-value]


def test_upsert_uses_dialect_insert():
    assert isinstance(upsert_stmt(_session("sqlite"), IdentityBinding), sqlite.Insert)


def test_upsert_rejects_unsupported_dialect():
    with pytest.raises(ValueError, match="mysql"):
        upsert_stmt(_session("mysql"), IdentityBinding)
