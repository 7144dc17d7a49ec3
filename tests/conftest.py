from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from helpers import CLIENT_ID, CLIENT_SECRET, HMAC_KEY, REDIRECT_URI, auth_headers, seed
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import Config, settings
from app.core.db import get_db
from app.main import app
from app.models.user import User


@pytest.fixture(autouse=True)
def linkedin_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Config:
    overrides = {
        "jwt_secret": "test-jwt-secret",
        "linkedin_client_id": CLIENT_ID,
        "linkedin_client_secret": CLIENT_SECRET,
        "linkedin_redirect_uri": REDIRECT_URI,
        "linkedin_callback_url": None,
        "linkedin_hmac_key": HMAC_KEY,
        "linkedin_default_return_to": None,
        "linkedin_debug": False,
        "linkedin_log_path": str(tmp_path / "sso_login_debug.log"),
        "public_base_url": None,
        "oauth_cookie_domain": None,
        "session_cookie_domain": None,
        "session_cookie_samesite": None,
    }
    for key, value in overrides.items():
        monkeypatch.setattr(settings, key, value)
    return settings


@pytest.fixture
def sync_engine(tmp_path: Path) -> Iterator[Engine]:
    engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}")
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_engine(sync_engine: Engine, tmp_path: Path) -> AsyncEngine:
    return create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)


@pytest_asyncio.fixture
async def db(db_engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    async with AsyncSession(db_engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def client(db_engine: AsyncEngine) -> Iterator[TestClient]:
    async def override_get_db() -> AsyncIterator[AsyncSession]:
        async with AsyncSession(
            db_engine, autocommit=False, autoflush=False, expire_on_commit=False
        ) as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app, base_url="https://testserver", follow_redirects=False)
    app.dependency_overrides.clear()


@pytest.fixture
def admin(sync_engine: Engine) -> User:
    (user,) = seed(sync_engine, User(username="Admin", email="admin@example.com", is_admin=True))
    return user


@pytest.fixture
def admin_headers(sync_engine: Engine, admin: User) -> dict[str, str]:
    return auth_headers(sync_engine, admin)
