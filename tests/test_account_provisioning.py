from __future__ import annotations

import pytest
from helpers import bindings, group_names, seed, users
from sqlalchemy.engine import Engine
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import Config
from app.core.errors import AccountProvisioningError
from app.models.identity_binding import IdentityBinding
from app.models.user import User
from app.schemas.auth import HandoffPayload
from app.services import account
from app.services.account import AccountService, build_base_username, split_name


def _payload(**values: str) -> HandoffPayload:
    data = {"sub": "u1", "name": "Jane Doe", "email": "jane@example.com"} | values
    return HandoffPayload.model_validate(data)


@pytest.mark.parametrize(
    ("name", "given", "family", "expected"),
    [
        ("Jane Doe", "", "", ("Jane", "Doe")),
        ("Jane Mary Doe", "", "", ("Jane", "Doe")),
        ("Cher", "", "", ("Cher", "")),
        ("Ignored Name", "Jane", "Doe", ("Jane", "Doe")),
        ("Ignored", "", "Doe", ("", "Doe")),
        ("   ", "", "", ("", "")),
    ],
)
def test_split_name(name: str, given: str, family: str, expected: tuple[str, str]):
    assert split_name(name, given, family) == expected


@pytest.mark.parametrize(
    ("values", "expected"),
    [
        ({}, "Jane Doe LIN"),
        ({"given_name": "jane", "family_name": "doe"}, "Jane doe LIN"),
        ({"name": "Cher"}, "Cher LIN"),
        ({"name": ""}, "LinkedIn User LIN"),
        ({"name": "jean_luc picard"}, "Jean luc picard LIN"),
    ],
)
def test_build_base_username(values: dict[str, str], expected: str):
    assert build_base_username(_payload(**values)) == expected


@pytest.mark.asyncio
async def test_collision_appends_counter(db: AsyncSession, sync_engine: Engine):
    seed(sync_engine, User(username="Jane Doe LIN", email="other@example.com"))

    user = await AccountService(db).resolve_account(_payload(sub="u2"))

    assert user.username == "Jane Doe LIN 1"
    assert {u.username for u in users(sync_engine)} == {"Jane Doe LIN", "Jane Doe LIN 1"}


@pytest.mark.asyncio
async def test_reserved_names_are_skipped(
    db: AsyncSession, linkedin_settings: Config, monkeypatch: pytest.MonkeyPatch
):
    monkeypatch.setattr(linkedin_settings, "reserved_usernames", ["Jane Doe LIN"])

    user = await AccountService(db, linkedin_settings).resolve_account(_payload())

    assert user.username == "Jane Doe LIN 1"


@pytest.mark.asyncio
async def test_username_probe_is_bounded(
    db: AsyncSession, sync_engine: Engine, monkeypatch: pytest.MonkeyPatch
):
    monkeypatch.setattr(account, "MAX_USERNAME_ATTEMPTS", 2)
    seed(
        sync_engine,
        User(username="Jane Doe LIN"),
        User(username="Jane Doe LIN 1"),
        User(username="Jane Doe LIN 2"),
    )

    with pytest.raises(AccountProvisioningError) as exc_info:
        await AccountService(db).resolve_account(_payload())

    assert exc_info.value.status_code == 500
    assert bindings(sync_engine) == []


@pytest.mark.parametrize(
    "name", ["", "jane", "Jane  Doe", "Jane#Doe", "Jane/Doe", "127.0.0.1", "a" * 256]
)
@pytest.mark.asyncio
async def test_unusable_usernames(db: AsyncSession, name: str):
    assert AccountService(db).is_usable_username(name) is False


@pytest.mark.asyncio
async def test_resolve_is_idempotent(db: AsyncSession, sync_engine: Engine):
    service = AccountService(db)

    first = await service.resolve_account(_payload())
    second = await service.resolve_account(_payload())

    assert first.id == second.id
    assert len(users(sync_engine)) == 1
    (binding,) = bindings(sync_engine)
    assert binding.user_id == first.id
    assert group_names(sync_engine, first.id) == ["approved"]


@pytest.mark.asyncio
async def test_existing_account_gets_new_email_and_missing_name(
    db: AsyncSession, sync_engine: Engine
):
    (existing,) = seed(sync_engine, User(username="Jane Doe LIN", email="old@example.com"))
    seed(sync_engine, IdentityBinding(sub="u1", user_id=existing.id, username=existing.username))

    user = await AccountService(db).resolve_account(_payload(email="new@example.com"))

    assert user.id == existing.id
    (stored,) = users(sync_engine)
    assert stored.email == "new@example.com"
    assert stored.email_verified_at is not None
    assert stored.real_name == "Jane Doe"
    assert group_names(sync_engine, existing.id) == ["approved"]


@pytest.mark.asyncio
async def test_losing_a_provisioning_race_reuses_the_winner(
    db: AsyncSession, sync_engine: Engine, monkeypatch: pytest.MonkeyPatch
):
    (winner,) = seed(sync_engine, User(username="Winner", email="jane@example.com"))
    seed(sync_engine, IdentityBinding(sub="u1", user_id=winner.id, username="Winner"))
    service = AccountService(db)

    # binding lookup that missed the concurrent winner once
    real_lookup = service.get_bound_user
    calls = 0

    async def stale_lookup(sub: str) -> User | None:
        nonlocal calls
        calls += 1
        return None if calls == 1 else await real_lookup(sub)

    monkeypatch.setattr(service, "get_bound_user", stale_lookup)

    user = await service.resolve_account(_payload())

    assert user.id == winner.id
    assert [u.username for u in users(sync_engine)] == ["Winner"]
    (binding,) = bindings(sync_engine)
    assert binding.user_id == winner.id


@pytest.mark.asyncio
async def test_unbound_token_row_is_claimed(db: AsyncSession, sync_engine: Engine):
    seed(sync_engine, IdentityBinding(sub="u1", access_token="tok", expires_at=1))

    user = await AccountService(db).resolve_account(_payload())

    (binding,) = bindings(sync_engine)
    assert binding.user_id == user.id
    assert binding.username == "Jane Doe LIN"
    assert binding.access_token == "tok"


@pytest.mark.asyncio
async def test_binding_to_deleted_account_is_reprovisioned(db: AsyncSession, sync_engine: Engine):
    gone, other = seed(
        sync_engine,
        User(username="Jane Doe LIN", email="jane@example.com"),
        User(username="Other"),
    )
    seed(sync_engine, IdentityBinding(sub="u1", user_id=gone.id, username=gone.username))
    with sync_engine.begin() as conn:
        conn.exec_driver_sql("DELETE FROM users WHERE id = ?", (gone.id,))

    user = await AccountService(db).resolve_account(_payload())

    assert user.username == "Jane Doe LIN"
    assert user.id not in (gone.id, other.id)
    (binding,) = bindings(sync_engine)
    assert binding.user_id == user.id
    assert binding.username == "Jane Doe LIN"
    assert group_names(sync_engine, user.id) == ["approved"]
