from __future__ import annotations

import re

from fastapi import HTTPException
from loguru import logger
from sqlalchemy import delete, func
from sqlalchemy.exc import IntegrityError
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import Config, settings
from app.core.db import upsert_stmt
from app.core.enums import APPROVED_GROUP, AuthErrorKind
from app.core.errors import AccountProvisioningError, IntegrityGuard
from app.models.event_log import EventLog
from app.models.identity_binding import IdentityBinding
from app.models.session import Session
from app.models.user import User, UserGroup, UserPreference
from app.schemas.account import LinkedInAccount
from app.schemas.auth import HandoffPayload
from app.schemas.common import PaginationData
from app.services.identity_binding import IdentityBindingService
from app.utils.logging import debug_log
from app.utils.misc import get_utc_now

PLACEHOLDER_NAME = "LinkedIn User"
FEDERATED_SUFFIX = " LIN"
MAX_USERNAME_ATTEMPTS = 50
MAX_PROVISION_ATTEMPTS = 3
MAX_USERNAME_LENGTH = 255

_INVALID_USERNAME_CHARS = re.compile(r"[#<>\[\]|{}/@:\x00-\x1f\x7f]")
_IP_LIKE = re.compile(r"^\d{1,3}\.\d{1,3}\.\d{1,3}\.(\d{1,3}|xxx)$")


def split_name(full_name: str, given_name: str, family_name: str) -> tuple[str, str]:
    """Return (given, family), falling back to the first and last words of ``full_name``."""
    first, last = given_name.strip(), family_name.strip()
    if first or last:
        return first, last

    parts = full_name.split()
    if not parts:
        return "", ""
    return parts[0], parts[-1] if len(parts) > 1 else ""


def build_base_username(payload: HandoffPayload) -> str:
    first, last = split_name(payload.name, payload.given_name, payload.family_name)
    base = f"{first} {last}".strip() or PLACEHOLDER_NAME
    return canonicalize_username(base + FEDERATED_SUFFIX)


def canonicalize_username(name: str) -> str:
    name = " ".join(name.replace("_", " ").split())
    return name[:1].upper() + name[1:]


class AccountService:
    def __init__(self, db: AsyncSession, config: Config | None = None) -> None:
        self.db = db
        self.config = config or settings
        self.bindings = IdentityBindingService(db)

    async def get_user(self, user_id: int) -> User | None:
        result = await self.db.exec(select(User).where(User.id == user_id))
        return result.first()

    async def get_user_by_name(self, username: str) -> User | None:
        result = await self.db.exec(select(User).where(User.username == username))
        return result.first()

    async def get_bound_user(self, sub: str) -> User | None:
        result = await self.db.exec(
            select(User)
            .join(IdentityBinding, col(IdentityBinding.user_id) == col(User.id))
            .where(IdentityBinding.sub == sub)
        )
        return result.first()

    async def get_groups(self, user_id: int) -> list[str]:
        result = await self.db.exec(
            select(UserGroup.group_name)
            .where(UserGroup.user_id == user_id)
            .order_by(col(UserGroup.group_name))
        )
        return list(result.all())

    def is_usable_username(self, name: str) -> bool:
        if not name or len(name.encode("utf-8")) > MAX_USERNAME_LENGTH:
            return False
        if name != canonicalize_username(name):
            return False
        if _INVALID_USERNAME_CHARS.search(name) or _IP_LIKE.match(name):
            return False
        return name not in self.config.reserved_usernames

    async def find_available_username(self, base: str) -> str:
        """Probe ``base``, ``base 1``, ``base 2``... for a usable name nobody holds."""
        for attempt in range(MAX_USERNAME_ATTEMPTS + 1):
            candidate = base if attempt == 0 else f"{base} {attempt}"
            if not self.is_usable_username(candidate):
                continue
            if await self.get_user_by_name(candidate) is not None:
                continue
            return candidate

        debug_log("AUTOLOGIN_USERNAME_EXHAUSTED", base=base)
        raise AccountProvisioningError()

    async def ensure_group(self, user: User, group: str) -> None:
        now = get_utc_now()
        stmt = upsert_stmt(self.db, UserGroup).values(
            user_id=user.id, group_name=group, created_at=now, updated_at=now
        )
        stmt = stmt.on_conflict_do_nothing(index_elements=["user_id", "group_name"])
        await self.db.execute(stmt)

    async def resolve_account(self, payload: HandoffPayload) -> User:
        """Find or create the local account for ``payload.sub``.

        Safe to call repeatedly and concurrently for the same subject: the
        binding is checked right before an account is created, and a request
        that loses the race to bind the subject discards its own account and
        reuses the winner's.
        """
        for _ in range(MAX_PROVISION_ATTEMPTS):
            user = await self.get_bound_user(payload.sub)
            if user is not None:
                self._refresh_claims(user, payload)
                await self.ensure_group(user, APPROVED_GROUP)
                await self.bindings.bind_user(payload.sub, user)
                await self.db.commit()
                return user

            await self.bindings.release_orphan(payload.sub)
            user = await self._provision(payload)
            if user is not None:
                return user

        raise AccountProvisioningError(
            "DB create failed", kind=AuthErrorKind.ACCOUNT_CREATE_FAILED
        )

    def _refresh_claims(self, user: User, payload: HandoffPayload) -> None:
        changed = False
        if payload.email and user.email != payload.email:
            user.email = payload.email
            user.email_verified_at = get_utc_now()
            changed = True
        if payload.name and not user.real_name:
            user.real_name = payload.name
            changed = True
        if changed:
            self.db.add(user)
            logger.info(f"Updated account {user.username} from LinkedIn claims")

    async def _provision(self, payload: HandoffPayload) -> User | None:
        username = await self.find_available_username(build_base_username(payload))
        user = User(
            username=username,
            email=payload.email,
            email_verified_at=get_utc_now(),
            real_name=payload.name or username,
        )
        self.db.add(user)
        try:
            await self.db.flush()
            owner = await self.bindings.bind_user(payload.sub, user, claim=True)
            if owner != user.id:
                await self.db.rollback()
                logger.info(f"sub={payload.sub} was provisioned concurrently, reusing account")
                return None
            await self.ensure_group(user, APPROVED_GROUP)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.warning(f"Username {username!r} was taken concurrently, retrying")
            return None

        await self.db.refresh(user)
        logger.info(f"Created account {user.username} (id={user.id}) for sub={payload.sub}")
        return user

    async def list_accounts(
        self, *, page: int, page_size: int
    ) -> tuple[list[LinkedInAccount], PaginationData]:
        offset = (page - 1) * page_size

        total_result = await self.db.exec(select(func.count()).select_from(IdentityBinding))
        total_items = total_result.one()
        total_pages = (total_items + page_size - 1) // page_size

        result = await self.db.exec(
            select(IdentityBinding, User)
            .outerjoin(User, col(IdentityBinding.user_id) == col(User.id))
            .order_by(col(IdentityBinding.id))
            .offset(offset)
            .limit(page_size)
        )

        accounts: list[LinkedInAccount] = []
        for binding, user in result.all():
            username = binding.username or (user.username if user else "")
            accounts.append(
                LinkedInAccount(
                    sub=binding.sub,
                    email=user.email if user else "",
                    name=(user.real_name if user else "") or username,
                    user_id=binding.user_id,
                    username=username,
                    token_updated_at=binding.updated_at,
                )
            )

        pagination = PaginationData(
            page=page, page_size=page_size, total_items=total_items, total_pages=total_pages
        )
        return accounts, pagination

    async def has_activity(self, user: User) -> bool:
        if user.edit_count > 0:
            return True
        result = await self.db.exec(
            select(func.count()).select_from(EventLog).where(EventLog.user_id == user.id)
        )
        return result.one() > 0

    async def hard_delete(self, sub: str, user_id: int | None = None) -> None:
        """Remove the binding for ``sub`` and the account it provisioned.

        Accounts with edits or logged activity are never deleted. Dependent
        rows go in the same transaction as the account row.
        """
        binding = await self.bindings.get(sub)
        if binding is None:
            raise HTTPException(status_code=404, detail="LinkedIn record not found")
        if binding.user_id and user_id and binding.user_id != user_id:
            raise IntegrityGuard(
                "User mismatch for this LinkedIn record", kind=AuthErrorKind.USER_MISMATCH
            )

        target_id = user_id or binding.user_id
        user = await self.get_user(target_id) if target_id else None

        if user is not None and await self.has_activity(user):
            logger.warning(f"Refusing hard delete of {user.username}: account has activity")
            raise IntegrityGuard()

        await self.db.execute(delete(IdentityBinding).where(col(IdentityBinding.sub) == sub))
        if user is not None:
            for model in (UserGroup, UserPreference, Session, IdentityBinding):
                await self.db.execute(delete(model).where(col(model.user_id) == user.id))
            await self.db.execute(delete(User).where(col(User.id) == user.id))
        await self.db.commit()
        logger.info(f"Hard deleted LinkedIn record sub={sub} user_id={target_id}")
