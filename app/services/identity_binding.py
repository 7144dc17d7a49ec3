from __future__ import annotations

from loguru import logger
from sqlalchemy import or_, update
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.db import upsert_stmt
from app.models.identity_binding import IdentityBinding
from app.models.user import User
from app.utils.misc import get_unix_now, get_utc_now


class IdentityBindingService:
    """Reads and atomic upserts of ``identity_bindings``, keyed by ``sub``."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get(self, sub: str) -> IdentityBinding | None:
        result = await self.db.exec(select(IdentityBinding).where(IdentityBinding.sub == sub))
        return result.first()

    async def save_access_token(self, sub: str, access_token: str, expires_in: int) -> None:
        """Record the latest LinkedIn access token for ``sub`` and commit."""
        now = get_utc_now()
        expires_at = get_unix_now() + max(0, expires_in)
        stmt = upsert_stmt(self.db, IdentityBinding).values(
            sub=sub,
            access_token=access_token,
            expires_at=expires_at,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["sub"],
            set_={"access_token": access_token, "expires_at": expires_at, "updated_at": now},
        )
        await self.db.execute(stmt)
        await self.db.commit()
        logger.debug(f"Saved LinkedIn token for sub={sub}")

    async def release_orphan(self, sub: str) -> None:
        """Clear a binding for ``sub`` whose account no longer exists.

        The caller owns the transaction.
        """
        result = await self.db.execute(
            update(IdentityBinding)
            .where(
                col(IdentityBinding.sub) == sub,
                col(IdentityBinding.user_id).is_not(None),
                col(IdentityBinding.user_id).not_in(select(col(User.id))),
            )
            .values(user_id=None, username="", updated_at=get_utc_now())
        )
        if result.rowcount:
            logger.warning(f"Released binding for sub={sub} from a deleted account")

    async def bind_user(self, sub: str, user: User, *, claim: bool = False) -> int | None:
        """Point ``sub`` at ``user`` and return the account the binding ends up on.

        With ``claim`` set, an existing binding that already names another
        account is left untouched, so a concurrent provisioning of the same
        ``sub`` keeps whichever account won. The caller owns the transaction.
        """
        now = get_utc_now()
        stmt = upsert_stmt(self.db, IdentityBinding).values(
            sub=sub,
            user_id=user.id,
            username=user.username,
            access_token="",
            expires_at=0,
            created_at=now,
            updated_at=now,
        )
        where = None
        if claim:
            where = or_(
                col(IdentityBinding.user_id).is_(None),
                col(IdentityBinding.user_id) == user.id,
            )
        stmt = stmt.on_conflict_do_update(
            index_elements=["sub"],
            set_={"user_id": user.id, "username": user.username, "updated_at": now},
            where=where,
        )
        await self.db.execute(stmt)

        result = await self.db.exec(
            select(IdentityBinding.user_id).where(IdentityBinding.sub == sub)
        )
        return result.first()
