from collections.abc import Sequence
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.db import get_db
from app.core.security import require_admin
from app.models.user import User
from app.schemas.account import LinkedInAccount
from app.schemas.common import APIResponse, PaginatedResponse
from app.services.account import AccountService

router = APIRouter(prefix="/linkedin/accounts", tags=["linkedin-accounts"])


@router.get("")
async def get_linkedin_accounts(
    db: Annotated[AsyncSession, Depends(get_db)],
    _admin: Annotated[User, Depends(require_admin)],
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1)] = 10,
) -> PaginatedResponse[Sequence[LinkedInAccount]]:
    accounts, pagination = await AccountService(db).list_accounts(page=page, page_size=page_size)
    return PaginatedResponse(data=accounts, pagination=pagination)


@router.delete("/{sub}")
async def delete_linkedin_account(
    sub: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    _admin: Annotated[User, Depends(require_admin)],
    user_id: Annotated[int | None, Query(ge=1)] = None,
) -> APIResponse[None]:
    await AccountService(db).hard_delete(sub, user_id)
    return APIResponse(message="LinkedIn account deleted successfully")
