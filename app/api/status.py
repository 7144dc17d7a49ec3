from collections.abc import Sequence
from typing import Annotated

from fastapi import APIRouter, Depends

from app.core.security import require_admin
from app.models.user import User
from app.schemas.common import APIResponse
from app.schemas.status import ConfigStatus, ConnectivityResult
from app.services.status import StatusService

router = APIRouter(prefix="/linkedin/status", tags=["linkedin-status"])


@router.get("")
async def get_linkedin_status(
    _admin: Annotated[User, Depends(require_admin)],
) -> APIResponse[Sequence[ConfigStatus]]:
    return APIResponse(data=StatusService().config_rows())


@router.post("/connectivity")
async def check_linkedin_connectivity(
    _admin: Annotated[User, Depends(require_admin)],
) -> APIResponse[Sequence[ConnectivityResult]]:
    results = await StatusService().check_connectivity()
    return APIResponse(data=results)
