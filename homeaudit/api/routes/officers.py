from __future__ import annotations

from fastapi import APIRouter, Depends
from homeaudit.api.deps import get_db_session, http_error, require_roles
from homeaudit.api.schemas.auth import UserResponse
from homeaudit.core.auth import Role
from homeaudit.domain import User
from homeaudit.domain.errors import DomainError
from homeaudit.domain.services.dashboard import DashboardService
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/officers", tags=["admin"])


@router.get("", response_model=list[UserResponse], summary="List officer accounts")
async def list_officers(
    user: User = Depends(require_roles([Role.ADMIN])),
    session: AsyncSession = Depends(get_db_session),
) -> list[UserResponse]:
    try:
        officers = await DashboardService(session).list_officers(actor=user)
    except DomainError as exc:
        raise http_error(exc) from exc
    return [UserResponse.model_validate(officer) for officer in officers]
