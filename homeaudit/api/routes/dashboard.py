from __future__ import annotations

from fastapi import APIRouter, Depends
from homeaudit.api.deps import get_db_session, http_error, require_roles
from homeaudit.api.schemas.dashboard import DashboardStatsResponse
from homeaudit.core.auth import Role
from homeaudit.domain import User
from homeaudit.domain.errors import DomainError
from homeaudit.domain.services.dashboard import DashboardService
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/dashboard", tags=["admin"])


@router.get("/stats", response_model=DashboardStatsResponse, summary="Admin dashboard figures")
async def dashboard_stats(
    user: User = Depends(require_roles([Role.ADMIN])),
    session: AsyncSession = Depends(get_db_session),
) -> DashboardStatsResponse:
    try:
        stats = await DashboardService(session).get_stats(actor=user)
    except DomainError as exc:
        raise http_error(exc) from exc
    return DashboardStatsResponse(
        appointments_today=stats.appointments_today,
        reports_generated=stats.reports_generated,
        monthly_revenue=stats.monthly_revenue,
        active_officers=stats.active_officers,
    )
