from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from homeaudit.domain import User
from homeaudit.domain.errors import PermissionDeniedError
from homeaudit.infrastructure.db.models import ReportStatus, UserModel
from homeaudit.infrastructure.repositories import UnitOfWork
from sqlalchemy.ext.asyncio import AsyncSession


@dataclass(slots=True)
class DashboardStats:
    appointments_today: int
    reports_generated: int
    monthly_revenue: Decimal
    active_officers: int


def _day_bounds(now: datetime) -> tuple[datetime, datetime]:
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


def _month_bounds(now: datetime) -> tuple[datetime, datetime]:
    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


class DashboardService:
    """Admin overview figures."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.uow = UnitOfWork(session)

    async def get_stats(self, *, actor: User, now: datetime | None = None) -> DashboardStats:
        if not actor.is_admin:
            raise PermissionDeniedError("Only admins can view dashboard stats")

        now = now or datetime.now(UTC)
        day_start, day_end = _day_bounds(now)
        month_start, month_end = _month_bounds(now)

        return DashboardStats(
            appointments_today=await self.uow.appointments.count_created_between(
                day_start, day_end
            ),
            reports_generated=await self.uow.reports.count_by_status(ReportStatus.COMPLETED),
            monthly_revenue=await self.uow.payments.completed_revenue_between(
                month_start, month_end
            ),
            active_officers=await self.uow.users.count_active_officers(),
        )

    async def list_officers(self, *, actor: User) -> list[UserModel]:
        if not actor.is_admin:
            raise PermissionDeniedError("Only admins can list officers")
        return await self.uow.users.list_officers()
