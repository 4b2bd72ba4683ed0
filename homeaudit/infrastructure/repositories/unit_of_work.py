from __future__ import annotations

import structlog
from homeaudit.infrastructure.repositories.entities import (
    AgreementRepository,
    AppointmentRepository,
    AuditItemRepository,
    PaymentRepository,
    ReportRepository,
    TitleMonitoringRepository,
    UserRepository,
)
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


class UnitOfWork:
    """Bundles the entity repositories over one session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.users = UserRepository(session)
        self.appointments = AppointmentRepository(session)
        self.audit_items = AuditItemRepository(session)
        self.reports = ReportRepository(session)
        self.payments = PaymentRepository(session)
        self.agreements = AgreementRepository(session)
        self.title_monitoring = TitleMonitoringRepository(session)

    async def __aenter__(self) -> UnitOfWork:
        logger.debug("uow_enter")
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc:
            await self.rollback()
        else:
            await self.commit()
        logger.debug("uow_exit", exc_type=str(exc_type) if exc_type else None)

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()
        logger.debug("uow_rollback")

    async def refresh(self, instance: object) -> None:
        await self.session.refresh(instance)
