"""Typed CRUD access to the persisted entities.

Repositories only flush; committing is the caller's job (see ``UnitOfWork``).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from homeaudit.infrastructure.db.models import (
    AlertSeverity,
    Appointment,
    AppointmentStatus,
    AuditItem,
    Payment,
    PaymentStatus,
    Report,
    ReportStatus,
    SignatureAgreement,
    SubscriptionStatus,
    TitleAlert,
    TitleMonitoringSubscription,
    UserModel,
    UserRole,
)
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

if TYPE_CHECKING:
    from sqlalchemy import Select
    from sqlalchemy.orm.attributes import InstrumentedAttribute

CENTS = Decimal("0.01")


def _to_decimal(value: object) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENTS)


@dataclass
class UserRepository:
    session: AsyncSession

    async def get(self, user_id: str) -> UserModel | None:
        return await self.session.get(UserModel, user_id)

    async def get_by_email(self, email: str) -> UserModel | None:
        stmt = select(UserModel).where(UserModel.email == email.lower())
        return await self.session.scalar(stmt)

    async def add(self, user: UserModel) -> UserModel:
        self.session.add(user)
        await self.session.flush()
        return user

    async def list_officers(self, *, active_only: bool = False) -> list[UserModel]:
        stmt: Select[tuple[UserModel]] = select(UserModel).where(
            UserModel.role == UserRole.OFFICER
        )
        if active_only:
            stmt = stmt.where(UserModel.is_active.is_(True))
        stmt = stmt.order_by(UserModel.full_name)
        return list((await self.session.execute(stmt)).scalars().all())

    async def count_active_officers(self) -> int:
        stmt = select(func.count(UserModel.id)).where(
            UserModel.role == UserRole.OFFICER,
            UserModel.is_active.is_(True),
        )
        return int(await self.session.scalar(stmt) or 0)


@dataclass
class AppointmentRepository:
    session: AsyncSession

    async def get(self, appointment_id: str, *, for_update: bool = False) -> Appointment | None:
        stmt = select(Appointment).where(Appointment.id == appointment_id)
        if for_update:
            stmt = stmt.with_for_update()
        return await self.session.scalar(stmt)

    async def add(self, appointment: Appointment) -> Appointment:
        self.session.add(appointment)
        await self.session.flush()
        return appointment

    async def list_all(self) -> list[Appointment]:
        return await self._list(select(Appointment))

    async def list_for_officer(self, officer_id: str) -> list[Appointment]:
        return await self._list(select(Appointment).where(Appointment.officer_id == officer_id))

    async def list_for_customer(self, customer_id: str) -> list[Appointment]:
        return await self._list(select(Appointment).where(Appointment.customer_id == customer_id))

    async def list_due_for_reminder(
        self,
        *,
        visit_date: date,
        sent_marker: InstrumentedAttribute,
    ) -> list[Appointment]:
        """Scheduled appointments on ``visit_date`` whose ``sent_marker`` column is unset."""
        stmt = select(Appointment).where(
            Appointment.status == AppointmentStatus.SCHEDULED,
            Appointment.preferred_date == visit_date,
            sent_marker.is_(None),
        )
        return await self._list(stmt)

    async def count_created_between(self, start: datetime, end: datetime) -> int:
        stmt = select(func.count(Appointment.id)).where(
            Appointment.created_at >= start,
            Appointment.created_at < end,
        )
        return int(await self.session.scalar(stmt) or 0)

    async def _list(self, stmt: Select[tuple[Appointment]]) -> list[Appointment]:
        stmt = stmt.order_by(Appointment.created_at.desc())
        return list((await self.session.execute(stmt)).scalars().all())


@dataclass
class AuditItemRepository:
    session: AsyncSession

    async def get(self, item_id: str) -> AuditItem | None:
        return await self.session.get(AuditItem, item_id)

    async def add(self, item: AuditItem) -> AuditItem:
        self.session.add(item)
        await self.session.flush()
        return item

    async def delete(self, item: AuditItem) -> None:
        await self.session.delete(item)
        await self.session.flush()

    async def list_for_appointment(self, appointment_id: str) -> list[AuditItem]:
        """All items of one appointment in a single query, most recent first."""
        stmt = (
            select(AuditItem)
            .where(AuditItem.appointment_id == appointment_id)
            .order_by(AuditItem.sequence.desc())
        )
        return list((await self.session.execute(stmt)).scalars().all())

    async def next_sequence(self, appointment_id: str) -> int:
        """Caller must hold the appointment row lock."""
        stmt = select(func.coalesce(func.max(AuditItem.sequence), 0)).where(
            AuditItem.appointment_id == appointment_id
        )
        return int(await self.session.scalar(stmt) or 0) + 1

    async def count_for_appointment(self, appointment_id: str) -> int:
        stmt = select(func.count(AuditItem.id)).where(AuditItem.appointment_id == appointment_id)
        return int(await self.session.scalar(stmt) or 0)

    async def total_value_for_appointment(self, appointment_id: str) -> Decimal:
        stmt = select(func.coalesce(func.sum(AuditItem.estimated_value), 0)).where(
            AuditItem.appointment_id == appointment_id
        )
        return _to_decimal(await self.session.scalar(stmt))


@dataclass
class ReportRepository:
    session: AsyncSession

    async def get(self, report_id: str) -> Report | None:
        return await self.session.get(Report, report_id)

    async def get_by_appointment(self, appointment_id: str) -> Report | None:
        stmt = select(Report).where(Report.appointment_id == appointment_id)
        return await self.session.scalar(stmt)

    async def add(self, report: Report) -> Report:
        self.session.add(report)
        await self.session.flush()
        return report

    async def number_exists(self, report_number: str) -> bool:
        stmt = select(Report.id).where(Report.report_number == report_number).limit(1)
        return await self.session.scalar(stmt) is not None

    async def count_by_status(self, status: ReportStatus) -> int:
        stmt = select(func.count(Report.id)).where(Report.status == status)
        return int(await self.session.scalar(stmt) or 0)


@dataclass
class PaymentRepository:
    session: AsyncSession

    async def get(self, payment_id: str) -> Payment | None:
        return await self.session.get(Payment, payment_id)

    async def add(self, payment: Payment) -> Payment:
        self.session.add(payment)
        await self.session.flush()
        return payment

    async def list_for_customer(self, customer_id: str) -> list[Payment]:
        stmt = (
            select(Payment)
            .where(Payment.customer_id == customer_id)
            .order_by(Payment.created_at.desc())
        )
        return list((await self.session.execute(stmt)).scalars().all())

    async def list_all(self) -> list[Payment]:
        stmt = select(Payment).order_by(Payment.created_at.desc())
        return list((await self.session.execute(stmt)).scalars().all())

    async def completed_revenue_between(self, start: datetime, end: datetime) -> Decimal:
        stmt = select(func.coalesce(func.sum(Payment.amount), 0)).where(
            Payment.status == PaymentStatus.COMPLETED,
            Payment.created_at >= start,
            Payment.created_at < end,
        )
        return _to_decimal(await self.session.scalar(stmt))


@dataclass
class AgreementRepository:
    session: AsyncSession

    async def add(self, agreement: SignatureAgreement) -> SignatureAgreement:
        self.session.add(agreement)
        await self.session.flush()
        return agreement

    async def get_by_envelope(self, envelope_id: str) -> SignatureAgreement | None:
        stmt = select(SignatureAgreement).where(SignatureAgreement.envelope_id == envelope_id)
        return await self.session.scalar(stmt)


@dataclass
class TitleMonitoringRepository:
    session: AsyncSession

    async def get(self, subscription_id: str) -> TitleMonitoringSubscription | None:
        return await self.session.get(TitleMonitoringSubscription, subscription_id)

    async def add(self, subscription: TitleMonitoringSubscription) -> TitleMonitoringSubscription:
        self.session.add(subscription)
        await self.session.flush()
        return subscription

    async def list_all(self) -> list[TitleMonitoringSubscription]:
        stmt = select(TitleMonitoringSubscription).order_by(
            TitleMonitoringSubscription.created_at.desc()
        )
        return list((await self.session.execute(stmt)).scalars().all())

    async def list_for_customer(self, customer_id: str) -> list[TitleMonitoringSubscription]:
        stmt = (
            select(TitleMonitoringSubscription)
            .where(TitleMonitoringSubscription.customer_id == customer_id)
            .order_by(TitleMonitoringSubscription.created_at.desc())
        )
        return list((await self.session.execute(stmt)).scalars().all())

    async def add_alert(self, alert: TitleAlert) -> TitleAlert:
        self.session.add(alert)
        await self.session.flush()
        return alert

    async def get_alert(self, subscription_id: str, alert_id: str) -> TitleAlert | None:
        stmt = select(TitleAlert).where(
            TitleAlert.id == alert_id,
            TitleAlert.subscription_id == subscription_id,
        )
        return await self.session.scalar(stmt)

    async def list_alerts(self, subscription_id: str) -> list[TitleAlert]:
        stmt = (
            select(TitleAlert)
            .where(TitleAlert.subscription_id == subscription_id)
            .order_by(TitleAlert.created_at.desc())
        )
        return list((await self.session.execute(stmt)).scalars().all())

    async def count_alerts(self, *, unresolved_critical_only: bool = False) -> int:
        stmt = select(func.count(TitleAlert.id))
        if unresolved_critical_only:
            stmt = stmt.where(
                TitleAlert.severity == AlertSeverity.CRITICAL,
                TitleAlert.resolved.is_(False),
            )
        return int(await self.session.scalar(stmt) or 0)

    async def count_subscriptions(self, status: SubscriptionStatus | None = None) -> int:
        stmt = select(func.count(TitleMonitoringSubscription.id))
        if status is not None:
            stmt = stmt.where(TitleMonitoringSubscription.status == status)
        return int(await self.session.scalar(stmt) or 0)
