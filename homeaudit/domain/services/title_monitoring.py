"""Recurring property-title monitoring subscriptions and their alerts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime
from decimal import Decimal

import structlog
from homeaudit.domain import User
from homeaudit.domain.errors import NotFoundError, PermissionDeniedError, ValidationError
from homeaudit.domain.reference_data import TITLE_MONITORING_PLANS
from homeaudit.infrastructure.db.models import (
    AlertSeverity,
    AlertType,
    BillingFrequency,
    SubscriptionStatus,
    TitleAlert,
    TitleMonitoringSubscription,
)
from homeaudit.infrastructure.repositories import UnitOfWork
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


@dataclass(slots=True)
class TitleMonitoringStats:
    total_subscriptions: int
    active_subscriptions: int
    monthly_revenue: Decimal
    yearly_revenue: Decimal
    total_alerts: int
    unresolved_critical_alerts: int


def next_billing_date(start: date, frequency: BillingFrequency) -> date:
    if frequency == BillingFrequency.YEARLY:
        try:
            return start.replace(year=start.year + 1)
        except ValueError:  # Feb 29
            return start.replace(year=start.year + 1, day=28)
    month = start.month % 12 + 1
    year = start.year + (1 if start.month == 12 else 0)
    day = start.day
    while True:
        try:
            return date(year, month, day)
        except ValueError:
            day -= 1


class TitleMonitoringService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.uow = UnitOfWork(session)

    async def subscribe(
        self,
        *,
        property_address: str,
        alert_email: str,
        frequency: BillingFrequency | str,
        actor: User,
        billing_subscription_id: str | None = None,
    ) -> TitleMonitoringSubscription:
        if not property_address.strip() or not alert_email.strip():
            raise ValidationError("Property address and alert email are required")
        try:
            plan = BillingFrequency(frequency)
        except ValueError as exc:
            raise ValidationError(f"Unsupported billing frequency: {frequency}") from exc

        today = datetime.now(UTC).date()
        subscription = TitleMonitoringSubscription(
            customer_id=actor.user_id,
            property_address=property_address.strip(),
            alert_email=alert_email.strip(),
            frequency=plan,
            amount=TITLE_MONITORING_PLANS[plan.value],
            billing_subscription_id=billing_subscription_id,
            status=(
                SubscriptionStatus.ACTIVE if billing_subscription_id else SubscriptionStatus.PENDING
            ),
            start_date=today,
            next_billing_date=next_billing_date(today, plan),
        )
        await self.uow.title_monitoring.add(subscription)
        await self.uow.commit()
        await self.uow.refresh(subscription)

        await logger.ainfo(
            "title_monitoring_subscribed",
            subscription_id=subscription.id,
            customer_id=actor.user_id,
            frequency=plan.value,
            status=subscription.status.value,
        )
        return subscription

    async def list_subscriptions(self, *, actor: User) -> list[TitleMonitoringSubscription]:
        if actor.is_admin:
            return await self.uow.title_monitoring.list_all()
        return await self.uow.title_monitoring.list_for_customer(actor.user_id)

    async def cancel(self, *, subscription_id: str, actor: User) -> TitleMonitoringSubscription:
        subscription = await self._get_owned(subscription_id, actor)
        subscription.status = SubscriptionStatus.CANCELLED
        await self.uow.commit()
        await logger.ainfo("title_monitoring_cancelled", subscription_id=subscription.id)
        return subscription

    async def list_alerts(self, *, subscription_id: str, actor: User) -> list[TitleAlert]:
        subscription = await self._get_owned(subscription_id, actor)
        return await self.uow.title_monitoring.list_alerts(subscription.id)

    async def record_alert(
        self,
        *,
        subscription_id: str,
        alert_type: AlertType,
        severity: AlertSeverity,
        description: str,
        action_required: bool = False,
        document_url: str | None = None,
    ) -> TitleAlert:
        """Store an alert raised by the title-records feed."""
        subscription = await self.uow.title_monitoring.get(subscription_id)
        if subscription is None:
            raise NotFoundError(f"Subscription {subscription_id} not found")

        alert = TitleAlert(
            subscription_id=subscription.id,
            alert_type=alert_type,
            severity=severity,
            description=description,
            action_required=action_required,
            document_url=document_url,
        )
        await self.uow.title_monitoring.add_alert(alert)
        subscription.last_checked_at = datetime.now(UTC)
        await self.uow.commit()
        await logger.ainfo(
            "title_alert_recorded",
            subscription_id=subscription.id,
            alert_id=alert.id,
            severity=severity.value,
        )
        return alert

    async def resolve_alert(
        self, *, subscription_id: str, alert_id: str, actor: User
    ) -> TitleAlert:
        await self._get_owned(subscription_id, actor)
        alert = await self.uow.title_monitoring.get_alert(subscription_id, alert_id)
        if alert is None:
            raise NotFoundError(f"Alert {alert_id} not found")
        if not alert.resolved:
            alert.resolved = True
            alert.resolved_at = datetime.now(UTC)
            await self.uow.commit()
            await logger.ainfo("title_alert_resolved", alert_id=alert.id)
        return alert

    async def get_stats(self, *, actor: User) -> TitleMonitoringStats:
        if not actor.is_admin:
            raise PermissionDeniedError("Only admins can view title monitoring stats")

        repo = self.uow.title_monitoring
        active = [
            sub
            for sub in await repo.list_all()
            if sub.status == SubscriptionStatus.ACTIVE
        ]
        monthly = sum(
            (sub.amount for sub in active if sub.frequency == BillingFrequency.MONTHLY),
            Decimal("0.00"),
        )
        yearly = sum(
            (sub.amount for sub in active if sub.frequency == BillingFrequency.YEARLY),
            Decimal("0.00"),
        )
        return TitleMonitoringStats(
            total_subscriptions=await repo.count_subscriptions(),
            active_subscriptions=len(active),
            monthly_revenue=monthly,
            yearly_revenue=yearly,
            total_alerts=await repo.count_alerts(),
            unresolved_critical_alerts=await repo.count_alerts(unresolved_critical_only=True),
        )

    async def _get_owned(self, subscription_id: str, actor: User) -> TitleMonitoringSubscription:
        subscription = await self.uow.title_monitoring.get(subscription_id)
        if subscription is None:
            raise NotFoundError(f"Subscription {subscription_id} not found")
        if not actor.is_admin and subscription.customer_id != actor.user_id:
            raise PermissionDeniedError("Not allowed to manage this subscription")
        return subscription

