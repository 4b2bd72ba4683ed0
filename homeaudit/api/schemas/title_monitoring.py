from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from homeaudit.infrastructure.db.models import (
    AlertSeverity,
    AlertType,
    BillingFrequency,
    SubscriptionStatus,
)
from pydantic import BaseModel, EmailStr, Field


class SubscribeRequest(BaseModel):
    property_address: str = Field(..., min_length=1)
    alert_email: EmailStr
    frequency: BillingFrequency
    billing_subscription_id: str | None = None


class SubscriptionResponse(BaseModel):
    id: str
    customer_id: str
    property_address: str
    alert_email: str
    frequency: BillingFrequency
    amount: Decimal
    billing_subscription_id: str | None = None
    status: SubscriptionStatus
    start_date: date
    next_billing_date: date
    last_checked_at: datetime | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class AlertCreate(BaseModel):
    alert_type: AlertType
    severity: AlertSeverity
    description: str = Field(..., min_length=1)
    action_required: bool = False
    document_url: str | None = None


class AlertResponse(BaseModel):
    id: str
    subscription_id: str
    alert_type: AlertType
    severity: AlertSeverity
    description: str
    action_required: bool
    document_url: str | None = None
    resolved: bool
    resolved_at: datetime | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class TitleMonitoringStatsResponse(BaseModel):
    total_subscriptions: int
    active_subscriptions: int
    monthly_revenue: Decimal
    yearly_revenue: Decimal
    total_alerts: int
    unresolved_critical_alerts: int
