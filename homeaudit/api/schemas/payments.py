from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from homeaudit.infrastructure.db.models import BillableService, PaymentStatus
from pydantic import BaseModel, Field


class PaymentCreate(BaseModel):
    source_id: str = Field(..., min_length=1, description="Card nonce / payment source token")
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    idempotency_key: str = Field(..., min_length=1, max_length=64)
    appointment_id: str | None = None
    service: BillableService = BillableService.AUDIT


class PaymentResponse(BaseModel):
    id: str
    appointment_id: str | None = None
    customer_id: str
    provider_payment_id: str | None = None
    amount: Decimal
    currency: str
    service: BillableService
    status: PaymentStatus
    payment_method: str | None = None
    created_at: datetime
    processed_at: datetime | None = None

    class Config:
        from_attributes = True
