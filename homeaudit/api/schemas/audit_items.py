from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from homeaudit.infrastructure.db.models import ItemCategory
from pydantic import BaseModel, Field

# Estimated values are parsed leniently by the ledger, so any scalar is accepted here.
RawValue = str | int | float | None


class AuditItemCreate(BaseModel):
    appointment_id: str = Field(..., min_length=1)
    category: str = Field(..., description="Electronics, Jewelry, Furniture, Artwork, Appliances or Other")
    description: str = Field(..., min_length=1)
    estimated_value: RawValue = None
    serial_number: str | None = None
    model: str | None = None
    photo_url: str | None = None
    receipt_url: str | None = None
    notes: str | None = None


class AuditItemUpdate(BaseModel):
    category: str | None = None
    description: str | None = None
    estimated_value: RawValue = None
    serial_number: str | None = None
    model: str | None = None
    photo_url: str | None = None
    receipt_url: str | None = None
    notes: str | None = None


class AuditItemResponse(BaseModel):
    id: str
    appointment_id: str
    category: ItemCategory
    description: str
    estimated_value: Decimal
    serial_number: str | None = None
    model: str | None = None
    photo_url: str | None = None
    receipt_url: str | None = None
    notes: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class ProgressResponse(BaseModel):
    documented: int
    target: int
    percent: int


class TotalsResponse(BaseModel):
    item_count: int
    total_value: Decimal


class AuditItemListResponse(BaseModel):
    items: list[AuditItemResponse]
    progress: ProgressResponse
    totals: TotalsResponse
