from __future__ import annotations

from datetime import date, datetime

from homeaudit.infrastructure.db.models import AppointmentStatus, TimeSlot
from pydantic import BaseModel, EmailStr, Field


class AppointmentCreate(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=128)
    email: EmailStr
    phone: str = Field(..., min_length=1, max_length=32)
    address: str = Field(..., min_length=1)
    preferred_date: date
    preferred_time: str = Field(..., description='Visit slot, e.g. "2:00 PM"')
    has_receipts_ready: bool = False
    notes: str | None = None


class AppointmentResponse(BaseModel):
    id: str
    customer_id: str | None
    officer_id: str | None
    full_name: str
    email: str
    phone: str
    address: str
    preferred_date: date
    preferred_time: TimeSlot
    status: AppointmentStatus
    has_receipts_ready: bool
    notes: str | None = None
    created_at: datetime
    completed_at: datetime | None = None

    class Config:
        from_attributes = True


class StatusUpdateRequest(BaseModel):
    status: str = Field(..., description="One of scheduled, in_progress, completed, cancelled")


class AssignOfficerRequest(BaseModel):
    officer_id: str = Field(..., min_length=1)
