from __future__ import annotations

from datetime import datetime

from homeaudit.infrastructure.db.models import AgreementStatus
from pydantic import BaseModel, Field


class AgreementSendRequest(BaseModel):
    appointment_id: str = Field(..., min_length=1)


class AgreementSendResponse(BaseModel):
    success: bool = True
    agreement_id: str
    envelope_id: str
    signing_url: str | None = None


class AgreementStatusResponse(BaseModel):
    envelope_id: str
    status: AgreementStatus
    completed: bool
    signed_at: datetime | None = None
