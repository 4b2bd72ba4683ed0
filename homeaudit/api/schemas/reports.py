from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from homeaudit.infrastructure.db.models import ReportStatus
from pydantic import BaseModel, Field


class ReportResponse(BaseModel):
    id: str
    appointment_id: str
    customer_id: str | None = None
    officer_id: str
    report_number: str
    pdf_url: str | None = None
    status: ReportStatus
    total_items_documented: int
    total_estimated_value: Decimal
    metadata: dict[str, Any] | None = Field(None, validation_alias="metadata_")
    created_at: datetime
    completed_at: datetime | None = None

    class Config:
        from_attributes = True


class GenerateReportResponse(BaseModel):
    success: bool = True
    report: ReportResponse
    pdf_base64: str = Field(..., description="Rendered PDF, base64 encoded")
