from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel


class DashboardStatsResponse(BaseModel):
    appointments_today: int
    reports_generated: int
    monthly_revenue: Decimal
    active_officers: int
