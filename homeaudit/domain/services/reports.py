"""
Report generation pipeline.

Takes the item snapshot of an appointment under a row lock, renders the PDF
off the event loop, archives it and completes the appointment. A failed
render leaves the report row in ``failed`` with the error in its metadata;
the next attempt reuses that row.
"""

from __future__ import annotations

import asyncio
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

import structlog
from homeaudit.core.config import Settings, get_settings
from homeaudit.domain import User
from homeaudit.domain.errors import (
    NotFoundError,
    PermissionDeniedError,
    PreconditionError,
    RenderError,
)
from homeaudit.domain.reference_data import DEFAULT_OFFICER_NAME
from homeaudit.domain.services.appointments import (
    AppointmentService,
    can_view_appointment,
    ensure_assigned_officer,
)
from homeaudit.domain.services.notifications import NotificationDispatcher
from homeaudit.domain.services.report_compositor import (
    ReportBranding,
    ReportCompositor,
    ReportDocument,
    ReportLineItem,
    compute_aggregates,
)
from homeaudit.infrastructure.db.models import (
    Appointment,
    AppointmentStatus,
    AuditItem,
    Report,
    ReportStatus,
)
from homeaudit.infrastructure.repositories import UnitOfWork
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

REPORT_NUMBER_ATTEMPTS = 5


class ReportArchive(Protocol):
    async def store(self, *, report_number: str, appointment_id: str, content: bytes) -> str:
        """Persist the PDF and return the URL it is served from."""
        ...

    async def read(self, report_number: str) -> bytes:
        ...


def format_report_number(year: int, digits: int) -> str:
    return f"RPT-{year}-{digits % 1_000_000:06d}"


def generate_report_number(now: datetime | None = None, *, attempt: int = 0) -> str:
    """``RPT-<year>-<6 digits>``; the first attempt uses the clock, retries are random."""
    now = now or datetime.now(UTC)
    if attempt == 0:
        digits = int(now.timestamp() * 1000)
    else:
        digits = secrets.randbelow(1_000_000)
    return format_report_number(now.year, digits)


@dataclass(slots=True)
class GeneratedReport:
    report: Report
    pdf_bytes: bytes


class ReportService:
    def __init__(
        self,
        session: AsyncSession,
        archive: ReportArchive,
        notifier: NotificationDispatcher | None = None,
        compositor_factory: Callable[[], ReportCompositor] = ReportCompositor,
        settings: Settings | None = None,
    ) -> None:
        self.session = session
        self.uow = UnitOfWork(session)
        self.archive = archive
        self.notifier = notifier
        self.compositor_factory = compositor_factory
        self.settings = settings or get_settings()

    async def generate_report(self, *, appointment_id: str, actor: User) -> GeneratedReport:
        if not actor.is_officer:
            raise PermissionDeniedError("Only officers can generate reports")

        appointment = await self.uow.appointments.get(appointment_id, for_update=True)
        if appointment is None:
            raise NotFoundError(f"Appointment {appointment_id} not found")
        ensure_assigned_officer(appointment, actor)
        if appointment.status.is_terminal:
            raise PreconditionError(
                f"Cannot generate a report for a {appointment.status.value} appointment"
            )

        items = await self.uow.audit_items.list_for_appointment(appointment.id)
        if not items:
            raise PreconditionError("Cannot generate a report without documented items")

        report = await self._prepare_report_row(appointment, actor, items)
        document = await self._build_document(appointment, report, items)

        await logger.ainfo(
            "report_generation_started",
            appointment_id=appointment.id,
            report_number=report.report_number,
            item_count=len(items),
        )

        try:
            pdf_bytes = await asyncio.to_thread(self.compositor_factory().render, document)
            pdf_url = await self.archive.store(
                report_number=report.report_number,
                appointment_id=appointment.id,
                content=pdf_bytes,
            )
        except Exception as exc:
            await self._mark_failed(report, exc)
            raise RenderError(str(exc) or exc.__class__.__name__) from exc

        now = datetime.now(UTC)
        report.status = ReportStatus.COMPLETED
        report.pdf_url = pdf_url
        report.completed_at = now
        report.metadata_ = {**(report.metadata_ or {}), "error": None, "byte_size": len(pdf_bytes)}
        AppointmentService.apply_status(appointment, AppointmentStatus.COMPLETED)
        await self.uow.commit()

        await logger.ainfo(
            "report_generated",
            appointment_id=appointment.id,
            report_id=report.id,
            report_number=report.report_number,
            total_items=report.total_items_documented,
            total_value=str(report.total_estimated_value),
        )

        if self.notifier is not None:
            await self.notifier.send_report_ready(appointment, pdf_url)

        return GeneratedReport(report=report, pdf_bytes=pdf_bytes)

    async def get_report(self, *, appointment_id: str, actor: User) -> Report:
        appointment = await self.uow.appointments.get(appointment_id)
        if appointment is None:
            raise NotFoundError(f"Appointment {appointment_id} not found")
        if not can_view_appointment(appointment, actor):
            raise PermissionDeniedError("Not allowed to view this report")

        report = await self.uow.reports.get_by_appointment(appointment.id)
        if report is None:
            raise NotFoundError(f"No report for appointment {appointment_id}")
        return report

    async def get_report_pdf(self, *, appointment_id: str, actor: User) -> tuple[Report, bytes]:
        report = await self.get_report(appointment_id=appointment_id, actor=actor)
        if report.status != ReportStatus.COMPLETED:
            raise PreconditionError(f"Report {report.report_number} is {report.status.value}")
        return report, await self.archive.read(report.report_number)

    async def _prepare_report_row(
        self, appointment: Appointment, actor: User, items: list[AuditItem]
    ) -> Report:
        aggregates = compute_aggregates([_line_item(item) for item in items])
        report = await self.uow.reports.get_by_appointment(appointment.id)
        if report is not None and report.status == ReportStatus.COMPLETED:
            raise PreconditionError("A report has already been generated for this appointment")

        attempts = (report.metadata_ or {}).get("attempts", 0) if report else 0
        if report is None:
            report = Report(
                appointment_id=appointment.id,
                report_number=await self._allocate_report_number(),
                officer_id=actor.user_id,
            )
            await self.uow.reports.add(report)

        report.customer_id = appointment.customer_id
        report.officer_id = actor.user_id
        report.status = ReportStatus.GENERATING
        report.total_items_documented = aggregates.total_items
        report.total_estimated_value = aggregates.total_value
        report.metadata_ = {
            "attempts": attempts + 1,
            "items_with_receipt": aggregates.items_with_receipt,
            "items_with_photo": aggregates.items_with_photo,
            "appointment_date": appointment.preferred_date.isoformat(),
            "appointment_time": appointment.preferred_time.value,
        }
        await self.session.flush()
        return report

    async def _allocate_report_number(self) -> str:
        for attempt in range(REPORT_NUMBER_ATTEMPTS):
            candidate = generate_report_number(attempt=attempt)
            if not await self.uow.reports.number_exists(candidate):
                return candidate
            await logger.awarning("report_number_collision", report_number=candidate)
        raise RenderError("Could not allocate a unique report number")

    async def _build_document(
        self, appointment: Appointment, report: Report, items: list[AuditItem]
    ) -> ReportDocument:
        officer = await self.uow.users.get(report.officer_id)
        return ReportDocument(
            report_number=report.report_number,
            generated_at=datetime.now(UTC),
            appointment_id=appointment.id,
            appointment_date=appointment.preferred_date,
            appointment_time=appointment.preferred_time.value,
            customer_name=appointment.full_name,
            customer_email=appointment.email,
            customer_address=appointment.address,
            customer_id=appointment.customer_id,
            officer_name=officer.full_name if officer is not None else DEFAULT_OFFICER_NAME,
            officer_id=report.officer_id,
            items=[_line_item(item) for item in items],
            branding=ReportBranding(
                company_name=self.settings.company_name,
                support_email=self.settings.support_email,
                support_phone=self.settings.support_phone,
            ),
        )

    async def _mark_failed(self, report: Report, exc: Exception) -> None:
        report.status = ReportStatus.FAILED
        report.metadata_ = {
            **(report.metadata_ or {}),
            "error": str(exc) or exc.__class__.__name__,
            "failed_at": datetime.now(UTC).isoformat(),
        }
        await self.uow.commit()
        await logger.aerror(
            "report_generation_failed",
            report_id=report.id,
            appointment_id=report.appointment_id,
            error=str(exc),
        )


def _line_item(item: AuditItem) -> ReportLineItem:
    return ReportLineItem(
        description=item.description,
        category=item.category.value,
        estimated_value=item.estimated_value,
        serial_number=item.serial_number,
        has_receipt=bool(item.receipt_url),
        has_photo=bool(item.photo_url),
    )
