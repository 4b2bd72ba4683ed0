from __future__ import annotations

import base64

from fastapi import APIRouter, Depends, Response, status
from homeaudit.api.deps import (
    get_current_user,
    get_db_session,
    get_notifier,
    get_report_archive,
    http_error,
    require_roles,
)
from homeaudit.api.schemas.reports import GenerateReportResponse, ReportResponse
from homeaudit.core.auth import Role
from homeaudit.domain import User
from homeaudit.domain.errors import DomainError
from homeaudit.domain.services.notifications import NotificationDispatcher
from homeaudit.domain.services.reports import ReportArchive, ReportService
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post(
    "/generate/{appointment_id}",
    response_model=GenerateReportResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Render, archive and deliver the audit report",
)
async def generate_report(
    appointment_id: str,
    user: User = Depends(require_roles([Role.OFFICER])),
    session: AsyncSession = Depends(get_db_session),
    archive: ReportArchive = Depends(get_report_archive),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> GenerateReportResponse:
    service = ReportService(session, archive=archive, notifier=notifier)
    try:
        generated = await service.generate_report(appointment_id=appointment_id, actor=user)
    except DomainError as exc:
        raise http_error(exc) from exc

    return GenerateReportResponse(
        report=ReportResponse.model_validate(generated.report),
        pdf_base64=base64.b64encode(generated.pdf_bytes).decode("ascii"),
    )


@router.get("/{appointment_id}", response_model=ReportResponse)
async def get_report(
    appointment_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
    archive: ReportArchive = Depends(get_report_archive),
) -> ReportResponse:
    try:
        report = await ReportService(session, archive=archive).get_report(
            appointment_id=appointment_id, actor=user
        )
    except DomainError as exc:
        raise http_error(exc) from exc
    return ReportResponse.model_validate(report)


@router.get("/{appointment_id}/pdf", response_class=Response, summary="Download the report PDF")
async def download_report(
    appointment_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
    archive: ReportArchive = Depends(get_report_archive),
) -> Response:
    try:
        report, content = await ReportService(session, archive=archive).get_report_pdf(
            appointment_id=appointment_id, actor=user
        )
    except DomainError as exc:
        raise http_error(exc) from exc
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{report.report_number}.pdf"'},
    )
