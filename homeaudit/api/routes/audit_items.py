from __future__ import annotations

from fastapi import APIRouter, Depends, status
from homeaudit.api.deps import get_current_user, get_db_session, http_error, require_roles
from homeaudit.api.schemas.audit_items import (
    AuditItemCreate,
    AuditItemListResponse,
    AuditItemResponse,
    AuditItemUpdate,
    ProgressResponse,
    TotalsResponse,
)
from homeaudit.api.schemas.common import SuccessResponse
from homeaudit.core.auth import Role
from homeaudit.domain import User
from homeaudit.domain.errors import DomainError
from homeaudit.domain.services.ledger import AuditLedgerService
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/audit-items", tags=["audit-items"])

officer_only = require_roles([Role.OFFICER])


@router.post("", response_model=AuditItemResponse, status_code=status.HTTP_201_CREATED)
async def add_item(
    payload: AuditItemCreate,
    user: User = Depends(officer_only),
    session: AsyncSession = Depends(get_db_session),
) -> AuditItemResponse:
    try:
        item = await AuditLedgerService(session).add_item(**payload.model_dump(), actor=user)
    except DomainError as exc:
        raise http_error(exc) from exc
    return AuditItemResponse.model_validate(item)


@router.get("/{appointment_id}", response_model=AuditItemListResponse)
async def list_items(
    appointment_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> AuditItemListResponse:
    service = AuditLedgerService(session)
    try:
        items = await service.list_items(appointment_id=appointment_id, actor=user)
    except DomainError as exc:
        raise http_error(exc) from exc

    progress = await service.progress(appointment_id)
    totals = await service.totals(appointment_id)
    return AuditItemListResponse(
        items=[AuditItemResponse.model_validate(item) for item in items],
        progress=ProgressResponse(
            documented=progress.documented, target=progress.target, percent=progress.percent
        ),
        totals=TotalsResponse(item_count=totals.item_count, total_value=totals.total_value),
    )


@router.patch("/{item_id}", response_model=SuccessResponse)
async def update_item(
    item_id: str,
    payload: AuditItemUpdate,
    user: User = Depends(officer_only),
    session: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    try:
        await AuditLedgerService(session).update_item(
            item_id=item_id, changes=payload.model_dump(exclude_unset=True), actor=user
        )
    except DomainError as exc:
        raise http_error(exc) from exc
    return SuccessResponse()


@router.delete("/{item_id}", response_model=SuccessResponse)
async def delete_item(
    item_id: str,
    user: User = Depends(officer_only),
    session: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    try:
        await AuditLedgerService(session).delete_item(item_id=item_id, actor=user)
    except DomainError as exc:
        raise http_error(exc) from exc
    return SuccessResponse()
