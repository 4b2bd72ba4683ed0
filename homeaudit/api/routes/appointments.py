from __future__ import annotations

from fastapi import APIRouter, Depends, status
from homeaudit.api.deps import (
    get_current_user,
    get_db_session,
    get_notifier,
    get_optional_user,
    http_error,
    require_roles,
)
from homeaudit.api.schemas.appointments import (
    AppointmentCreate,
    AppointmentResponse,
    AssignOfficerRequest,
    StatusUpdateRequest,
)
from homeaudit.api.schemas.common import SuccessResponse
from homeaudit.core.auth import Role
from homeaudit.domain import User
from homeaudit.domain.errors import DomainError
from homeaudit.domain.services.appointments import AppointmentService, BookingRequest
from homeaudit.domain.services.notifications import NotificationDispatcher
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.post(
    "",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book a home audit (guests allowed)",
)
async def create_appointment(
    payload: AppointmentCreate,
    user: User | None = Depends(get_optional_user),
    session: AsyncSession = Depends(get_db_session),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> AppointmentResponse:
    service = AppointmentService(session, notifier=notifier)
    try:
        appointment = await service.create_appointment(
            fields=BookingRequest(**payload.model_dump()),
            actor=user,
        )
    except DomainError as exc:
        raise http_error(exc) from exc
    return AppointmentResponse.model_validate(appointment)


@router.get("", response_model=list[AppointmentResponse], summary="List visible appointments")
async def list_appointments(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> list[AppointmentResponse]:
    appointments = await AppointmentService(session).list_appointments(actor=user)
    return [AppointmentResponse.model_validate(item) for item in appointments]


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> AppointmentResponse:
    try:
        appointment = await AppointmentService(session).get_appointment(
            appointment_id=appointment_id, actor=user
        )
    except DomainError as exc:
        raise http_error(exc) from exc
    return AppointmentResponse.model_validate(appointment)


@router.patch("/{appointment_id}/status", response_model=SuccessResponse)
async def update_status(
    appointment_id: str,
    payload: StatusUpdateRequest,
    user: User = Depends(require_roles([Role.ADMIN, Role.OFFICER])),
    session: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    try:
        await AppointmentService(session).update_status(
            appointment_id=appointment_id, new_status=payload.status, actor=user
        )
    except DomainError as exc:
        raise http_error(exc) from exc
    return SuccessResponse()


@router.patch("/{appointment_id}/assign-officer", response_model=SuccessResponse)
async def assign_officer(
    appointment_id: str,
    payload: AssignOfficerRequest,
    user: User = Depends(require_roles([Role.ADMIN])),
    session: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    try:
        await AppointmentService(session).assign_officer(
            appointment_id=appointment_id, officer_id=payload.officer_id, actor=user
        )
    except DomainError as exc:
        raise http_error(exc) from exc
    return SuccessResponse()
