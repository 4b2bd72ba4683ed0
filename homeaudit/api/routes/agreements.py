from __future__ import annotations

from fastapi import APIRouter, Depends
from homeaudit.api.deps import (
    get_current_user,
    get_db_session,
    get_notifier,
    get_signature_provider,
    http_error,
)
from homeaudit.api.schemas.agreements import (
    AgreementSendRequest,
    AgreementSendResponse,
    AgreementStatusResponse,
)
from homeaudit.domain import User
from homeaudit.domain.errors import DomainError
from homeaudit.domain.services.agreements import AgreementService, SignatureProvider
from homeaudit.domain.services.notifications import NotificationDispatcher
from homeaudit.infrastructure.db.models import AgreementStatus
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/agreements", tags=["agreements"])


@router.post("/send", response_model=AgreementSendResponse, summary="Send the service agreement")
async def send_agreement(
    payload: AgreementSendRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
    provider: SignatureProvider = Depends(get_signature_provider),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> AgreementSendResponse:
    service = AgreementService(session, provider, notifier=notifier)
    try:
        agreement = await service.send_agreement(appointment_id=payload.appointment_id, actor=user)
    except DomainError as exc:
        raise http_error(exc) from exc
    return AgreementSendResponse(
        agreement_id=agreement.id,
        envelope_id=agreement.envelope_id,
        signing_url=agreement.signing_url,
    )


@router.get("/{envelope_id}/status", response_model=AgreementStatusResponse)
async def agreement_status(
    envelope_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
    provider: SignatureProvider = Depends(get_signature_provider),
) -> AgreementStatusResponse:
    try:
        agreement = await AgreementService(session, provider).check_status(
            envelope_id=envelope_id, actor=user
        )
    except DomainError as exc:
        raise http_error(exc) from exc
    return AgreementStatusResponse(
        envelope_id=agreement.envelope_id,
        status=agreement.status,
        completed=agreement.status == AgreementStatus.SIGNED,
        signed_at=agreement.signed_at,
    )
