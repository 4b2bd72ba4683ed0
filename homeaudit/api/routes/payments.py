from __future__ import annotations

from fastapi import APIRouter, Depends, status
from homeaudit.api.deps import get_current_user, get_db_session, get_payment_processor, http_error
from homeaudit.api.schemas.payments import PaymentCreate, PaymentResponse
from homeaudit.domain import User
from homeaudit.domain.errors import DomainError
from homeaudit.domain.services.payments import PaymentProcessor, PaymentService
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def capture_payment(
    payload: PaymentCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
    processor: PaymentProcessor = Depends(get_payment_processor),
) -> PaymentResponse:
    try:
        payment = await PaymentService(session, processor).capture_payment(
            source_id=payload.source_id,
            amount=payload.amount,
            currency=payload.currency,
            idempotency_key=payload.idempotency_key,
            appointment_id=payload.appointment_id,
            service=payload.service,
            actor=user,
        )
    except DomainError as exc:
        raise http_error(exc) from exc
    return PaymentResponse.model_validate(payment)


@router.get("", response_model=list[PaymentResponse])
async def list_payments(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
    processor: PaymentProcessor = Depends(get_payment_processor),
) -> list[PaymentResponse]:
    payments = await PaymentService(session, processor).list_payments(actor=user)
    return [PaymentResponse.model_validate(payment) for payment in payments]
