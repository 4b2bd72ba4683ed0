from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from typing import Protocol

import httpx
import structlog
from homeaudit.domain import User
from homeaudit.domain.errors import DependencyError, NotFoundError, ValidationError
from homeaudit.infrastructure.db.models import BillableService, Payment, PaymentStatus
from homeaudit.infrastructure.repositories import UnitOfWork
from homeaudit.libs.square_client import SquareClient, SquareClientError
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

# Square payment status -> local payment status; APPROVED means authorised, not captured.
_PROVIDER_STATUS = {
    "COMPLETED": PaymentStatus.COMPLETED,
    "APPROVED": PaymentStatus.PENDING,
    "PENDING": PaymentStatus.PENDING,
    "CANCELED": PaymentStatus.FAILED,
    "FAILED": PaymentStatus.FAILED,
}


def provider_payment_status(provider_status: str) -> PaymentStatus:
    return _PROVIDER_STATUS.get((provider_status or "").upper(), PaymentStatus.PENDING)


@dataclass(slots=True)
class CaptureResult:
    provider_payment_id: str
    status: str
    payment_method: str | None = None


class PaymentProcessor(Protocol):
    """Captures money; raises ``DependencyError`` when the processor refuses or is down."""

    async def capture(
        self,
        *,
        source_id: str,
        amount: Decimal,
        currency: str,
        idempotency_key: str,
        customer_reference: str | None = None,
    ) -> CaptureResult:
        ...


class SquarePaymentProcessor:
    def __init__(self, client: SquareClient | None = None) -> None:
        self.client = client or SquareClient()

    async def capture(
        self,
        *,
        source_id: str,
        amount: Decimal,
        currency: str,
        idempotency_key: str,
        customer_reference: str | None = None,
    ) -> CaptureResult:
        try:
            payment = await self.client.create_payment(
                source_id=source_id,
                amount=amount,
                currency=currency,
                idempotency_key=idempotency_key,
                customer_id=customer_reference,
            )
        except (SquareClientError, httpx.HTTPError) as exc:
            raise DependencyError(f"Payment capture failed: {exc}") from exc
        return CaptureResult(
            provider_payment_id=payment.id,
            status=payment.status,
            payment_method=(payment.source_type or "").lower() or None,
        )


class PaymentService:
    def __init__(self, session: AsyncSession, processor: PaymentProcessor) -> None:
        self.session = session
        self.uow = UnitOfWork(session)
        self.processor = processor

    async def capture_payment(
        self,
        *,
        source_id: str,
        amount: Decimal,
        idempotency_key: str,
        actor: User,
        currency: str = "USD",
        service: BillableService = BillableService.AUDIT,
        appointment_id: str | None = None,
    ) -> Payment:
        if amount <= 0:
            raise ValidationError("Payment amount must be greater than zero")
        if not source_id or not idempotency_key:
            raise ValidationError("source_id and idempotency_key are required")

        if appointment_id is not None:
            appointment = await self.uow.appointments.get(appointment_id)
            if appointment is None:
                raise NotFoundError(f"Appointment {appointment_id} not found")

        payment = Payment(
            appointment_id=appointment_id,
            customer_id=actor.user_id,
            amount=amount,
            currency=currency.upper(),
            service=service,
            status=PaymentStatus.PENDING,
        )
        await self.uow.payments.add(payment)

        try:
            result = await self.processor.capture(
                source_id=source_id,
                amount=amount,
                currency=payment.currency,
                idempotency_key=idempotency_key,
                customer_reference=actor.user_id,
            )
        except DependencyError as exc:
            await self._record_failure(payment, actor, str(exc))
            raise

        payment.provider_payment_id = result.provider_payment_id
        payment.payment_method = result.payment_method
        status = provider_payment_status(result.status)
        if status == PaymentStatus.FAILED:
            reason = f"Payment {result.provider_payment_id} was {result.status.lower()}"
            await self._record_failure(payment, actor, reason)
            raise DependencyError(reason)

        payment.status = status
        payment.processed_at = datetime.now(UTC)
        await self.uow.commit()
        await self.uow.refresh(payment)

        await logger.ainfo(
            "payment_captured",
            payment_id=payment.id,
            provider_payment_id=result.provider_payment_id,
            status=status.value,
            amount=str(amount),
            service=service.value,
        )
        return payment

    async def list_payments(self, *, actor: User) -> list[Payment]:
        if actor.is_admin:
            return await self.uow.payments.list_all()
        return await self.uow.payments.list_for_customer(actor.user_id)

    async def _record_failure(self, payment: Payment, actor: User, reason: str) -> None:
        payment.status = PaymentStatus.FAILED
        payment.failure_reason = reason
        payment.processed_at = datetime.now(UTC)
        await self.uow.commit()
        await logger.awarning(
            "payment_capture_failed",
            payment_id=payment.id,
            customer_id=actor.user_id,
            error=reason,
        )
