from __future__ import annotations

from decimal import Decimal

import pytest
from homeaudit.core.auth import Role
from homeaudit.domain import User
from homeaudit.domain.errors import DependencyError, PermissionDeniedError, ValidationError
from homeaudit.domain.services.agreements import AgreementService
from homeaudit.domain.services.appointments import AppointmentService, BookingRequest
from homeaudit.domain.services.payments import PaymentService, provider_payment_status
from homeaudit.infrastructure.db.models import AgreementStatus, PaymentStatus, UserRole

from tests.utils import actor, days_from_today, seed_user


async def test_capture_records_completed_payment(session_factory, session, payment_processor):
    owner = actor(
        await seed_user(
            session_factory, role=UserRole.HOMEOWNER, email="h@example.com", full_name="Hal"
        )
    )

    payment = await PaymentService(session, payment_processor).capture_payment(
        source_id="cnon:ok", amount=Decimal("49.99"), idempotency_key="key-1", actor=owner
    )

    assert payment.status == PaymentStatus.COMPLETED
    assert payment.provider_payment_id == "sq-1"
    assert payment.payment_method == "card"


async def test_declined_capture_is_recorded_and_raised(
    session_factory, session, payment_processor
) -> None:
    owner = actor(
        await seed_user(
            session_factory, role=UserRole.HOMEOWNER, email="h@example.com", full_name="Hal"
        )
    )
    payment_processor.decline = True
    service = PaymentService(session, payment_processor)

    with pytest.raises(DependencyError):
        await service.capture_payment(
            source_id="cnon:bad", amount=Decimal("10"), idempotency_key="key-2", actor=owner
        )

    [failed] = await service.list_payments(actor=owner)
    assert failed.status == PaymentStatus.FAILED
    assert "CARD_DECLINED" in failed.failure_reason


async def test_capture_rejects_non_positive_amount(session, payment_processor) -> None:
    with pytest.raises(ValidationError):
        await PaymentService(session, payment_processor).capture_payment(
            source_id="cnon:ok",
            amount=Decimal("0"),
            idempotency_key="key-3",
            actor=User(user_id="u-1", role=Role.HOMEOWNER),
        )


async def test_agreement_lifecycle(
    session_factory, session, signature_provider, notifier, sender
) -> None:
    owner_row = await seed_user(
        session_factory, role=UserRole.HOMEOWNER, email="jane@example.com", full_name="Jane"
    )
    stranger = actor(
        await seed_user(
            session_factory, role=UserRole.HOMEOWNER, email="s@example.com", full_name="Sam"
        )
    )
    owner = actor(owner_row)
    appointment = await AppointmentService(session).create_appointment(
        fields=BookingRequest(
            full_name="Jane Doe",
            email="jane@example.com",
            phone="555-0100",
            address="12 Elm Street",
            preferred_date=days_from_today(3),
            preferred_time="10:00 AM",
        ),
        actor=owner,
    )
    service = AgreementService(session, signature_provider, notifier=notifier)

    with pytest.raises(PermissionDeniedError):
        await service.send_agreement(appointment_id=appointment.id, actor=stranger)

    agreement = await service.send_agreement(appointment_id=appointment.id, actor=owner)
    assert agreement.status == AgreementStatus.SENT
    assert agreement.signing_url == "https://sign.test/env-1"
    assert "12 Elm Street" in signature_provider.requests[0].document_html
    assert len(sender.subjects_for("jane@example.com")) == 1

    signature_provider.statuses["env-1"] = "completed"
    refreshed = await service.check_status(envelope_id="env-1", actor=owner)
    assert refreshed.status == AgreementStatus.SIGNED
    assert refreshed.signed_at is not None


@pytest.mark.parametrize(
    ("provider_status", "expected"),
    [
        ("COMPLETED", PaymentStatus.COMPLETED),
        ("APPROVED", PaymentStatus.PENDING),
        ("PENDING", PaymentStatus.PENDING),
        ("CANCELED", PaymentStatus.FAILED),
        ("FAILED", PaymentStatus.FAILED),
        ("SOMETHING_NEW", PaymentStatus.PENDING),
    ],
)
def test_provider_payment_status(provider_status: str, expected: PaymentStatus) -> None:
    assert provider_payment_status(provider_status) is expected


async def test_approved_capture_stays_pending(
    session_factory, session, payment_processor
) -> None:
    owner = actor(
        await seed_user(
            session_factory, role=UserRole.HOMEOWNER, email="h@example.com", full_name="Hal"
        )
    )
    payment_processor.status = "APPROVED"

    payment = await PaymentService(session, payment_processor).capture_payment(
        source_id="cnon:ok", amount=Decimal("5.00"), idempotency_key="key-4", actor=owner
    )

    assert payment.status == PaymentStatus.PENDING
    assert payment.provider_payment_id == "sq-1"


async def test_canceled_capture_is_recorded_as_failed(
    session_factory, session, payment_processor
) -> None:
    owner = actor(
        await seed_user(
            session_factory, role=UserRole.HOMEOWNER, email="h@example.com", full_name="Hal"
        )
    )
    payment_processor.status = "CANCELED"
    service = PaymentService(session, payment_processor)

    with pytest.raises(DependencyError):
        await service.capture_payment(
            source_id="cnon:ok", amount=Decimal("5.00"), idempotency_key="key-5", actor=owner
        )

    [failed] = await service.list_payments(actor=owner)
    assert failed.status == PaymentStatus.FAILED
    assert failed.failure_reason == "Payment sq-1 was canceled"
