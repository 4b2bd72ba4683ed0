"""Service agreements collected through e-signature envelopes."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from html import escape
from typing import Protocol

import httpx
import structlog
from homeaudit.core.config import Settings, get_settings
from homeaudit.domain import User
from homeaudit.domain.errors import (
    DependencyError,
    NotFoundError,
    PermissionDeniedError,
    PreconditionError,
)
from homeaudit.domain.reference_data import AGREEMENT_TERMS
from homeaudit.domain.services.appointments import can_view_appointment
from homeaudit.domain.services.notifications import NotificationDispatcher
from homeaudit.domain.services.report_compositor import format_long_date
from homeaudit.infrastructure.db.models import (
    AgreementStatus,
    Appointment,
    SignatureAgreement,
)
from homeaudit.infrastructure.repositories import UnitOfWork
from homeaudit.libs.docusign_client import DocuSignClient, DocuSignClientError
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

# Provider envelope status -> local agreement status
_STATUS_MAP = {
    "sent": AgreementStatus.SENT,
    "delivered": AgreementStatus.SENT,
    "created": AgreementStatus.SENT,
    "completed": AgreementStatus.SIGNED,
    "signed": AgreementStatus.SIGNED,
    "declined": AgreementStatus.DECLINED,
    "voided": AgreementStatus.EXPIRED,
    "expired": AgreementStatus.EXPIRED,
}


@dataclass(slots=True)
class EnvelopeRequest:
    appointment_id: str
    signer_name: str
    signer_email: str
    document_name: str
    document_html: str


@dataclass(slots=True)
class Envelope:
    envelope_id: str
    signing_url: str | None


class SignatureProvider(Protocol):
    """Creates envelopes and reports their status; raises ``DependencyError`` on failure."""

    async def create_envelope(self, request: EnvelopeRequest) -> Envelope:
        ...

    async def get_status(self, envelope_id: str) -> str:
        ...


class DocuSignSignatureProvider:
    def __init__(self, client: DocuSignClient | None = None, return_url: str | None = None) -> None:
        self.client = client or DocuSignClient()
        self.return_url = return_url or get_settings().docusign_return_url

    async def create_envelope(self, request: EnvelopeRequest) -> Envelope:
        try:
            summary = await self.client.create_envelope(
                signer_name=request.signer_name,
                signer_email=request.signer_email,
                client_user_id=request.appointment_id,
                document_name=request.document_name,
                document_html=request.document_html,
                email_subject="SecureHome Audit Service Agreement - Please Sign",
            )
            signing_url = await self.client.create_recipient_view(
                summary.envelope_id,
                signer_name=request.signer_name,
                signer_email=request.signer_email,
                client_user_id=request.appointment_id,
                return_url=self.return_url,
            )
        except (DocuSignClientError, httpx.HTTPError) as exc:
            raise DependencyError(f"Envelope creation failed: {exc}") from exc
        return Envelope(envelope_id=summary.envelope_id, signing_url=signing_url)

    async def get_status(self, envelope_id: str) -> str:
        try:
            summary = await self.client.get_envelope(envelope_id)
        except (DocuSignClientError, httpx.HTTPError) as exc:
            raise DependencyError(f"Envelope status check failed: {exc}") from exc
        return summary.status


class AgreementService:
    def __init__(
        self,
        session: AsyncSession,
        provider: SignatureProvider,
        notifier: NotificationDispatcher | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.session = session
        self.uow = UnitOfWork(session)
        self.provider = provider
        self.notifier = notifier
        self.settings = settings or get_settings()

    async def send_agreement(self, *, appointment_id: str, actor: User) -> SignatureAgreement:
        appointment = await self.uow.appointments.get(appointment_id)
        if appointment is None:
            raise NotFoundError(f"Appointment {appointment_id} not found")
        if not can_view_appointment(appointment, actor):
            raise PermissionDeniedError("Not allowed to send an agreement for this appointment")
        if appointment.status.is_terminal:
            raise PreconditionError(
                f"Cannot send an agreement for a {appointment.status.value} appointment"
            )

        envelope = await self.provider.create_envelope(
            EnvelopeRequest(
                appointment_id=appointment.id,
                signer_name=appointment.full_name,
                signer_email=appointment.email,
                document_name=f"{self.settings.company_name} Service Agreement - {appointment.id}",
                document_html=self._agreement_html(appointment),
            )
        )

        agreement = SignatureAgreement(
            appointment_id=appointment.id,
            customer_id=appointment.customer_id,
            envelope_id=envelope.envelope_id,
            status=AgreementStatus.SENT,
            signing_url=envelope.signing_url,
        )
        await self.uow.agreements.add(agreement)
        await self.uow.commit()

        await logger.ainfo(
            "agreement_sent",
            appointment_id=appointment.id,
            envelope_id=envelope.envelope_id,
        )

        if self.notifier is not None and envelope.signing_url:
            await self.notifier.send_agreement_request(appointment, envelope.signing_url)
        return agreement

    async def check_status(self, *, envelope_id: str, actor: User) -> SignatureAgreement:
        agreement = await self.uow.agreements.get_by_envelope(envelope_id)
        if agreement is None:
            raise NotFoundError(f"Agreement {envelope_id} not found")
        if not (actor.is_admin or agreement.customer_id == actor.user_id):
            appointment = await self.uow.appointments.get(agreement.appointment_id)
            if appointment is None or not can_view_appointment(appointment, actor):
                raise PermissionDeniedError("Not allowed to view this agreement")

        provider_status = (await self.provider.get_status(envelope_id)).lower()
        status = _STATUS_MAP.get(provider_status, agreement.status)
        if status != agreement.status:
            previous = agreement.status
            agreement.status = status
            if status == AgreementStatus.SIGNED and agreement.signed_at is None:
                agreement.signed_at = datetime.now(UTC)
            await self.uow.commit()
            await logger.ainfo(
                "agreement_status_changed",
                envelope_id=envelope_id,
                from_status=previous.value,
                to_status=status.value,
            )
        return agreement

    def _agreement_html(self, appointment: Appointment) -> str:
        company = escape(self.settings.company_name)
        terms = "".join(f"<li>{escape(term)}</li>" for term in AGREEMENT_TERMS)
        return (
            "<!DOCTYPE html><html><head><meta charset=\"UTF-8\">"
            f"<title>{company} Service Agreement</title></head><body>"
            f"<h1>{company} Service Agreement</h1>"
            "<p><strong>Professional Home Security Documentation Services</strong></p>"
            f"<p><strong>Customer:</strong> {escape(appointment.full_name)}</p>"
            f"<p><strong>Email:</strong> {escape(appointment.email)}</p>"
            f"<p><strong>Appointment ID:</strong> {escape(appointment.id)}</p>"
            f"<p><strong>Service Date:</strong> {format_long_date(appointment.preferred_date)}"
            f" at {escape(appointment.preferred_time.value)}</p>"
            f"<p><strong>Property Address:</strong> {escape(appointment.address)}</p>"
            "<p><strong>Service Type:</strong> Home Security Audit</p>"
            f"<h2>Terms</h2><ul>{terms}</ul>"
            "<p>Customer Signature: ______________________</p>"
            "</body></html>"
        )
