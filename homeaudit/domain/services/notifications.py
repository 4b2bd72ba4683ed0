"""
Transactional email for the appointment lifecycle.

Every ``send_*`` method on ``NotificationDispatcher`` is best-effort: delivery
failures are logged and reported as ``False``, never raised to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from html import escape
from typing import TYPE_CHECKING, Protocol

import httpx
import structlog
from homeaudit.core.config import Settings, get_settings
from homeaudit.domain.errors import DependencyError
from homeaudit.domain.reference_data import (
    AGREEMENT_TERMS,
    FINAL_PREPARATION_CHECKLIST,
    NEXT_STEPS,
    PREPARATION_CHECKLIST,
    REPORT_CONTENTS,
)
from homeaudit.domain.services.report_compositor import format_long_date
from homeaudit.libs.resend_client import ResendClient, ResendClientError

if TYPE_CHECKING:
    from homeaudit.infrastructure.db.models import Appointment

logger = structlog.get_logger(__name__)

BOOKING_CONFIRMATION_SUBJECT = "Your Free Home Audit is Scheduled — Please Prepare Your Valuables"
REMINDER_24_HOUR_SUBJECT = "Reminder: Your Home Audit is Tomorrow — Please Prepare Your Valuables"
REMINDER_DAY_OF_SUBJECT = "Reminder: Your Home Audit is Today — Please Prepare Your Valuables"
AGREEMENT_REQUEST_SUBJECT = "Please Sign Your Service Agreement - SecureHome Audit"
REPORT_READY_SUBJECT = "Your Home Security Audit Report is Ready"


@dataclass(slots=True)
class EmailMessage:
    to: str
    subject: str
    html: str
    text: str
    tags: dict[str, str] = field(default_factory=dict)
    reply_to: str | None = None
    idempotency_key: str | None = None


class NotificationSender(Protocol):
    """Delivers one email; raises ``DependencyError`` on failure."""

    async def send(self, message: EmailMessage) -> str:
        """Send the message and return the provider's message id."""
        ...


class ResendNotificationSender:
    """``NotificationSender`` backed by the Resend HTTP API."""

    def __init__(
        self,
        client: ResendClient | None = None,
        from_email: str | None = None,
    ) -> None:
        self.client = client or ResendClient()
        self.from_email = from_email or get_settings().resend_from_email

    async def send(self, message: EmailMessage) -> str:
        try:
            response = await self.client.send_email(
                from_email=self.from_email,
                to_emails=[message.to],
                subject=message.subject,
                html=message.html,
                text=message.text,
                reply_to=message.reply_to,
                tags=message.tags,
                idempotency_key=message.idempotency_key,
            )
        except (ResendClientError, httpx.HTTPError) as exc:
            raise DependencyError(f"Email delivery failed: {exc}") from exc
        return response.id


@dataclass(slots=True)
class _EmailBody:
    heading: str
    greeting: str
    paragraphs: list[str]
    sections: list[tuple[str, list[str]]] = field(default_factory=list)
    link: tuple[str, str] | None = None
    closing: list[str] = field(default_factory=list)


class NotificationDispatcher:
    """Builds lifecycle emails and hands them to a ``NotificationSender``."""

    def __init__(self, sender: NotificationSender, settings: Settings | None = None) -> None:
        self.sender = sender
        self.settings = settings or get_settings()

    async def send_booking_confirmation(self, appointment: Appointment) -> bool:
        body = _EmailBody(
            heading="Appointment Confirmed!",
            greeting=f"Dear {appointment.full_name},",
            paragraphs=[
                f"Thank you for choosing {self.settings.company_name}! "
                "Your free home security audit has been successfully scheduled.",
            ],
            sections=[
                ("Appointment Details", self._appointment_lines(appointment)),
                ("Please Prepare the Following", list(PREPARATION_CHECKLIST)),
                ("What Happens Next?", list(NEXT_STEPS)),
            ],
            closing=[
                f"Need to make changes? Contact us at {self.settings.support_phone} "
                "or reply to this email.",
            ],
        )
        return await self._deliver(
            "booking_confirmation", appointment, BOOKING_CONFIRMATION_SUBJECT, body
        )

    async def send_agreement_request(self, appointment: Appointment, signing_url: str) -> bool:
        body = _EmailBody(
            heading="Digital Signature Required",
            greeting=f"Dear {appointment.full_name},",
            paragraphs=[
                "Thank you for booking your home security audit! Before we can proceed "
                "with your appointment, we need you to digitally sign our service agreement.",
            ],
            sections=[
                ("Service Agreement Details", list(AGREEMENT_TERMS)),
                ("Appointment Details", self._appointment_lines(appointment)),
            ],
            link=("Review & Sign Agreement", signing_url),
            closing=[
                "Important: Please complete the signature within 24 hours to ensure "
                "your appointment remains confirmed.",
                "If you have any questions about the agreement terms, please contact us at "
                f"{self.settings.support_phone} before signing.",
            ],
        )
        return await self._deliver(
            "agreement_request", appointment, AGREEMENT_REQUEST_SUBJECT, body
        )

    async def send_24_hour_reminder(self, appointment: Appointment) -> bool:
        body = self._reminder_body(
            appointment,
            heading="Reminder: Your Audit is Tomorrow!",
            when="tomorrow",
        )
        return await self._deliver(
            "reminder_24_hour", appointment, REMINDER_24_HOUR_SUBJECT, body
        )

    async def send_day_of_reminder(self, appointment: Appointment) -> bool:
        body = self._reminder_body(
            appointment,
            heading="Reminder: Your Audit is Today!",
            when="today",
        )
        return await self._deliver("reminder_day_of", appointment, REMINDER_DAY_OF_SUBJECT, body)

    async def send_report_ready(self, appointment: Appointment, report_url: str) -> bool:
        body = _EmailBody(
            heading="Your Report is Ready!",
            greeting=f"Dear {appointment.full_name},",
            paragraphs=[
                "Great news! Your comprehensive home security audit report has been "
                "completed and is ready for download.",
            ],
            sections=[("Your Report Includes", list(REPORT_CONTENTS))],
            link=("Download Your Report", report_url),
            closing=[
                "This report is professionally formatted for insurance claims. "
                "Keep multiple copies in secure locations.",
                f"Need additional copies or have questions? Contact us at "
                f"{self.settings.support_phone}",
            ],
        )
        return await self._deliver("report_ready", appointment, REPORT_READY_SUBJECT, body)

    def _reminder_body(self, appointment: Appointment, *, heading: str, when: str) -> _EmailBody:
        return _EmailBody(
            heading=heading,
            greeting=f"Hello {appointment.full_name},",
            paragraphs=[
                f"This is a friendly reminder that your {self.settings.company_name} visit is "
                f"scheduled for {when}. Our licensed security officer will arrive at the "
                "scheduled time to document your valuables.",
            ],
            sections=[
                ("Your Appointment", self._appointment_lines(appointment)),
                ("Final Preparation Checklist", list(FINAL_PREPARATION_CHECKLIST)),
            ],
            closing=[f"Questions or concerns? Contact us at {self.settings.support_phone}"],
        )

    def _appointment_lines(self, appointment: Appointment) -> list[str]:
        return [
            f"Date: {format_long_date(appointment.preferred_date)}",
            f"Time: {appointment.preferred_time.value}",
            f"Address: {appointment.address}",
            f"Appointment ID: {appointment.id}",
        ]

    async def _deliver(
        self,
        kind: str,
        appointment: Appointment,
        subject: str,
        body: _EmailBody,
    ) -> bool:
        text, html = self._render(body)
        message = EmailMessage(
            to=appointment.email,
            subject=subject,
            html=html,
            text=text,
            tags={"kind": kind, "appointment_id": appointment.id},
            reply_to=self.settings.support_email,
            idempotency_key=f"{kind}/{appointment.id}",
        )
        try:
            message_id = await self.sender.send(message)
        except DependencyError as exc:
            await logger.awarning(
                "notification_failed",
                kind=kind,
                appointment_id=appointment.id,
                error=str(exc),
            )
            return False
        except Exception as exc:
            # Email never fails the operation that triggered it.
            await logger.aerror(
                "notification_failed",
                kind=kind,
                appointment_id=appointment.id,
                error=str(exc),
                exc_info=True,
            )
            return False

        await logger.ainfo(
            "notification_sent",
            kind=kind,
            appointment_id=appointment.id,
            message_id=message_id,
        )
        return True

    def _render(self, body: _EmailBody) -> tuple[str, str]:
        footer = (
            f"{self.settings.company_name} - Professional Home Security Documentation",
            f"Available 24/7 for support | {self.settings.support_email}",
        )

        text_lines = [body.heading, "", body.greeting, ""]
        text_lines.extend(body.paragraphs)
        for title, items in body.sections:
            text_lines.extend(["", f"{title}:"])
            text_lines.extend(f"- {item}" for item in items)
        if body.link:
            label, url = body.link
            text_lines.extend(["", f"{label}: {url}"])
        if body.closing:
            text_lines.append("")
            text_lines.extend(body.closing)
        text_lines.extend(["", *footer])

        html_parts = [
            f"<h1>{escape(self.settings.company_name)}</h1>",
            f"<h2>{escape(body.heading)}</h2>",
            f"<p>{escape(body.greeting)}</p>",
        ]
        html_parts.extend(f"<p>{escape(paragraph)}</p>" for paragraph in body.paragraphs)
        for title, items in body.sections:
            html_parts.append(f"<h3>{escape(title)}</h3>")
            html_parts.append(
                "<ul>" + "".join(f"<li>{escape(item)}</li>" for item in items) + "</ul>"
            )
        if body.link:
            label, url = body.link
            html_parts.append(f'<p><a href="{escape(url, quote=True)}">{escape(label)}</a></p>')
        html_parts.extend(f"<p>{escape(line)}</p>" for line in body.closing)
        html_parts.append(
            "<div class=\"footer\">" + "".join(f"<p>{escape(line)}</p>" for line in footer) + "</div>"
        )

        return "\n".join(text_lines), "\n".join(html_parts)
