from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta

import structlog
from homeaudit.core.config import Settings, get_settings
from homeaudit.domain import User
from homeaudit.domain.errors import (
    NotFoundError,
    PermissionDeniedError,
    PreconditionError,
    ValidationError,
)
from homeaudit.domain.services.notifications import NotificationDispatcher
from homeaudit.infrastructure.db.models import (
    Appointment,
    AppointmentStatus,
    TimeSlot,
    UserRole,
)
from homeaudit.infrastructure.repositories import UnitOfWork
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


def utc_today() -> date:
    return datetime.now(UTC).date()


@dataclass(slots=True)
class BookingRequest:
    full_name: str
    email: str
    phone: str
    address: str
    preferred_date: date | str
    preferred_time: TimeSlot | str
    has_receipts_ready: bool = False
    notes: str | None = None


def can_view_appointment(appointment: Appointment, actor: User) -> bool:
    if actor.is_admin:
        return True
    if actor.is_officer:
        return appointment.officer_id == actor.user_id
    return appointment.customer_id is not None and appointment.customer_id == actor.user_id


def ensure_assigned_officer(appointment: Appointment, actor: User) -> None:
    """Item mutation and report generation belong to the officer on the visit."""
    if not actor.is_officer:
        raise PermissionDeniedError("Only officers can document audits")
    if appointment.officer_id != actor.user_id:
        raise PermissionDeniedError("Officer is not assigned to this appointment")


class AppointmentService:
    """Appointment lifecycle: booking, officer assignment and status transitions."""

    def __init__(
        self,
        session: AsyncSession,
        notifier: NotificationDispatcher | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.session = session
        self.uow = UnitOfWork(session)
        self.notifier = notifier
        self.settings = settings or get_settings()

    async def create_appointment(
        self, *, fields: BookingRequest, actor: User | None = None
    ) -> Appointment:
        preferred_date, preferred_time = self._validate_booking(fields)

        appointment = Appointment(
            customer_id=actor.user_id if actor is not None else None,
            full_name=fields.full_name.strip(),
            email=fields.email.strip(),
            phone=fields.phone.strip(),
            address=fields.address.strip(),
            preferred_date=preferred_date,
            preferred_time=preferred_time,
            status=AppointmentStatus.SCHEDULED,
            has_receipts_ready=fields.has_receipts_ready,
            notes=fields.notes,
        )
        await self.uow.appointments.add(appointment)
        await self.uow.commit()
        await self.uow.refresh(appointment)

        await logger.ainfo(
            "appointment_created",
            appointment_id=appointment.id,
            customer_id=appointment.customer_id,
            preferred_date=appointment.preferred_date.isoformat(),
            preferred_time=appointment.preferred_time.value,
        )

        if self.notifier is not None:
            await self.notifier.send_booking_confirmation(appointment)
        return appointment

    async def assign_officer(
        self, *, appointment_id: str, officer_id: str, actor: User
    ) -> Appointment:
        if not actor.is_admin:
            raise PermissionDeniedError("Only admins can assign officers")

        appointment = await self._get_or_raise(appointment_id, for_update=True)
        if appointment.status.is_terminal:
            raise PreconditionError(
                f"Cannot assign an officer to a {appointment.status.value} appointment"
            )

        officer = await self.uow.users.get(officer_id)
        if officer is None:
            raise NotFoundError(f"Officer {officer_id} not found")
        if officer.role != UserRole.OFFICER:
            raise PreconditionError(f"User {officer_id} is not an officer")
        if not officer.is_active:
            raise PreconditionError(f"Officer {officer_id} is inactive")

        previous = appointment.officer_id
        appointment.officer_id = officer.id
        await self.uow.commit()

        await logger.ainfo(
            "officer_assigned",
            appointment_id=appointment.id,
            officer_id=officer.id,
            previous_officer_id=previous,
        )
        return appointment

    async def update_status(
        self,
        *,
        appointment_id: str,
        new_status: AppointmentStatus | str,
        actor: User,
    ) -> Appointment:
        target = self._parse_status(new_status)

        if not (actor.is_admin or actor.is_officer):
            raise PermissionDeniedError("Only admins and officers can change appointment status")

        appointment = await self._get_or_raise(appointment_id, for_update=True)
        if actor.is_officer and appointment.officer_id != actor.user_id:
            raise PermissionDeniedError("Officer is not assigned to this appointment")

        current = appointment.status
        if target == current and not current.is_terminal:
            return appointment
        if not current.can_transition_to(target):
            raise PreconditionError(
                f"Cannot move appointment from {current.value} to {target.value}"
            )

        self.apply_status(appointment, target)
        await self.uow.commit()

        await logger.ainfo(
            "appointment_status_changed",
            appointment_id=appointment.id,
            from_status=current.value,
            to_status=target.value,
            actor_id=actor.user_id,
        )
        return appointment

    async def list_appointments(self, *, actor: User) -> list[Appointment]:
        if actor.is_admin:
            return await self.uow.appointments.list_all()
        if actor.is_officer:
            return await self.uow.appointments.list_for_officer(actor.user_id)
        return await self.uow.appointments.list_for_customer(actor.user_id)

    async def get_appointment(self, *, appointment_id: str, actor: User) -> Appointment:
        appointment = await self._get_or_raise(appointment_id)
        if not can_view_appointment(appointment, actor):
            raise PermissionDeniedError("Not allowed to view this appointment")
        return appointment

    @staticmethod
    def apply_status(appointment: Appointment, status: AppointmentStatus) -> None:
        """Set status and keep ``completed_at`` in step with it."""
        appointment.status = status
        if status == AppointmentStatus.COMPLETED:
            appointment.completed_at = datetime.now(UTC)
        else:
            appointment.completed_at = None

    async def _get_or_raise(self, appointment_id: str, *, for_update: bool = False) -> Appointment:
        appointment = await self.uow.appointments.get(appointment_id, for_update=for_update)
        if appointment is None:
            raise NotFoundError(f"Appointment {appointment_id} not found")
        return appointment

    @staticmethod
    def _parse_status(value: AppointmentStatus | str) -> AppointmentStatus:
        if isinstance(value, AppointmentStatus):
            return value
        try:
            return AppointmentStatus(str(value).strip().lower())
        except ValueError as exc:
            raise ValidationError(f"Unknown appointment status: {value}") from exc

    def _validate_booking(self, fields: BookingRequest) -> tuple[date, TimeSlot]:
        missing = [
            name
            for name in ("full_name", "email", "phone", "address")
            if not str(getattr(fields, name) or "").strip()
        ]
        if not fields.preferred_date:
            missing.append("preferred_date")
        if not fields.preferred_time:
            missing.append("preferred_time")
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        preferred_date = fields.preferred_date
        if isinstance(preferred_date, str):
            try:
                preferred_date = date.fromisoformat(preferred_date.strip()[:10])
            except ValueError as exc:
                raise ValidationError(f"Invalid preferred date: {fields.preferred_date}") from exc

        today = utc_today()
        earliest = today + timedelta(days=self.settings.booking_min_days_ahead)
        latest = today + timedelta(days=self.settings.booking_max_days_ahead)
        if not earliest <= preferred_date <= latest:
            raise ValidationError(
                f"Preferred date must be between {earliest.isoformat()} and {latest.isoformat()}"
            )

        preferred_time = fields.preferred_time
        if not isinstance(preferred_time, TimeSlot):
            slot = TimeSlot.parse(str(preferred_time))
            if slot is None:
                raise ValidationError(f"Unsupported time slot: {preferred_time}")
            preferred_time = slot

        return preferred_date, preferred_time
