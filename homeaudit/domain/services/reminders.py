"""Reminder sweeps run by the background worker."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta

import structlog
from homeaudit.domain.services.notifications import NotificationDispatcher
from homeaudit.infrastructure.db.models import Appointment
from homeaudit.infrastructure.repositories import UnitOfWork
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


@dataclass(slots=True)
class SweepResult:
    kind: str
    visit_date: date
    sent: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def candidates(self) -> int:
        return len(self.sent) + len(self.failed)


class ReminderService:
    def __init__(self, session: AsyncSession, notifier: NotificationDispatcher) -> None:
        self.session = session
        self.uow = UnitOfWork(session)
        self.notifier = notifier

    async def send_24_hour_reminders(self, *, now: datetime | None = None) -> SweepResult:
        """Hourly: scheduled visits tomorrow that have not had their reminder."""
        now = now or datetime.now(UTC)
        visit_date = (now + timedelta(days=1)).date()
        appointments = await self.uow.appointments.list_due_for_reminder(
            visit_date=visit_date,
            sent_marker=Appointment.reminder_sent_at,
        )
        result = SweepResult(kind="reminder_24_hour", visit_date=visit_date)
        for appointment in appointments:
            if await self.notifier.send_24_hour_reminder(appointment):
                appointment.reminder_sent_at = datetime.now(UTC)
                await self.uow.commit()
                result.sent.append(appointment.id)
            else:
                result.failed.append(appointment.id)
        await self._log(result)
        return result

    async def send_day_of_reminders(self, *, now: datetime | None = None) -> SweepResult:
        """Daily at 08:00: scheduled visits today without a day-of reminder."""
        now = now or datetime.now(UTC)
        visit_date = now.date()
        appointments = await self.uow.appointments.list_due_for_reminder(
            visit_date=visit_date,
            sent_marker=Appointment.day_of_reminder_sent_at,
        )
        result = SweepResult(kind="reminder_day_of", visit_date=visit_date)
        for appointment in appointments:
            if await self.notifier.send_day_of_reminder(appointment):
                appointment.day_of_reminder_sent_at = datetime.now(UTC)
                await self.uow.commit()
                result.sent.append(appointment.id)
            else:
                result.failed.append(appointment.id)
        await self._log(result)
        return result

    async def _log(self, result: SweepResult) -> None:
        await logger.ainfo(
            "reminder_sweep_finished",
            kind=result.kind,
            visit_date=result.visit_date.isoformat(),
            candidates=result.candidates,
            sent=len(result.sent),
            failed=len(result.failed),
        )
