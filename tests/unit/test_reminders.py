from __future__ import annotations

from datetime import UTC, datetime, timedelta

from homeaudit.domain.services.reminders import ReminderService
from homeaudit.infrastructure.db.models import Appointment, AppointmentStatus, TimeSlot
from homeaudit.workers.scheduler import due_jobs

NOW = datetime(2026, 10, 18, 8, 5, tzinfo=UTC)


def make_appointment(email: str, days: int, status=AppointmentStatus.SCHEDULED) -> Appointment:
    return Appointment(
        full_name=email.split("@")[0].title(),
        email=email,
        phone="555-0100",
        address="1 Main Street",
        preferred_date=(NOW + timedelta(days=days)).date(),
        preferred_time=TimeSlot.TEN_AM,
        status=status,
    )


async def test_24_hour_sweep_targets_tomorrow_once(session, notifier, sender) -> None:
    session.add_all(
        [
            make_appointment("tomorrow@example.com", 1),
            make_appointment("today@example.com", 0),
            make_appointment("cancelled@example.com", 1, AppointmentStatus.CANCELLED),
        ]
    )
    await session.commit()
    service = ReminderService(session, notifier)

    first = await service.send_24_hour_reminders(now=NOW)
    second = await service.send_24_hour_reminders(now=NOW)

    assert len(first.sent) == 1
    assert second.candidates == 0
    assert [m.to for m in sender.messages] == ["tomorrow@example.com"]


async def test_day_of_sweep_targets_today(session, notifier, sender) -> None:
    session.add_all([make_appointment("today@example.com", 0), make_appointment("t@example.com", 1)])
    await session.commit()

    result = await ReminderService(session, notifier).send_day_of_reminders(now=NOW)

    assert result.visit_date == NOW.date()
    assert [m.to for m in sender.messages] == ["today@example.com"]


async def test_failed_send_leaves_marker_unset(session, notifier, sender) -> None:
    appointment = make_appointment("tomorrow@example.com", 1)
    session.add(appointment)
    await session.commit()
    sender.fail = True

    result = await ReminderService(session, notifier).send_24_hour_reminders(now=NOW)

    assert result.failed == [appointment.id]
    assert appointment.reminder_sent_at is None

    sender.fail = False
    retry = await ReminderService(session, notifier).send_24_hour_reminders(now=NOW)
    assert retry.sent == [appointment.id]


def test_scheduler_cadence() -> None:
    eight = datetime(2026, 10, 18, 8, 0, 30, tzinfo=UTC)
    nine = datetime(2026, 10, 18, 9, 0, 10, tzinfo=UTC)

    assert due_jobs(eight, None) == ["reminder_24_hour", "reminder_day_of"]
    assert due_jobs(eight + timedelta(minutes=5), eight) == []
    assert due_jobs(nine, eight) == ["reminder_24_hour"]


async def test_reminder_job_summarises_and_disposes_engine(
    session, session_factory, sender, monkeypatch
) -> None:
    from homeaudit.workers import jobs

    tomorrow = datetime.now(UTC) + timedelta(days=1)
    appointment = make_appointment("tomorrow@example.com", 0)
    appointment.preferred_date = tomorrow.date()
    session.add(appointment)
    await session.commit()

    disposed: list[bool] = []

    async def fake_dispose() -> None:
        disposed.append(True)

    monkeypatch.setattr(jobs, "get_session_factory", lambda: session_factory)
    monkeypatch.setattr(jobs, "dispose_engine", fake_dispose)

    summary = await jobs._run_sweep("reminder_24_hour", sender)

    assert summary["kind"] == "reminder_24_hour"
    assert summary["sent"] == 1
    assert disposed == [True]
