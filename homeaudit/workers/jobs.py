"""Background jobs executed by the rq worker."""

from __future__ import annotations

import asyncio
from typing import Any

import structlog
from homeaudit.domain.services.notifications import (
    NotificationDispatcher,
    NotificationSender,
    ResendNotificationSender,
)
from homeaudit.domain.services.reminders import ReminderService, SweepResult
from homeaudit.infrastructure.db.session import dispose_engine, get_session_factory

logger = structlog.get_logger()


def send_24_hour_reminders_job(sender: NotificationSender | None = None) -> dict[str, Any]:
    """Hourly sweep for visits scheduled tomorrow."""
    return asyncio.run(_run_sweep("reminder_24_hour", sender))


def send_day_of_reminders_job(sender: NotificationSender | None = None) -> dict[str, Any]:
    """Daily 08:00 sweep for visits scheduled today."""
    return asyncio.run(_run_sweep("reminder_day_of", sender))


async def _run_sweep(kind: str, sender: NotificationSender | None) -> dict[str, Any]:
    notifier = NotificationDispatcher(sender or ResendNotificationSender())
    try:
        async with get_session_factory()() as session:
            service = ReminderService(session, notifier)
            if kind == "reminder_day_of":
                result = await service.send_day_of_reminders()
            else:
                result = await service.send_24_hour_reminders()
    finally:
        await dispose_engine()
    return _summary(result)


def _summary(result: SweepResult) -> dict[str, Any]:
    summary = {
        "kind": result.kind,
        "visit_date": result.visit_date.isoformat(),
        "sent": len(result.sent),
        "failed": len(result.failed),
    }
    logger.info("reminder_job_completed", **summary)
    return summary
