"""Enqueue the reminder sweeps on their cadence.

The 24-hour sweep runs at the top of every hour; the day-of sweep runs once
a day at ``DAY_OF_HOUR`` UTC. Both jobs skip appointments whose sent marker
is already stamped.
"""

from __future__ import annotations

import time
from datetime import UTC, datetime, timedelta

import structlog
from homeaudit.core.logging import setup_logging
from homeaudit.workers.worker import enqueue_job, get_queue
from rq import Queue

logger = structlog.get_logger()

DAY_OF_HOUR = 8


def due_jobs(now: datetime, last_run: datetime | None) -> list[str]:
    """Return the sweeps whose slot started after ``last_run`` and at or before ``now``."""
    current_hour = now.replace(minute=0, second=0, microsecond=0)
    if last_run is not None and last_run >= current_hour:
        return []
    due = ["reminder_24_hour"]
    if current_hour.hour == DAY_OF_HOUR:
        due.append("reminder_day_of")
    return due


def enqueue(queue: Queue, job_name: str) -> None:
    job = enqueue_job(queue, job_name)
    logger.info("reminder_job_enqueued", job=job_name, job_id=job.id)


def run_forever(poll_seconds: int = 60) -> None:
    setup_logging()
    queue = get_queue()
    last_run: datetime | None = None
    logger.info("scheduler_started", day_of_hour=DAY_OF_HOUR)

    while True:
        now = datetime.now(UTC)
        due = due_jobs(now, last_run)
        for job_name in due:
            enqueue(queue, job_name)
        if due:
            last_run = now
        next_hour = now.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)
        time.sleep(min(poll_seconds, max(1, (next_hour - now).total_seconds())))


if __name__ == "__main__":
    run_forever()
