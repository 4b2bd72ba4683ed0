"""rq worker for the reminder sweeps.

Run with ``python -m homeaudit.workers.worker`` next to the scheduler
(``python -m homeaudit.workers.scheduler``), which enqueues the sweeps.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import structlog
from homeaudit.core.config import get_settings
from homeaudit.core.logging import setup_logging
from homeaudit.workers import jobs
from redis import Redis
from rq import Queue, Worker
from rq.job import Job

logger = structlog.get_logger()

REMINDER_QUEUE = "reminders"
JOB_TIMEOUT_SECONDS = 15 * 60
RESULT_TTL_SECONDS = 24 * 60 * 60
FAILURE_TTL_SECONDS = 7 * 24 * 60 * 60

REGISTERED_JOBS: dict[str, Callable[..., dict[str, Any]]] = {
    "reminder_24_hour": jobs.send_24_hour_reminders_job,
    "reminder_day_of": jobs.send_day_of_reminders_job,
}


def get_queue(connection: Redis | None = None) -> Queue:
    connection = connection or Redis.from_url(get_settings().redis_url)
    return Queue(REMINDER_QUEUE, connection=connection, default_timeout=JOB_TIMEOUT_SECONDS)


def enqueue_job(queue: Queue, job_name: str) -> Job:
    try:
        func = REGISTERED_JOBS[job_name]
    except KeyError as exc:
        raise ValueError(f"Unknown job: {job_name}") from exc
    return queue.enqueue(
        func,
        result_ttl=RESULT_TTL_SECONDS,
        failure_ttl=FAILURE_TTL_SECONDS,
        description=job_name,
    )


def log_failed_job(job: Job, exc_type: type, exc_value: BaseException, _traceback: Any) -> bool:
    logger.error(
        "reminder_job_failed",
        job_id=job.id,
        job=job.description,
        error_type=exc_type.__name__,
        error=str(exc_value),
    )
    return True


async def main() -> None:
    """Bootstrap the worker on the reminder queue."""
    setup_logging()
    settings = get_settings()
    redis_connection = Redis.from_url(settings.redis_url)
    logger.info(
        "worker_bootstrap",
        queue=REMINDER_QUEUE,
        jobs=sorted(REGISTERED_JOBS),
    )

    await asyncio.to_thread(_run_worker, redis_connection)


def _run_worker(connection: Redis) -> None:
    worker = Worker(
        [get_queue(connection)],
        connection=connection,
        name="homeaudit-reminders",
        exception_handlers=[log_failed_job],
    )
    worker.work(with_scheduler=True)


if __name__ == "__main__":
    asyncio.run(main())
