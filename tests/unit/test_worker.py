from __future__ import annotations

from types import SimpleNamespace

import pytest
from homeaudit.workers import jobs
from homeaudit.workers.scheduler import enqueue
from homeaudit.workers.worker import REGISTERED_JOBS, enqueue_job, log_failed_job


class RecordingQueue:
    def __init__(self) -> None:
        self.calls: list[tuple[object, dict]] = []

    def enqueue(self, func, **kwargs):
        self.calls.append((func, kwargs))
        return SimpleNamespace(id=f"job-{len(self.calls)}", description=kwargs.get("description"))


def test_registered_jobs_cover_both_sweeps() -> None:
    assert REGISTERED_JOBS == {
        "reminder_24_hour": jobs.send_24_hour_reminders_job,
        "reminder_day_of": jobs.send_day_of_reminders_job,
    }


def test_enqueue_job_sets_ttls_and_description() -> None:
    queue = RecordingQueue()

    job = enqueue_job(queue, "reminder_day_of")

    func, kwargs = queue.calls[0]
    assert job.id == "job-1"
    assert func is jobs.send_day_of_reminders_job
    assert kwargs["description"] == "reminder_day_of"
    assert kwargs["failure_ttl"] > kwargs["result_ttl"]


def test_scheduler_enqueue_uses_registered_job() -> None:
    queue = RecordingQueue()

    enqueue(queue, "reminder_24_hour")

    assert queue.calls[0][0] is jobs.send_24_hour_reminders_job


def test_unknown_job_is_rejected() -> None:
    with pytest.raises(ValueError):
        enqueue_job(RecordingQueue(), "nightly_cleanup")


def test_failed_job_handler_lets_rq_continue() -> None:
    job = SimpleNamespace(id="job-9", description="reminder_24_hour")

    assert log_failed_job(job, RuntimeError, RuntimeError("smtp down"), None) is True
