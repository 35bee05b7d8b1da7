from __future__ import annotations

import threading
from datetime import date

from timedeposit.services.jobs import JobStatus, JobTracker


class _Summary:
    def __init__(self, as_of):
        self.as_of = as_of

    def to_dict(self):
        return {"as_of": self.as_of.isoformat() if self.as_of else None, "processed": []}


def test_synchronous_job_records_summary():
    tracker = JobTracker(_Summary, run_async=False)
    job = tracker.submit(date(2026, 2, 5))

    stored = tracker.get(job.id)
    assert stored is job
    assert stored.status is JobStatus.SUCCEEDED
    payload = stored.to_dict()
    assert payload["status"] == "succeeded"
    assert payload["as_of"] == "2026-02-05"
    assert payload["result"] == {"as_of": "2026-02-05", "processed": []}
    assert payload["finished_at"] is not None


def test_failed_job_keeps_error():
    def fail(as_of):
        raise RuntimeError("ledger offline")

    tracker = JobTracker(fail, run_async=False)
    job = tracker.submit()

    assert job.status is JobStatus.FAILED
    assert job.error == "ledger offline"
    assert job.result is None


def test_async_job_completes():
    tracker = JobTracker(_Summary, run_async=True)
    job = tracker.submit()
    # Wait on the job thread by name.
    for thread in threading.enumerate():
        if thread.name == f"settlement-job-{job.id}":
            thread.join(timeout=5)
    assert tracker.get(job.id).status is JobStatus.SUCCEEDED
    assert tracker.get(job.id).result == {"as_of": None, "processed": []}


def test_tracker_keeps_only_newest_jobs():
    tracker = JobTracker(_Summary, run_async=False, max_jobs=3)
    ids = [tracker.submit().id for _ in range(5)]

    assert [tracker.get(job_id) for job_id in ids[:2]] == [None, None]
    assert all(tracker.get(job_id) is not None for job_id in ids[2:])
    assert tracker.get("unknown") is None
