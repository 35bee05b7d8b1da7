"""Background settlement runs requested over HTTP and their outcomes."""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from threading import Lock, Thread
from typing import Any, Callable, Optional
from uuid import uuid4

from ..logging_config import get_logger

logger = get_logger("jobs")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobStatus(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class SettlementJob:
    id: str
    as_of: Optional[date]
    status: JobStatus = JobStatus.QUEUED
    created_at: datetime = field(default_factory=_utcnow)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    error: Optional[str] = None
    result: Optional[dict[str, Any]] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "as_of": self.as_of.isoformat() if self.as_of else None,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "error": self.error,
            "result": self.result,
        }


class JobTracker:
    """Runs settlement in a daemon thread per request and remembers recent outcomes.

    ``run_async=False`` executes inline, which the test configuration uses so a
    job is finished by the time ``submit`` returns. Only the newest
    ``max_jobs`` jobs are kept.
    """

    def __init__(
        self,
        run_settlement: Callable[[Optional[date]], Any],
        *,
        run_async: bool = True,
        max_jobs: int = 100,
    ):
        self.run_settlement = run_settlement
        self.run_async = run_async
        self.max_jobs = max_jobs
        self._jobs: OrderedDict[str, SettlementJob] = OrderedDict()
        self._lock = Lock()

    def submit(self, as_of: Optional[date] = None) -> SettlementJob:
        job = SettlementJob(id=uuid4().hex, as_of=as_of)
        with self._lock:
            self._jobs[job.id] = job
            while len(self._jobs) > self.max_jobs:
                self._jobs.popitem(last=False)

        if self.run_async:
            thread = Thread(
                target=self._execute, args=(job,), name=f"settlement-job-{job.id}", daemon=True
            )
            thread.start()
        else:
            self._execute(job)
        return job

    def _execute(self, job: SettlementJob) -> None:
        job.status = JobStatus.RUNNING
        job.started_at = _utcnow()
        try:
            summary = self.run_settlement(job.as_of)
        except Exception as exc:
            logger.error("Settlement job failed", exc_info=True, extra={"job_id": job.id})
            job.status = JobStatus.FAILED
            job.error = str(exc)
        else:
            job.status = JobStatus.SUCCEEDED
            job.result = summary.to_dict()
        finally:
            job.finished_at = _utcnow()

    def get(self, job_id: str) -> Optional[SettlementJob]:
        with self._lock:
            return self._jobs.get(job_id)
