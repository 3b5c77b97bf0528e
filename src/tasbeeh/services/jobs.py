"""Fire-and-forget background jobs for remote writes."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import partial
from threading import Condition, Lock, Thread
from typing import Any, Callable, Deque, Dict, Iterable, Optional
from uuid import uuid4

logger = logging.getLogger("tasbeeh.jobs")

__all__ = ["Job", "RemoteDispatcher"]

_FINISHED = {"succeeded", "failed"}


@dataclass
class Job:
    """Simple in-memory representation of a background job."""

    id: str
    name: str
    key: str
    status: str
    created_at: datetime
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "key": self.key,
            "status": self.status,
            "created_at": self.created_at.isoformat(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "error": self.error,
            "metadata": self.metadata,
        }


class RemoteDispatcher:
    """Runs one-shot jobs on daemon threads, FIFO per entity key.

    Jobs sharing a key (``counter:<id>``, ``session:<id>`` ...) run one after
    another in enqueue order; different keys run concurrently. A target reports
    failure by raising or by returning ``False``/``None``; either way the
    failure is logged and recorded on the job, never raised to the caller.
    """

    def __init__(self, *, run_async: bool = True, max_jobs: int = 100) -> None:
        self._run_async = run_async
        self._max_jobs = max_jobs
        self._jobs: Dict[str, Job] = {}
        self._lanes: Dict[str, Deque[tuple[Job, Callable[[], Any]]]] = {}
        self._lock = Lock()
        self._idle = Condition(self._lock)

    @property
    def run_async(self) -> bool:
        return self._run_async

    def set_async_execution(self, enabled: bool) -> None:
        """Configure whether jobs run in threads (True) or synchronously (False)."""

        self._run_async = enabled

    def enqueue(
        self,
        name: str,
        target: Callable[..., Any],
        *,
        key: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        **kwargs: Any,
    ) -> Job:
        """Schedule ``target(**kwargs)`` and return the tracked job."""

        job_id = uuid4().hex
        job = Job(
            id=job_id,
            name=name,
            key=key or job_id,
            status="queued",
            created_at=datetime.now(timezone.utc),
            metadata=metadata or {},
        )
        runner = partial(target, **kwargs)

        if not self._run_async:
            with self._idle:
                # Jobs queued for this key before the switch to inline mode go first.
                self._idle.wait_for(lambda: job.key not in self._lanes)
                self._store_job(job)
            self._execute(job, runner)
            return job

        with self._lock:
            self._store_job(job)
            lane = self._lanes.get(job.key)
            if lane is not None:
                # A drainer is already working through this key.
                lane.append((job, runner))
                return job
            self._lanes[job.key] = deque([(job, runner)])

        thread = Thread(
            target=self._drain,
            args=(job.key,),
            name=f"TasbeehJob-{job.key}",
            daemon=True,
        )
        thread.start()
        return job

    def _drain(self, key: str) -> None:
        while True:
            with self._lock:
                lane = self._lanes[key]
                if not lane:
                    del self._lanes[key]
                    self._idle.notify_all()
                    return
                job, runner = lane[0]
            self._execute(job, runner)
            with self._lock:
                lane.popleft()

    def _execute(self, job: Job, runner: Callable[[], Any]) -> None:
        job.status = "running"
        job.started_at = datetime.now(timezone.utc)
        try:
            result = runner()
        except Exception as exc:
            job.status = "failed"
            job.error = str(exc)
            logger.error(f"Remote job {job.name} failed: {exc}", extra={"job_key": job.key}, exc_info=True)
        else:
            if result is False or result is None:
                job.status = "failed"
                job.error = "remote write reported failure"
                logger.warning(f"Remote job {job.name} reported failure", extra={"job_key": job.key})
            else:
                job.status = "succeeded"
        finally:
            job.finished_at = datetime.now(timezone.utc)

    def _store_job(self, job: Job) -> None:
        self._jobs[job.id] = job
        if len(self._jobs) > self._max_jobs:
            # Prune oldest finished jobs to keep memory bounded.
            finished = sorted(
                (j for j in self._jobs.values() if j.status in _FINISHED),
                key=lambda j: j.created_at,
            )
            for stale in finished[: len(self._jobs) - self._max_jobs]:
                self._jobs.pop(stale.id, None)

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until every queued job has finished; False on timeout."""

        with self._idle:
            return self._idle.wait_for(lambda: not self._lanes, timeout=timeout)

    def get_job(self, job_id: str) -> Optional[Dict[str, Any]]:
        """Return job metadata for ``job_id`` (or ``None`` if unknown)."""

        with self._lock:
            job = self._jobs.get(job_id)
        return job.to_dict() if job else None

    def list_jobs(self, limit: Optional[int] = None) -> Iterable[Dict[str, Any]]:
        """Return tracked jobs ordered by most recent creation time."""

        with self._lock:
            jobs = sorted(self._jobs.values(), key=lambda job: job.created_at, reverse=True)
        if limit is not None:
            jobs = jobs[:limit]
        return [job.to_dict() for job in jobs]

    def clear_jobs(self) -> None:
        """Forget finished jobs (useful for tests)."""

        with self._lock:
            for job_id in [j.id for j in self._jobs.values() if j.status in _FINISHED]:
                self._jobs.pop(job_id)
