"""In-memory job store: track status (queued / running / completed / failed), progress and results for polled jobs."""
import asyncio
import dataclasses
import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from app.core.config import JOB_SWEEP_INTERVAL_SECONDS, JOB_TTL_SECONDS

logger = logging.getLogger(__name__)


class JobStatus(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


QUEUED_MESSAGE = "Waiting in queue…"


@dataclass
class Job:
    """A single polled job: id, kind (transcribe | minutes | caption), status, progress 0-100 with a message, and result or error once terminal.
    Why available: Record the HTTP layer returns from GET /jobs/{job_id} so clients can poll until the job completes or fails."""

    job_id: str
    kind: str = "transcribe"
    status: JobStatus = JobStatus.QUEUED
    progress: int = 0
    progress_message: str = QUEUED_MESSAGE
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    created_at: float = field(default_factory=time.time)
    started_at: Optional[float] = None
    finished_at: Optional[float] = None


class JobStore:
    """Registry of Job records keyed by job_id, with a periodic sweep evicting terminal records older than the retention window.

    Mutations go through update(), which enforces the record invariants: unknown ids are
    ignored, terminal records are frozen, and progress never goes backwards.
    """

    def __init__(self, ttl_seconds: float = JOB_TTL_SECONDS, sweep_interval_seconds: float = JOB_SWEEP_INTERVAL_SECONDS):
        self.ttl_seconds = ttl_seconds
        self.sweep_interval_seconds = sweep_interval_seconds
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.Lock()
        self._sweeper: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        return len(self._jobs)

    def create(self, kind: str = "transcribe") -> str:
        """Register a new queued job and return its id."""
        job_id = str(uuid.uuid4())
        with self._lock:
            self._jobs[job_id] = Job(job_id=job_id, kind=kind)
        logger.info("Job created", extra={"job_id": job_id, "kind": kind})
        return job_id

    def get(self, job_id: str) -> Optional[Job]:
        """Return a snapshot of the job, or None if unknown or already evicted."""
        with self._lock:
            job = self._jobs.get(job_id)
            return dataclasses.replace(job) if job else None

    def update(self, job_id: str, **fields: Any) -> Optional[Job]:
        """Merge fields into the job. Returns the updated snapshot, or None when nothing was applied (unknown id or terminal job)."""
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return None
            if job.status.is_terminal:
                logger.debug("Ignoring update to terminal job %s", job_id)
                return None
            unknown = [key for key in fields if not hasattr(job, key)]
            if unknown:
                raise AttributeError(f"Job has no field {unknown[0]!r}")
            if "status" in fields:
                fields["status"] = JobStatus(fields["status"])
            if "progress" in fields:
                fields["progress"] = max(job.progress, min(100, int(fields["progress"])))
            for key, value in fields.items():
                setattr(job, key, value)
            return dataclasses.replace(job)

    def delete(self, job_id: str) -> None:
        with self._lock:
            self._jobs.pop(job_id, None)

    def sweep(self, now: Optional[float] = None) -> int:
        """Evict completed/failed jobs whose age exceeds the retention window. Queued and running jobs are kept regardless of age."""
        now = time.time() if now is None else now
        with self._lock:
            expired = [
                job_id for job_id, job in self._jobs.items()
                if job.status.is_terminal and now - job.created_at > self.ttl_seconds
            ]
            for job_id in expired:
                del self._jobs[job_id]
        if expired:
            logger.info("Swept %d expired job(s)", len(expired))
        return len(expired)

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval_seconds)
            self.sweep()

    def start(self) -> None:
        """Start the periodic sweep on the running event loop."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.get_running_loop().create_task(self._sweep_forever())

    async def stop(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None
