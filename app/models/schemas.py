from pydantic import BaseModel, Field
from typing import Optional

from app.jobs.store import Job


class JobCreatedResponse(BaseModel):
    """Response for POST /jobs/*: the new job id. Why available: Clients poll GET /jobs/{job_id} with it until the job is terminal."""

    job_id: str = Field(..., description="Opaque job identifier")
    status: str = Field("queued", description="Always 'queued' at creation")


class JobResult(BaseModel):
    """Output of a completed job: full transcript plus synthesized content (None for transcription-only jobs)."""

    transcription: str
    content: Optional[str] = None


class JobStatusResponse(BaseModel):
    """Response for GET /jobs/{job_id}: status, progress and result or error. Why available: The polling surface for long-running jobs."""

    job_id: str
    kind: str
    status: str = Field(..., description="queued | running | completed | failed")
    progress: int = Field(..., ge=0, le=100)
    progress_message: str
    result: Optional[JobResult] = None
    error: Optional[str] = None
    created_at: float
    started_at: Optional[float] = None
    finished_at: Optional[float] = None

    @classmethod
    def from_job(cls, job: Job) -> "JobStatusResponse":
        return cls(
            job_id=job.job_id,
            kind=job.kind,
            status=job.status.value,
            progress=job.progress,
            progress_message=job.progress_message,
            result=JobResult(**job.result) if job.result else None,
            error=job.error,
            created_at=job.created_at,
            started_at=job.started_at,
            finished_at=job.finished_at,
        )


class LimitsResponse(BaseModel):
    """Response for GET /limits: upload and scheduling limits. Why available: Lets clients size chunks and expect queueing."""

    max_file_kb: int = Field(..., description="Max size per uploaded chunk in KB")
    max_concurrent_jobs: int = Field(..., description="Jobs processed at once; the rest wait in FIFO order")
    running_jobs: int = Field(..., ge=0)
    queued_jobs: int = Field(..., ge=0)
    job_ttl_seconds: int = Field(..., description="Finished jobs are deleted this long after creation")
    rate_limit_requests: int = Field(..., description="Rate limit requests per window")
    rate_limit_window_seconds: int = Field(..., description="Rate limit window in seconds")
