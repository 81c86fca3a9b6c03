import asyncio
import logging
import os
import shutil
from contextlib import asynccontextmanager
from typing import List, Optional, Tuple

from fastapi import (
    FastAPI,
    UploadFile,
    File,
    Form,
    HTTPException,
    Request,
)

from app.core.config import JOB_TTL_SECONDS, settings
from app.core.logging_config import setup_logging
from app.models.schemas import JobCreatedResponse, JobStatusResponse, LimitsResponse
from app.jobs.pipeline import Synthesizer, build_execution
from app.jobs.scheduler import Scheduler
from app.jobs.store import JobStore
from app.transcription.orchestrator import TranscriptionOrchestrator
from app.synthesis.caption import generate_caption
from app.synthesis.minutes import LENGTH_LONGER, LENGTH_NORMAL, generate_minutes
from app.guardrails.errors import as_http_500
from app.guardrails.rate_limit import SimpleRateLimiter
from app.observability.middleware import RequestTimingMiddleware

logger = logging.getLogger(__name__)


# -------------------------
# App setup
# -------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the job store, scheduler and orchestrator for this process and run the retention sweep while serving."""
    setup_logging()
    os.makedirs(settings.upload_dir, exist_ok=True)

    app.state.store = JobStore()
    app.state.scheduler = Scheduler(settings.max_concurrent_jobs)
    app.state.orchestrator = TranscriptionOrchestrator.from_settings(settings)
    app.state.store.start()
    logger.info("Job service ready (max_concurrent_jobs=%d)", settings.max_concurrent_jobs)
    try:
        yield
    finally:
        await app.state.store.stop()


app = FastAPI(title="Media Jobs", lifespan=lifespan)
app.add_middleware(RequestTimingMiddleware)

RATE_LIMIT_REQUESTS = 30
RATE_LIMIT_WINDOW_SECONDS = 60
rate_limiter = SimpleRateLimiter(max_requests=RATE_LIMIT_REQUESTS, window_seconds=RATE_LIMIT_WINDOW_SECONDS)

ALLOWED_EXTENSIONS = frozenset({".wav", ".mp3", ".m4a", ".ogg", ".flac", ".webm"})
ALLOWED_LENGTHS = (LENGTH_NORMAL, LENGTH_LONGER)


# -------------------------
# Helpers
# -------------------------

async def _read_chunks(files: List[UploadFile]) -> List[Tuple[str, bytes]]:
    """Read and validate uploaded chunks in order. Returns (extension, content) pairs.
    Why available: Validation happens before a job exists so a bad upload never leaves a queued record behind."""
    if not files:
        raise HTTPException(status_code=400, detail="No files uploaded")

    chunks: List[Tuple[str, bytes]] = []
    for f in files:
        ext = os.path.splitext(f.filename or "")[1].lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise HTTPException(
                status_code=400,
                detail=f"{f.filename}: unsupported audio type (allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))})",
            )
        content = await f.read()
        if not content:
            raise HTTPException(status_code=400, detail=f"{f.filename} is empty")
        if len(content) > settings.max_file_kb * 1024:
            raise HTTPException(status_code=400, detail=f"{f.filename} exceeds {settings.max_file_kb} KB limit")
        chunks.append((ext, content))
    return chunks


def _save_chunks(job_id: str, chunks: List[Tuple[str, bytes]]) -> Tuple[str, List[str]]:
    """Write chunks as chunk_000.ext, chunk_001.ext ... under a per-job directory so result file names never collide."""
    job_dir = os.path.join(settings.upload_dir, job_id)
    os.makedirs(job_dir, exist_ok=True)
    paths = []
    for i, (ext, content) in enumerate(chunks):
        path = os.path.join(job_dir, f"chunk_{i:03d}{ext}")
        with open(path, "wb") as out:
            out.write(content)
        paths.append(path)
    return job_dir, paths


async def _submit(
    request: Request,
    kind: str,
    files: List[UploadFile],
    synthesize: Optional[Synthesizer],
    synthesis_label: str = "content",
) -> JobCreatedResponse:
    """Create the job record, store its chunks and hand the execution to the scheduler."""
    chunks = await _read_chunks(files)
    store: JobStore = request.app.state.store

    job_id = store.create(kind=kind)
    try:
        job_dir, chunk_paths = _save_chunks(job_id, chunks)
    except OSError as e:
        store.delete(job_id)
        raise as_http_500(e)

    execution = build_execution(
        job_id,
        chunk_paths,
        synthesize,
        store=store,
        orchestrator=request.app.state.orchestrator,
        synthesis_label=synthesis_label,
        cleanup=lambda: shutil.rmtree(job_dir, ignore_errors=True),
    )
    request.app.state.scheduler.enqueue(job_id, execution)
    return JobCreatedResponse(job_id=job_id)


def _check_length(length: str) -> str:
    if length not in ALLOWED_LENGTHS:
        raise HTTPException(status_code=400, detail=f"length must be one of {', '.join(ALLOWED_LENGTHS)}")
    return length


# -------------------------
# Root
# -------------------------

@app.get("/")
def root():
    """Returns a minimal welcome payload with app name and docs URL."""
    return {"app": "Media Jobs", "docs": "/docs"}


@app.get("/health")
def health():
    """Returns 200 OK with status. Used by load balancers and probes to check if the API is up."""
    return {"status": "ok"}


@app.get("/limits", response_model=LimitsResponse)
def limits(request: Request):
    """Returns upload/scheduling limits and current queue depth."""
    rate_limiter.check(request)
    scheduler: Scheduler = request.app.state.scheduler
    return LimitsResponse(
        max_file_kb=settings.max_file_kb,
        max_concurrent_jobs=scheduler.max_concurrent,
        running_jobs=scheduler.running,
        queued_jobs=scheduler.queued,
        job_ttl_seconds=JOB_TTL_SECONDS,
        rate_limit_requests=RATE_LIMIT_REQUESTS,
        rate_limit_window_seconds=RATE_LIMIT_WINDOW_SECONDS,
    )


# -------------------------
# Job submission
# -------------------------

@app.post("/jobs/transcribe", response_model=JobCreatedResponse)
async def submit_transcription(request: Request, files: List[UploadFile] = File(...)):
    """Queues transcription of the uploaded audio chunks (in upload order). Result holds the transcript only."""
    rate_limiter.check(request)
    return await _submit(request, "transcribe", files, synthesize=None)


@app.post("/jobs/minutes", response_model=JobCreatedResponse)
async def submit_minutes(
    request: Request,
    files: List[UploadFile] = File(...),
    title: Optional[str] = Form(None),
    template: Optional[str] = Form(None),
    structure: Optional[str] = Form(None),
    length: str = Form(LENGTH_NORMAL),
    current_content: Optional[str] = Form(None),
):
    """Queues transcription followed by minutes-of-meeting generation in the given template."""
    rate_limiter.check(request)
    _check_length(length)

    def synthesize(transcript: str):
        return asyncio.to_thread(
            generate_minutes,
            transcript,
            template=template,
            structure=structure,
            title=title,
            length=length,
            current_content=current_content,
        )

    return await _submit(request, "minutes", files, synthesize, synthesis_label="minutes")


@app.post("/jobs/caption", response_model=JobCreatedResponse)
async def submit_caption(
    request: Request,
    files: List[UploadFile] = File(...),
    instructions: str = Form(...),
    length: str = Form(LENGTH_NORMAL),
    current_content: Optional[str] = Form(None),
):
    """Queues transcription followed by caption generation from the given instructions."""
    rate_limiter.check(request)
    _check_length(length)
    if not instructions.strip():
        raise HTTPException(status_code=400, detail="instructions must not be empty")

    def synthesize(transcript: str):
        return asyncio.to_thread(
            generate_caption,
            transcript,
            instructions,
            length=length,
            current_content=current_content,
        )

    return await _submit(request, "caption", files, synthesize, synthesis_label="caption")


# -------------------------
# Job status
# -------------------------

@app.get("/jobs/{job_id}", response_model=JobStatusResponse)
def job_status(job_id: str, request: Request):
    """Returns the job record (queued / running / completed / failed) with progress, and result or error once finished.
    Finished jobs are evicted JOB_TTL_SECONDS after creation; after that this returns 404."""
    rate_limiter.check(request)

    job = request.app.state.store.get(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return JobStatusResponse.from_job(job)


@app.delete("/jobs/{job_id}", status_code=204)
def delete_job(job_id: str, request: Request):
    """Removes the job record. A job that is still running keeps running but its updates are dropped."""
    rate_limiter.check(request)
    request.app.state.store.delete(job_id)
