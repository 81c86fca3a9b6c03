"""Builds the execution closure the scheduler runs for one job: transcribe chunks, synthesize, record the outcome."""
import logging
import time
from typing import Awaitable, Callable, Optional, Sequence

from app.jobs.scheduler import ExecutionFn
from app.jobs.store import JobStatus, JobStore
from app.transcription.orchestrator import TranscriptionOrchestrator

logger = logging.getLogger(__name__)

# Transcription fills 0..TRANSCRIPTION_SHARE of the job's progress; synthesis the rest.
TRANSCRIPTION_SHARE = 90

Synthesizer = Callable[[str], Awaitable[str]]


def build_execution(
    job_id: str,
    chunk_paths: Sequence[str],
    synthesize: Optional[Synthesizer],
    store: JobStore,
    orchestrator: TranscriptionOrchestrator,
    synthesis_label: str = "content",
    cleanup: Optional[Callable[[], None]] = None,
) -> ExecutionFn:
    """Return an async closure that runs the job and always leaves it completed or failed.

    Every exception is caught here and written to the job record, so the scheduler only
    ever sees a normal return. A failed job keeps no partial transcript.
    """
    chunks = list(chunk_paths)
    # Scaled values can round down after a percentage step; the store keeps progress monotonic.
    scale = TRANSCRIPTION_SHARE / 100 if synthesize is not None else 1.0

    def on_progress(message: str, percent: int) -> None:
        store.update(job_id, progress=round(percent * scale), progress_message=message)

    async def execute() -> None:
        store.update(job_id, status=JobStatus.RUNNING, started_at=time.time(), progress_message="Starting transcription...")
        logger.info("Job started", extra={"job_id": job_id, "chunks": len(chunks)})
        try:
            transcription = await orchestrator.transcribe_chunks(chunks, on_progress=on_progress)

            content = None
            if synthesize is not None:
                store.update(job_id, progress=TRANSCRIPTION_SHARE, progress_message=f"Generating {synthesis_label}...")
                content = await synthesize(transcription)

            store.update(
                job_id,
                status=JobStatus.COMPLETED,
                progress=100,
                progress_message="Done",
                result={"transcription": transcription, "content": content},
                finished_at=time.time(),
            )
            logger.info("Job completed", extra={"job_id": job_id})
        except Exception as e:
            logger.error("Job failed", extra={"job_id": job_id}, exc_info=True)
            store.update(
                job_id,
                status=JobStatus.FAILED,
                progress_message="Failed",
                error=str(e) or e.__class__.__name__,
                finished_at=time.time(),
            )
        finally:
            if cleanup is not None:
                try:
                    cleanup()
                except OSError:
                    logger.warning("Cleanup failed for job %s", job_id, exc_info=True)

    return execute
