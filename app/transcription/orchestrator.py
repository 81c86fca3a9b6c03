"""
Chunk-by-chunk transcription through the whisper.cpp worker container.

For each chunk:
1. probe whether the long-lived worker container is running (any probe failure means "not running")
2. exec whisper inside it, or launch a disposable container mounting the chunk's directory
3. wait for the process to exit (stderr is logged, never parsed)
4. non-zero exit fails the chunk; otherwise read the result file via result_parser
5. report progress before each chunk and 100% at the end

The "poll" policy skips steps 1-3 and waits for a watcher inside the shared volume to drop
the result file. It is a fallback for deployments where the backend cannot reach the
docker daemon; it depends on the watcher seeing the new file, which is unreliable across
host/container filesystem boundaries.
"""
import asyncio
import logging
import os
import time
from typing import Callable, List, Optional, Sequence

from app.core.config import ARTIFACT_POLL_INTERVAL_SECONDS, ARTIFACT_POLL_TIMEOUT_SECONDS, Settings, settings as default_settings

from . import commands
from .commands import WhisperConfig
from .errors import SubprocessError, TranscriptionTimeoutError
from .paths import to_container_path, to_docker_host_path
from .process import ProcessRunner, run_process
from .result_parser import find_artifact, parse_result

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int], None]

POLICY_DISPATCH = "dispatch"
POLICY_POLL = "poll"


def chunk_percent(index: int, total: int) -> int:
    """round(index / total * 100), rounding halves up."""
    if total <= 0:
        return 100
    return int(index * 100 / total + 0.5)


def _noop_progress(message: str, percent: int) -> None:
    pass


class TranscriptionOrchestrator:
    def __init__(
        self,
        whisper: WhisperConfig,
        host_root: str,
        runner: ProcessRunner = run_process,
        policy: str = POLICY_DISPATCH,
        poll_interval: float = ARTIFACT_POLL_INTERVAL_SECONDS,
        poll_timeout: float = ARTIFACT_POLL_TIMEOUT_SECONDS,
    ):
        if policy not in (POLICY_DISPATCH, POLICY_POLL):
            raise ValueError(f"Unknown transcription policy: {policy}")
        self.whisper = whisper
        self.host_root = os.path.abspath(host_root)
        self.runner = runner
        self.policy = policy
        self.poll_interval = poll_interval
        self.poll_timeout = poll_timeout

    @classmethod
    def from_settings(cls, s: Optional[Settings] = None, runner: ProcessRunner = run_process) -> "TranscriptionOrchestrator":
        s = s or default_settings
        whisper = WhisperConfig(
            docker_binary=s.docker_binary,
            container_name=s.whisper_container_name,
            image=s.whisper_docker_image,
            mount_point=s.whisper_mount_point,
            whisper_binary=s.whisper_binary,
            model_path=s.whisper_model_path,
            threads=s.whisper_threads,
        )
        logger.info(
            "Whisper worker: image=%s container=%s volume=%s -> %s policy=%s",
            whisper.image, whisper.container_name, s.upload_dir, whisper.mount_point, s.transcription_policy,
        )
        return cls(whisper, host_root=s.upload_dir, runner=runner, policy=s.transcription_policy)

    async def is_worker_running(self) -> bool:
        """True only if the probe succeeds and reports the container running."""
        try:
            result = await self.runner(commands.probe_command(self.whisper))
        except Exception as e:
            logger.debug("Container probe failed, assuming not running: %s", e)
            return False
        return result.returncode == 0 and result.stdout.strip().lower() == "true"

    async def _dispatch(self, chunk_path: str) -> None:
        if await self.is_worker_running():
            container_input = to_container_path(chunk_path, self.host_root, self.whisper.mount_point)
            argv = commands.exec_command(self.whisper, container_input)
            mode = "exec"
        else:
            container_input = to_container_path(chunk_path, os.path.dirname(chunk_path), self.whisper.mount_point)
            argv = commands.run_command(self.whisper, to_docker_host_path(os.path.dirname(chunk_path)), container_input)
            mode = "run"

        logger.info("Transcribing %s via docker %s", os.path.basename(chunk_path), mode)
        started = time.perf_counter()
        result = await self.runner(argv)
        if result.returncode != 0:
            raise SubprocessError(
                f"Whisper exited with code {result.returncode} for {os.path.basename(chunk_path)}",
                returncode=result.returncode,
            )
        logger.info("Whisper finished %s in %.1fs", os.path.basename(chunk_path), time.perf_counter() - started)

    async def wait_for_artifact(self, chunk_path: str) -> None:
        """Polling fallback: wait until the result file shows up or the timeout passes."""
        deadline = time.monotonic() + self.poll_timeout
        logger.info("Waiting for result of %s", os.path.basename(chunk_path))
        while time.monotonic() < deadline:
            if find_artifact(chunk_path) is not None:
                return
            await asyncio.sleep(self.poll_interval)
        raise TranscriptionTimeoutError(
            f"Transcription timed out for {os.path.basename(chunk_path)} after {self.poll_timeout:.0f}s"
        )

    async def transcribe_chunk(self, chunk_path: str) -> str:
        chunk_path = os.path.abspath(chunk_path)
        if self.policy == POLICY_POLL:
            await self.wait_for_artifact(chunk_path)
        else:
            await self._dispatch(chunk_path)
        return parse_result(chunk_path)

    async def transcribe_chunks(self, chunk_paths: Sequence[str], on_progress: Optional[ProgressCallback] = None) -> str:
        """Transcribe chunks strictly in order and return their transcripts joined by newlines.

        The first failing chunk aborts the rest; its error propagates unchanged.
        """
        on_progress = on_progress or _noop_progress
        total = len(chunk_paths)
        transcripts: List[str] = []
        logger.info("Processing %d chunk(s) (policy=%s)", total, self.policy)

        for i, chunk_path in enumerate(chunk_paths):
            on_progress(f"Transcribing chunk {i + 1}/{total}...", chunk_percent(i, total))
            try:
                transcripts.append(await self.transcribe_chunk(chunk_path))
            except Exception as e:
                logger.error("Chunk %d/%d failed: %s", i + 1, total, e)
                raise

        on_progress("Transcription complete!", 100)
        return "\n".join(transcripts).strip()
