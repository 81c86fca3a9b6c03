"""Async subprocess helper: spawn, stream diagnostics to the log, wait for exit."""
import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List

from .errors import SubprocessError

logger = logging.getLogger(__name__)


@dataclass
class ProcessResult:
    returncode: int
    stdout: str


# Signature of run_process; the orchestrator takes one so tests can substitute it.
ProcessRunner = Callable[[List[str]], Awaitable[ProcessResult]]


async def run_process(argv: List[str]) -> ProcessResult:
    """Run argv to completion without blocking the event loop.

    stderr is logged line by line at DEBUG and otherwise ignored; stdout is collected
    and returned. Raises SubprocessError only when the process cannot be spawned; a
    non-zero exit is reported through returncode for the caller to judge.
    """
    logger.debug("spawn: %s", " ".join(argv))
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise SubprocessError(f"Failed to start {argv[0]}: {e}") from e

    stdout_chunks: List[bytes] = []

    async def _collect_stdout() -> None:
        if proc.stdout is not None:
            stdout_chunks.append(await proc.stdout.read())

    async def _stream_stderr() -> None:
        if proc.stderr is None:
            return
        async for raw in proc.stderr:
            line = raw.decode("utf-8", errors="replace").rstrip()
            if line:
                logger.debug("[%s] %s", argv[0], line)

    try:
        await asyncio.gather(_collect_stdout(), _stream_stderr())
    except BaseException:
        # Reading failed or the task was cancelled; reap the child before propagating.
        if proc.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
        await proc.wait()
        raise
    returncode = await proc.wait()
    return ProcessResult(returncode=returncode, stdout=b"".join(stdout_chunks).decode("utf-8", errors="replace"))
