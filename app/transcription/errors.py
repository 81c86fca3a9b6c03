"""Errors raised while transcribing a chunk. Any of them fails the whole job; none are retried."""
from typing import Optional


class TranscriptionError(Exception):
    """Base class for chunk transcription failures."""


class SubprocessError(TranscriptionError):
    """The worker process could not be spawned or exited non-zero."""

    def __init__(self, message: str, returncode: Optional[int] = None):
        super().__init__(message)
        self.returncode = returncode


class ArtifactMissingError(TranscriptionError):
    """The worker exited cleanly but left no result file."""


class ResultParseError(TranscriptionError):
    """The result file exists but is not valid transcription output."""


class TranscriptionTimeoutError(TranscriptionError, TimeoutError):
    """Polling fallback gave up waiting for the result file."""
