"""Read, normalize and clean up the whisper.cpp result file for one chunk."""
import json
import logging
import os
from typing import Any, Optional

from .errors import ArtifactMissingError, ResultParseError

logger = logging.getLogger(__name__)

JSON_SUFFIX = ".json"
TEXT_SUFFIX = ".txt"  # older watcher image wrote plain text


def artifact_path(chunk_path: str) -> str:
    """Where the worker writes its structured result for chunk_path."""
    return chunk_path + JSON_SUFFIX


def find_artifact(chunk_path: str) -> Optional[str]:
    """Return the existing result file for chunk_path (JSON preferred over legacy text), or None."""
    for suffix in (JSON_SUFFIX, TEXT_SUFFIX):
        candidate = chunk_path + suffix
        if os.path.isfile(candidate):
            return candidate
    return None


def extract_text(data: Any, raw: str) -> str:
    """Collapse parsed whisper output into plain text.

    {"transcription": [{"text": ...}, ...]} -> trimmed, non-empty segment texts joined by single spaces
    {"text": ...}                          -> that text
    anything else                          -> the raw file content
    """
    if isinstance(data, dict):
        segments = data.get("transcription")
        if isinstance(segments, list):
            texts = [str(seg.get("text") or "").strip() for seg in segments if isinstance(seg, dict)]
            return " ".join(t for t in texts if t)
        if isinstance(data.get("text"), str):
            return data["text"].strip()
    return raw.strip()


def parse_result(chunk_path: str) -> str:
    """Return the plain-text transcript for chunk_path and delete its result file.

    Raises ArtifactMissingError when no result file exists and ResultParseError when the
    JSON result is malformed. The file is removed once it has been read, whether or not
    it parsed; failure to remove it is only logged.
    """
    path = find_artifact(chunk_path)
    if path is None:
        raise ArtifactMissingError(f"Expected result file missing: {artifact_path(chunk_path)}")

    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            raw = f.read()
    except OSError as e:
        raise ArtifactMissingError(f"Expected result file unreadable: {path}: {e}") from e

    try:
        if path.endswith(TEXT_SUFFIX):
            return raw.strip()
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ResultParseError(f"Failed to parse transcription output {os.path.basename(path)}: {e}") from e
        return extract_text(data, raw)
    finally:
        _remove_quietly(path)


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except OSError:
        logger.warning("Could not delete result file %s", path, exc_info=True)
