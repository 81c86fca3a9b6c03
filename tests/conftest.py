import sys
from pathlib import Path
import json
import os
import posixpath
import asyncio
import pytest

# Ensure repo root is on sys.path so `import app...` works in tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.transcription.errors import SubprocessError  # noqa: E402
from app.transcription.process import ProcessResult  # noqa: E402


class FakeWhisper:
    """Stands in for `docker inspect/exec/run`. Each chunk file's own text content is its transcript;
    a chunk whose content is FAIL exits 1, one whose content is SILENT exits 0 without a result file."""

    def __init__(self, host_root, mount_point="/media", running=True, probe_error=False, delay=0.0):
        self.host_root = str(host_root)
        self.mount_point = mount_point
        self.running = running
        self.probe_error = probe_error
        self.delay = delay
        self.calls = []

    def modes(self):
        return [argv[1] for argv in self.calls if argv[1] in ("exec", "run")]

    def transcribed(self):
        """Basenames of the chunks the worker was asked to transcribe, in order."""
        return [posixpath.basename(argv[argv.index("-f") + 1]) for argv in self.calls if argv[1] in ("exec", "run")]

    def _host_path(self, argv, container_input):
        if argv[1] == "exec":
            return os.path.join(self.host_root, posixpath.relpath(container_input, self.mount_point))
        host_dir, _, mount = argv[argv.index("-v") + 1].rpartition(":")
        return os.path.join(host_dir, posixpath.relpath(container_input, mount))

    async def __call__(self, argv):
        self.calls.append(list(argv))
        if argv[1] == "inspect":
            if self.probe_error:
                raise SubprocessError("Failed to start docker: not found")
            return ProcessResult(returncode=0 if self.running else 1, stdout="true\n" if self.running else "")

        if self.delay:
            await asyncio.sleep(self.delay)
        host_path = self._host_path(argv, argv[argv.index("-f") + 1])
        with open(host_path, encoding="utf-8") as f:
            text = f.read().strip()
        if text == "FAIL":
            return ProcessResult(returncode=1, stdout="")
        if text != "SILENT":
            with open(host_path + ".json", "w", encoding="utf-8") as f:
                json.dump({"transcription": [{"text": " " + w} for w in text.split()]}, f)
        return ProcessResult(returncode=0, stdout="")


@pytest.fixture
def fake_whisper():
    return FakeWhisper


@pytest.fixture
def write_chunks(tmp_path):
    """Create chunk files under tmp_path/<job>/ with the given texts; returns their paths in order."""
    def _write(texts, job="job1"):
        job_dir = tmp_path / job
        job_dir.mkdir(parents=True, exist_ok=True)
        paths = []
        for i, text in enumerate(texts):
            p = job_dir / f"chunk_{i:03d}.wav"
            p.write_text(text, encoding="utf-8")
            paths.append(str(p))
        return paths
    return _write
