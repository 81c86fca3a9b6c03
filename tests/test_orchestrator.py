"""Unit tests for chunk transcription through the whisper container."""
import asyncio
import json
import os

import pytest
from app.transcription.commands import WhisperConfig
from app.transcription.errors import ArtifactMissingError, SubprocessError, TranscriptionTimeoutError
from app.transcription.orchestrator import TranscriptionOrchestrator, chunk_percent
from app.transcription.process import ProcessResult


def _orchestrator(tmp_path, runner, **kwargs):
    return TranscriptionOrchestrator(WhisperConfig(), host_root=str(tmp_path), runner=runner, **kwargs)


@pytest.mark.parametrize("index,total,expected", [
    (0, 3, 0), (1, 3, 33), (2, 3, 67), (1, 2, 50), (1, 8, 13), (3, 8, 38), (0, 1, 0), (0, 0, 100),
])
def test_chunk_percent(index, total, expected):
    assert chunk_percent(index, total) == expected


def test_running_container_uses_exec(tmp_path, fake_whisper, write_chunks):
    paths = write_chunks(["hello there"])
    runner = fake_whisper(tmp_path, running=True)
    text = asyncio.run(_orchestrator(tmp_path, runner).transcribe_chunks(paths))

    assert text == "hello there"
    assert runner.modes() == ["exec"]
    argv = runner.calls[-1]
    assert "whisper" in argv
    assert argv[argv.index("-f") + 1] == "/media/job1/chunk_000.wav"


def test_relative_upload_dir_keeps_job_directory_in_exec_path(tmp_path, monkeypatch, fake_whisper):
    monkeypatch.chdir(tmp_path)
    job_dir = tmp_path / "data" / "uploads" / "jobX"
    job_dir.mkdir(parents=True)
    (job_dir / "chunk_000.wav").write_text("relative root", encoding="utf-8")
    runner = fake_whisper(tmp_path / "data" / "uploads", running=True)

    orch = TranscriptionOrchestrator(WhisperConfig(), host_root="./data/uploads", runner=runner)
    text = asyncio.run(orch.transcribe_chunks([os.path.join("data", "uploads", "jobX", "chunk_000.wav")]))

    assert text == "relative root"
    argv = runner.calls[-1]
    assert argv[argv.index("-f") + 1] == "/media/jobX/chunk_000.wav"


def test_not_running_uses_disposable_container(tmp_path, fake_whisper, write_chunks):
    paths = write_chunks(["first part", "second part"])
    runner = fake_whisper(tmp_path, running=False)
    text = asyncio.run(_orchestrator(tmp_path, runner).transcribe_chunks(paths))

    assert text == "first part\nsecond part"
    assert runner.modes() == ["run", "run"]
    argv = runner.calls[-1]
    assert argv[argv.index("-v") + 1] == f"{tmp_path / 'job1'}:/media"
    assert argv[argv.index("-f") + 1] == "/media/chunk_001.wav"


def test_probe_failure_treated_as_not_running(tmp_path, fake_whisper, write_chunks):
    paths = write_chunks(["still works"])
    runner = fake_whisper(tmp_path, probe_error=True)
    text = asyncio.run(_orchestrator(tmp_path, runner).transcribe_chunks(paths))

    assert text == "still works"
    assert runner.modes() == ["run"]


def test_probe_output_other_than_true_means_not_running(tmp_path):
    async def runner(argv):
        return ProcessResult(returncode=0, stdout="false\n")

    assert asyncio.run(_orchestrator(tmp_path, runner).is_worker_running()) is False


def test_probe_runs_before_every_chunk(tmp_path, fake_whisper, write_chunks):
    paths = write_chunks(["a", "b", "c"])
    runner = fake_whisper(tmp_path)
    asyncio.run(_orchestrator(tmp_path, runner).transcribe_chunks(paths))
    assert [argv[1] for argv in runner.calls] == ["inspect", "exec"] * 3


def test_progress_reported_per_chunk(tmp_path, fake_whisper, write_chunks):
    paths = write_chunks(["a", "b", "c"])
    reports = []
    asyncio.run(_orchestrator(tmp_path, fake_whisper(tmp_path)).transcribe_chunks(
        paths, on_progress=lambda msg, pct: reports.append((msg, pct)),
    ))
    assert reports == [
        ("Transcribing chunk 1/3...", 0),
        ("Transcribing chunk 2/3...", 33),
        ("Transcribing chunk 3/3...", 67),
        ("Transcription complete!", 100),
    ]


def test_nonzero_exit_aborts_remaining_chunks(tmp_path, fake_whisper, write_chunks):
    paths = write_chunks(["one", "FAIL", "three"])
    runner = fake_whisper(tmp_path)
    with pytest.raises(SubprocessError) as exc_info:
        asyncio.run(_orchestrator(tmp_path, runner).transcribe_chunks(paths))

    assert exc_info.value.returncode == 1
    assert runner.transcribed() == ["chunk_000.wav", "chunk_001.wav"]


def test_clean_exit_without_artifact_fails(tmp_path, fake_whisper, write_chunks):
    paths = write_chunks(["SILENT"])
    with pytest.raises(ArtifactMissingError):
        asyncio.run(_orchestrator(tmp_path, fake_whisper(tmp_path)).transcribe_chunks(paths))


def test_spawn_failure_is_subprocess_error(tmp_path, write_chunks):
    paths = write_chunks(["x"])

    async def runner(argv):
        if argv[1] == "inspect":
            return ProcessResult(returncode=1, stdout="")
        raise SubprocessError("Failed to start docker: [Errno 2] No such file or directory")

    with pytest.raises(SubprocessError, match="Failed to start docker"):
        asyncio.run(_orchestrator(tmp_path, runner).transcribe_chunks(paths))


def test_artifacts_removed_after_transcription(tmp_path, fake_whisper, write_chunks):
    paths = write_chunks(["a", "b"])
    asyncio.run(_orchestrator(tmp_path, fake_whisper(tmp_path)).transcribe_chunks(paths))
    assert not any(os.path.exists(p + ".json") for p in paths)


def test_unknown_policy_rejected(tmp_path):
    with pytest.raises(ValueError):
        _orchestrator(tmp_path, None, policy="magic")


def test_poll_policy_reads_existing_artifact(tmp_path, write_chunks):
    paths = write_chunks(["ignored"])
    with open(paths[0] + ".json", "w", encoding="utf-8") as f:
        json.dump({"text": "watched"}, f)

    async def runner(argv):
        raise AssertionError("poll policy must not spawn processes")

    orch = _orchestrator(tmp_path, runner, policy="poll", poll_interval=0.01, poll_timeout=1)
    assert asyncio.run(orch.transcribe_chunks(paths)) == "watched"


def test_poll_policy_waits_for_late_artifact(tmp_path, write_chunks):
    paths = write_chunks(["ignored"])
    orch = _orchestrator(tmp_path, None, policy="poll", poll_interval=0.01, poll_timeout=2)

    async def scenario():
        async def drop_later():
            await asyncio.sleep(0.05)
            with open(paths[0] + ".json", "w", encoding="utf-8") as f:
                json.dump({"transcription": [{"text": "late"}, {"text": "result"}]}, f)

        writer = asyncio.create_task(drop_later())
        text = await orch.transcribe_chunks(paths)
        await writer
        return text

    assert asyncio.run(scenario()) == "late result"


def test_poll_policy_times_out(tmp_path, write_chunks):
    paths = write_chunks(["never"])
    orch = _orchestrator(tmp_path, None, policy="poll", poll_interval=0.01, poll_timeout=0.05)
    with pytest.raises(TranscriptionTimeoutError, match="timed out"):
        asyncio.run(orch.transcribe_chunks(paths))


def test_from_settings_uses_configured_names(tmp_path):
    from app.core.config import Settings

    s = Settings(
        whisper_container_name="stt",
        whisper_docker_image="custom:1",
        whisper_threads=8,
        upload_dir=str(tmp_path),
        transcription_policy="dispatch",
    )
    orch = TranscriptionOrchestrator.from_settings(s)
    assert orch.whisper.container_name == "stt"
    assert orch.whisper.image == "custom:1"
    assert orch.whisper.threads == 8
    assert orch.host_root == str(tmp_path)


def test_settings_resolve_relative_upload_dir(tmp_path, monkeypatch):
    from app.core.config import Settings

    monkeypatch.chdir(tmp_path)
    s = Settings(upload_dir="./data/uploads")
    assert s.upload_dir == str(tmp_path / "data" / "uploads")
