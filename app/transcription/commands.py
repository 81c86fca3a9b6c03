"""Argument vectors for the docker and whisper.cpp invocations used by the orchestrator."""
import uuid
from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class WhisperConfig:
    """Everything needed to build docker/whisper commands; built from Settings by the orchestrator."""

    docker_binary: str = "docker"
    container_name: str = "whisper"
    image: str = "whisper-watcher:latest"
    mount_point: str = "/media"
    whisper_binary: str = "whisper-cli"
    model_path: str = "/models/ggml-base.en.bin"
    threads: int = 4


def whisper_invocation(cfg: WhisperConfig, container_input: str) -> List[str]:
    """whisper.cpp call writing JSON next to the input: `-of <input>` makes it emit `<input>.json`."""
    return [
        cfg.whisper_binary,
        "-m", cfg.model_path,
        "-f", container_input,
        "-t", str(cfg.threads),
        "-oj",
        "-of", container_input,
    ]


def probe_command(cfg: WhisperConfig) -> List[str]:
    """Prints `true` when the long-lived worker container is running."""
    return [cfg.docker_binary, "inspect", "-f", "{{.State.Running}}", cfg.container_name]


def exec_command(cfg: WhisperConfig, container_input: str) -> List[str]:
    return [
        cfg.docker_binary, "exec",
        "-w", cfg.mount_point,
        cfg.container_name,
        *whisper_invocation(cfg, container_input),
    ]


def run_command(cfg: WhisperConfig, docker_host_dir: str, container_input: str) -> List[str]:
    """Disposable container mounting only the chunk's directory. docker_host_dir must already be in Docker volume syntax."""
    return [
        cfg.docker_binary, "run", "--rm",
        "--name", disposable_container_name(cfg),
        "-v", f"{docker_host_dir}:{cfg.mount_point}",
        "-w", cfg.mount_point,
        cfg.image,
        *whisper_invocation(cfg, container_input),
    ]


def disposable_container_name(cfg: WhisperConfig) -> str:
    return f"{cfg.container_name}-job-{uuid.uuid4().hex[:12]}"
