import os
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

load_dotenv()

# Retention and sweep cadence are fixed, not deployment knobs.
JOB_TTL_SECONDS = 30 * 60
JOB_SWEEP_INTERVAL_SECONDS = 5 * 60

# Polling fallback only.
ARTIFACT_POLL_INTERVAL_SECONDS = 2.0
ARTIFACT_POLL_TIMEOUT_SECONDS = 300.0

DEFAULT_WHISPER_IMAGE = "whisper-watcher:latest"
_LEGACY_WHISPER_IMAGE = "whisper-cpp:latest"


def _whisper_image() -> str:
    """Image from WHISPER_DOCKER_IMAGE; the old plain whisper-cpp image has no watcher entrypoint so it falls back to the default."""
    image = os.getenv("WHISPER_DOCKER_IMAGE", "")
    if not image or image == _LEGACY_WHISPER_IMAGE:
        return DEFAULT_WHISPER_IMAGE
    return image


class Settings(BaseModel):
    """Application settings loaded from environment: job concurrency, whisper container/image/model, upload storage, LLM endpoint and logging.
    Why available: Single source of configuration so the scheduler, orchestrator and synthesis modules agree on limits and names."""
    model_config = ConfigDict(validate_default=True)

    max_concurrent_jobs: int = int(os.getenv("MAX_CONCURRENT_JOBS", "2"))

    whisper_docker_image: str = _whisper_image()
    whisper_container_name: str = os.getenv("WHISPER_CONTAINER_NAME", "whisper")
    whisper_threads: int = int(os.getenv("WHISPER_THREADS", "4"))
    whisper_model_path: str = os.getenv("WHISPER_MODEL_PATH", "/models/ggml-base.en.bin")
    whisper_binary: str = os.getenv("WHISPER_BINARY", "whisper-cli")
    whisper_mount_point: str = os.getenv("WHISPER_MOUNT_POINT", "/media")
    docker_binary: str = os.getenv("DOCKER_BINARY", "docker")
    transcription_policy: str = os.getenv("TRANSCRIPTION_POLICY", "dispatch")  # dispatch | poll

    upload_dir: str = os.getenv("UPLOAD_DIR", os.path.join(os.getcwd(), "data", "uploads"))
    max_file_kb: int = int(os.getenv("MAX_FILE_KB", "51200"))  # 50 MB per chunk

    llm_base_url: str = os.getenv("LLM_BASE_URL", "https://router.huggingface.co/v1")
    hf_api_key: str = os.getenv("HF_API_KEY", "")
    chat_model: str = os.getenv("CHAT_MODEL", "meta-llama/Meta-Llama-3-8B-Instruct")
    prompt_version: str = os.getenv("PROMPT_VERSION", "v1")

    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")

    @field_validator("max_concurrent_jobs", "whisper_threads", "max_file_kb")
    @classmethod
    def must_be_positive(cls, v):
        """Ensure concurrency ceiling, thread count and file size limit are positive integers. Prevents invalid config from env."""
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @field_validator("transcription_policy")
    @classmethod
    def known_policy(cls, v):
        if v not in ("dispatch", "poll"):
            raise ValueError("must be 'dispatch' or 'poll'")
        return v

    @field_validator("upload_dir")
    @classmethod
    def absolute_upload_dir(cls, v):
        """Resolve UPLOAD_DIR against the working directory; container paths are derived from it by prefix."""
        return os.path.abspath(v)


settings = Settings()
