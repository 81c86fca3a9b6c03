#!/usr/bin/env python3
"""Print job scheduling and whisper worker settings (from config). Run from repo root: python scripts/print_limits.py"""
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))

from app.core.config import JOB_SWEEP_INTERVAL_SECONDS, JOB_TTL_SECONDS, settings


def main():
    """Print MAX_CONCURRENT_JOBS, retention, upload limit and whisper container settings."""
    print("Job & worker limits")
    print("-------------------")
    print(f"  MAX_CONCURRENT_JOBS   = {settings.max_concurrent_jobs} (jobs running at once; others queue FIFO)")
    print(f"  Job retention         = {JOB_TTL_SECONDS} s, swept every {JOB_SWEEP_INTERVAL_SECONDS} s")
    print(f"  MAX_FILE_KB           = {settings.max_file_kb} KB (max size per uploaded chunk)")
    print(f"  WHISPER_DOCKER_IMAGE  = {settings.whisper_docker_image}")
    print(f"  WHISPER_CONTAINER     = {settings.whisper_container_name} (exec target when running)")
    print(f"  WHISPER_THREADS       = {settings.whisper_threads}")
    print(f"  Volume                = {settings.upload_dir} -> {settings.whisper_mount_point}")
    print(f"  TRANSCRIPTION_POLICY  = {settings.transcription_policy}")
    print("")
    print("Env: see .env.example")


if __name__ == "__main__":
    main()
