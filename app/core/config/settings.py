# File: app/core/config/settings.py

import os
import shutil
from pathlib import Path

from dotenv import load_dotenv

# Pick up a local .env before any Settings() is built
load_dotenv()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got {value!r}")


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a number, got {value!r}")


class Settings:
    """
    Deployment configuration, read from the environment when instantiated.
    Build a fresh Settings() to pick up environment changes (tests do this).
    """

    def __init__(self):
        # --- Paths ---
        # app/core/config/settings.py -> app/core/config -> app/core -> app -> ROOT
        self.BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent.parent

        # --- External Tools ---
        # Auto-detect ffmpeg/ffprobe or use env var
        self.FFMPEG_BINARY: str = os.getenv("FFMPEG_BINARY_PATH", shutil.which("ffmpeg") or "ffmpeg")
        self.FFPROBE_BINARY: str = os.getenv("FFPROBE_BINARY_PATH", shutil.which("ffprobe") or "ffprobe")

        # --- Timeouts (seconds) ---
        self.CONVERSION_TIMEOUT_SECONDS: float = _env_float("CONVERSION_TIMEOUT_SECONDS", 10 * 60)
        self.PROBE_TIMEOUT_SECONDS: float = _env_float("PROBE_TIMEOUT_SECONDS", 30)

        # --- Output Size Limits (bytes) ---
        # Hard ceiling of the downstream speech-to-text API (25MB)
        self.MAX_AUDIO_FILE_SIZE_BYTES: int = _env_int("MAX_AUDIO_FILE_SIZE_BYTES", 25 * 1024 * 1024)
        # Safety margin the bitrate calculation aims for (24MB)
        self.TARGET_AUDIO_FILE_SIZE_BYTES: int = _env_int("TARGET_AUDIO_FILE_SIZE_BYTES", 24 * 1024 * 1024)

        # --- Quality Tiers (kbps) ---
        self.HIGH_QUALITY_BITRATE_KBPS: int = _env_int("HIGH_QUALITY_BITRATE_KBPS", 64)
        self.MEDIUM_QUALITY_BITRATE_KBPS: int = _env_int("MEDIUM_QUALITY_BITRATE_KBPS", 32)
        self.LOW_QUALITY_BITRATE_KBPS: int = _env_int("LOW_QUALITY_BITRATE_KBPS", 24)

        # --- Duration Thresholds (minutes) ---
        self.SHORT_VIDEO_MINUTES: float = _env_float("SHORT_VIDEO_MINUTES", 60)
        self.MEDIUM_VIDEO_MINUTES: float = _env_float("MEDIUM_VIDEO_MINUTES", 120)

        # --- Logging ---
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "info")


settings = Settings()
