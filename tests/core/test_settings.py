import logging

import pytest

from app.core.config.logging_config import configure_logging
from app.core.config.settings import Settings
from app.features.audio_conversion.domain.models import ConversionConfig, MEGABYTE

CONVERSION_ENV = [
    "CONVERSION_TIMEOUT_SECONDS", "PROBE_TIMEOUT_SECONDS",
    "MAX_AUDIO_FILE_SIZE_BYTES", "TARGET_AUDIO_FILE_SIZE_BYTES",
    "HIGH_QUALITY_BITRATE_KBPS", "MEDIUM_QUALITY_BITRATE_KBPS", "LOW_QUALITY_BITRATE_KBPS",
    "SHORT_VIDEO_MINUTES", "MEDIUM_VIDEO_MINUTES",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in CONVERSION_ENV:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    s = Settings()

    assert s.CONVERSION_TIMEOUT_SECONDS == 600
    assert s.PROBE_TIMEOUT_SECONDS == 30
    assert s.MAX_AUDIO_FILE_SIZE_BYTES == 25 * MEGABYTE
    assert s.TARGET_AUDIO_FILE_SIZE_BYTES == 24 * MEGABYTE
    assert (s.HIGH_QUALITY_BITRATE_KBPS, s.MEDIUM_QUALITY_BITRATE_KBPS, s.LOW_QUALITY_BITRATE_KBPS) == (64, 32, 24)
    assert (s.SHORT_VIDEO_MINUTES, s.MEDIUM_VIDEO_MINUTES) == (60, 120)


def test_environment_overrides(clean_env):
    clean_env.setenv("CONVERSION_TIMEOUT_SECONDS", "90")
    clean_env.setenv("HIGH_QUALITY_BITRATE_KBPS", "96")
    clean_env.setenv("FFMPEG_BINARY_PATH", "/opt/ffmpeg/bin/ffmpeg")

    s = Settings()

    assert s.CONVERSION_TIMEOUT_SECONDS == 90
    assert s.HIGH_QUALITY_BITRATE_KBPS == 96
    assert s.FFMPEG_BINARY == "/opt/ffmpeg/bin/ffmpeg"


def test_blank_values_use_defaults(clean_env):
    clean_env.setenv("LOW_QUALITY_BITRATE_KBPS", "  ")
    assert Settings().LOW_QUALITY_BITRATE_KBPS == 24


def test_invalid_number_is_reported(clean_env):
    clean_env.setenv("MAX_AUDIO_FILE_SIZE_BYTES", "25MB")
    with pytest.raises(ValueError, match="MAX_AUDIO_FILE_SIZE_BYTES"):
        Settings()


def test_config_from_settings(clean_env):
    clean_env.setenv("TARGET_AUDIO_FILE_SIZE_BYTES", str(10 * MEGABYTE))
    clean_env.setenv("MAX_AUDIO_FILE_SIZE_BYTES", str(12 * MEGABYTE))
    clean_env.setenv("MEDIUM_VIDEO_MINUTES", "90")

    config = ConversionConfig.from_settings(Settings())

    assert config.target_size_bytes == 10 * MEGABYTE
    assert config.max_size_bytes == 12 * MEGABYTE
    assert config.medium_video_minutes == 90
    assert config.high_bitrate_kbps == 64


def test_config_from_module_settings_by_default():
    assert ConversionConfig.from_settings() == ConversionConfig.from_settings(None)


@pytest.mark.parametrize("overrides", [
    {"low_bitrate_kbps": 40},                               # low > medium
    {"high_bitrate_kbps": 0, "medium_bitrate_kbps": 0, "low_bitrate_kbps": 0},
    {"short_video_minutes": 0},
    {"short_video_minutes": 150},                           # short > medium
    {"target_size_bytes": 26 * MEGABYTE},                   # target > max
    {"conversion_timeout_seconds": -1},
    {"channels": 0},
])
def test_invalid_config_is_rejected(overrides):
    with pytest.raises(ValueError):
        ConversionConfig(**overrides)


def test_configure_logging():
    root = logging.getLogger()
    saved_level, saved_handlers = root.level, list(root.handlers)
    try:
        configure_logging("debug")
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1

        configure_logging("nonsense")
        assert root.level == logging.INFO
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
