from dataclasses import dataclass
from enum import Enum, unique
from pathlib import Path
from typing import Optional

from app.core.config.settings import Settings, settings as default_settings

MEGABYTE = 1024 * 1024


@unique
class ConversionStage(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    PROBING_DURATION = "probing_duration"
    CONVERTING = "converting"
    VALIDATING_OUTPUT = "validating_output"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class ConversionConfig:
    """
    Tunables of the conversion pipeline.
    Defaults target a 25MB speech-to-text ceiling with a 1MB safety margin,
    encoded as 16kHz mono MP3 (plenty for speech recognition).
    """
    # Quality tiers (kbps)
    high_bitrate_kbps: int = 64
    medium_bitrate_kbps: int = 32
    low_bitrate_kbps: int = 24

    # Duration tier thresholds (minutes)
    short_video_minutes: float = 60
    medium_video_minutes: float = 120

    # Size limits (bytes)
    target_size_bytes: int = 24 * MEGABYTE
    max_size_bytes: int = 25 * MEGABYTE

    # Timeouts (seconds)
    conversion_timeout_seconds: float = 10 * 60
    probe_timeout_seconds: float = 30

    # Encoding
    audio_codec: str = "libmp3lame"
    sample_rate_hz: int = 16000
    channels: int = 1
    output_format: str = "mp3"
    output_suffix: str = "_converted"

    def __post_init__(self):
        if min(self.low_bitrate_kbps, self.medium_bitrate_kbps, self.high_bitrate_kbps) <= 0:
            raise ValueError("Bitrates must be positive.")
        if not self.low_bitrate_kbps <= self.medium_bitrate_kbps <= self.high_bitrate_kbps:
            raise ValueError(
                f"Bitrate tiers must satisfy low <= medium <= high, got "
                f"{self.low_bitrate_kbps}/{self.medium_bitrate_kbps}/{self.high_bitrate_kbps}."
            )
        if self.short_video_minutes <= 0 or self.medium_video_minutes < self.short_video_minutes:
            raise ValueError(
                f"Duration thresholds must satisfy 0 < short <= medium, got "
                f"{self.short_video_minutes}/{self.medium_video_minutes}."
            )
        if not 0 < self.target_size_bytes <= self.max_size_bytes:
            raise ValueError(
                f"Target size ({self.target_size_bytes}) must be positive and not exceed "
                f"the maximum size ({self.max_size_bytes})."
            )
        if self.conversion_timeout_seconds <= 0 or self.probe_timeout_seconds <= 0:
            raise ValueError("Timeouts must be positive.")
        if self.sample_rate_hz <= 0 or self.channels <= 0:
            raise ValueError("Sample rate and channel count must be positive.")

    @classmethod
    def from_settings(cls, source: Optional[Settings] = None) -> "ConversionConfig":
        s = source or default_settings
        return cls(
            high_bitrate_kbps=s.HIGH_QUALITY_BITRATE_KBPS,
            medium_bitrate_kbps=s.MEDIUM_QUALITY_BITRATE_KBPS,
            low_bitrate_kbps=s.LOW_QUALITY_BITRATE_KBPS,
            short_video_minutes=s.SHORT_VIDEO_MINUTES,
            medium_video_minutes=s.MEDIUM_VIDEO_MINUTES,
            target_size_bytes=s.TARGET_AUDIO_FILE_SIZE_BYTES,
            max_size_bytes=s.MAX_AUDIO_FILE_SIZE_BYTES,
            conversion_timeout_seconds=s.CONVERSION_TIMEOUT_SECONDS,
            probe_timeout_seconds=s.PROBE_TIMEOUT_SECONDS,
        )

    @property
    def output_extension(self) -> str:
        return f".{self.output_format}"


@dataclass(frozen=True)
class VideoMetadata:
    """
    Per-call sizing decision. Never persisted.
    A duration <= 0 means "unknown" and yields an estimate of 0.
    """
    duration_minutes: float
    selected_bitrate_kbps: int
    estimated_size_bytes: int

    @property
    def duration_known(self) -> bool:
        return self.duration_minutes > 0

    @property
    def estimated_size_mb(self) -> float:
        return self.estimated_size_bytes / MEGABYTE


@dataclass(frozen=True)
class TranscodeRequest:
    """Everything the transcoder needs for one video -> audio run."""
    input_path: Path
    output_path: Path
    bitrate_kbps: int
    audio_codec: str = "libmp3lame"
    sample_rate_hz: int = 16000
    channels: int = 1
    output_format: str = "mp3"

    @classmethod
    def from_config(cls, input_path: Path, output_path: Path, bitrate_kbps: int,
                    config: ConversionConfig) -> "TranscodeRequest":
        return cls(
            input_path=input_path,
            output_path=output_path,
            bitrate_kbps=bitrate_kbps,
            audio_codec=config.audio_codec,
            sample_rate_hz=config.sample_rate_hz,
            channels=config.channels,
            output_format=config.output_format,
        )


@dataclass(frozen=True)
class ToolResult:
    """Exit status and captured stderr of an external tool run."""
    return_code: int
    diagnostic: str = ""
    elapsed_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.return_code == 0


@dataclass(frozen=True)
class ConversionResult:
    """
    A successful conversion. The caller owns output_path and must delete it
    (see service.api.cleanup_converted_file).
    """
    output_path: Path
    metadata: VideoMetadata
    output_size_bytes: int
    elapsed_seconds: float = 0.0
    stage: ConversionStage = ConversionStage.SUCCEEDED
