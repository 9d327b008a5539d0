from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from app.core.execution.context import ExecutionContext
from .models import TranscodeRequest, ToolResult, VideoMetadata


class IBitrateStrategy(ABC):
    """
    Contract for choosing an audio bitrate from a video duration.
    Implementations must be pure: no I/O, no mutable state.
    """

    @abstractmethod
    def calculate_bitrate(self, duration_minutes: float) -> int:
        """Returns the bitrate (kbps). A duration <= 0 means unknown."""
        pass

    @abstractmethod
    def estimate_file_size(self, duration_minutes: float, bitrate_kbps: int) -> int:
        """Returns the expected output size in bytes, 0 for unknown duration."""
        pass

    def describe(self, duration_minutes: float) -> VideoMetadata:
        bitrate = self.calculate_bitrate(duration_minutes)
        return VideoMetadata(
            duration_minutes=duration_minutes,
            selected_bitrate_kbps=bitrate,
            estimated_size_bytes=self.estimate_file_size(duration_minutes, bitrate),
        )


class IDurationProber(ABC):
    """
    Contract for reading a media file's playback length without transcoding it.
    """

    @abstractmethod
    def probe_duration_minutes(self, media_path: Path, context: ExecutionContext) -> float:
        """
        Returns the container duration in minutes.

        Raises:
            DurationProbeError: The duration could not be read or parsed.
            ToolInterrupted: The caller's context was cancelled or expired.
        """
        pass


class ITranscoder(ABC):
    """
    Contract for the external transcoding tool (FFmpeg).
    Abstracts the binary away so the pipeline can be tested with fakes.
    """

    @abstractmethod
    def is_available(self, context: Optional[ExecutionContext] = None) -> bool:
        """
        True if the tool can be invoked at all.

        Raises:
            ToolInterrupted: The caller's context was cancelled or expired.
        """
        pass

    @abstractmethod
    def probe_integrity(self, media_path: Path, context: ExecutionContext) -> ToolResult:
        """
        Decodes roughly the first second of the input, discarding the output.
        A non-zero return code means the container or stream is unreadable.

        Raises:
            ToolInterrupted: The caller's context was cancelled or expired.
        """
        pass

    @abstractmethod
    def transcode(self, request: TranscodeRequest, context: ExecutionContext) -> ToolResult:
        """
        Encodes the audio track of request.input_path into request.output_path.

        Raises:
            ToolInterrupted: The context was cancelled or its deadline passed.
            OSError: The tool could not be started.
        """
        pass
