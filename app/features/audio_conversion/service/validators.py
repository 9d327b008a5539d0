import logging
from pathlib import Path
from typing import Optional

from app.core.execution.context import ExecutionContext
from ..domain.error_classifier import ErrorClassifier, INTEGRITY_RULES
from ..domain.errors import ConversionError, ConversionErrorKind
from ..domain.interfaces import ITranscoder
from ..domain.models import MEGABYTE

logger = logging.getLogger(__name__)


class InputValidator:
    """
    Cheap checks run before committing to a potentially multi-minute transcode:
    the file exists, FFmpeg is reachable, and the first second decodes.
    """

    def __init__(self, transcoder: ITranscoder, classifier: Optional[ErrorClassifier] = None):
        self.transcoder = transcoder
        self.classifier = classifier or ErrorClassifier(
            rules=INTEGRITY_RULES,
            fallback_kind=ConversionErrorKind.VALIDATION_FAILED,
            fallback_message="Video file validation failed",
        )

    def validate(self, video_path: Path, context: ExecutionContext) -> None:
        self.check_exists(video_path)
        self.check_tool(context)
        self.check_integrity(video_path, context)

    @staticmethod
    def check_exists(video_path: Path) -> None:
        if not video_path.is_file():
            raise ConversionError(
                ConversionErrorKind.FILE_NOT_FOUND,
                f"Video not found: {video_path}",
            )

    def check_tool(self, context: Optional[ExecutionContext] = None) -> None:
        if not self.transcoder.is_available(context):
            logger.error("ffmpeg not available")
            raise ConversionError(
                ConversionErrorKind.TOOL_UNAVAILABLE,
                "FFmpeg is not installed or not in PATH",
            )

    def check_integrity(self, video_path: Path, context: ExecutionContext) -> None:
        try:
            result = self.transcoder.probe_integrity(video_path, context)
        except OSError as e:
            raise ConversionError(
                ConversionErrorKind.TOOL_UNAVAILABLE,
                "FFmpeg could not be started",
                diagnostic=str(e),
            ) from e

        if result.succeeded:
            return

        error = self.classifier.classify(result.diagnostic)
        logger.error(f"Video file validation failed for {video_path}: {error}")
        raise error


class OutputValidator:
    """
    Post-conversion checks. A file that fails them is deleted before raising.
    """

    def __init__(self, max_size_bytes: int):
        self.max_size_bytes = max_size_bytes

    def validate(self, output_path: Path) -> int:
        """Returns the size of an acceptable output file in bytes."""
        try:
            size = output_path.stat().st_size
        except FileNotFoundError:
            raise ConversionError(
                ConversionErrorKind.EMPTY_OUTPUT,
                "Conversion reported success but produced no audio file",
            )

        if size == 0:
            # Zero bytes after exit 0 means the encoder failed silently
            output_path.unlink(missing_ok=True)
            raise ConversionError(ConversionErrorKind.EMPTY_OUTPUT, "Conversion produced empty audio file")

        if size > self.max_size_bytes:
            output_path.unlink(missing_ok=True)
            raise ConversionError(
                ConversionErrorKind.OUTPUT_TOO_LARGE,
                f"Converted audio file is too large ({size // MEGABYTE} MB). "
                f"The limit is {self.max_size_bytes // MEGABYTE} MB. "
                f"Please use a shorter video or compress it further",
            )

        return size
