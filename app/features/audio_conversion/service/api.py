import logging
from pathlib import Path
from typing import Optional, Union

from app.core.common.enums import FileType
from app.core.execution.context import ExecutionContext
from ..domain.models import ConversionConfig, ConversionResult
from .converter import VideoConverter

logger = logging.getLogger(__name__)


def convert_video_to_audio(video_path: str,
                           context: Optional[ExecutionContext] = None,
                           config: Optional[ConversionConfig] = None) -> ConversionResult:
    """
    Standalone API: Converts a video into a transcription-ready audio file.

    Args:
        video_path: Path to the source video.
        context: Optional cancellation scope. Cancelling it kills FFmpeg.
        config: Overrides the environment-derived configuration.

    Returns:
        ConversionResult. Delete result.output_path with cleanup_converted_file().

    Raises:
        ConversionError: See ConversionErrorKind for the possible causes.
    """
    converter = VideoConverter(config=config)
    return converter.convert(Path(video_path), context)


def cleanup_converted_file(audio_path: Union[str, Path, None]) -> None:
    """
    Removes a file returned by convert_video_to_audio.
    Empty paths and already-deleted files are ignored.
    """
    if not audio_path:
        return
    try:
        Path(audio_path).unlink(missing_ok=True)
    except OSError as e:
        logger.error(f"Failed to cleanup converted audio file {audio_path}: {e}")
        raise


def is_video_file(filename: Union[str, Path]) -> bool:
    """True if the extension marks a video that needs converting before transcription."""
    return FileType.from_path(filename) == FileType.VIDEO
