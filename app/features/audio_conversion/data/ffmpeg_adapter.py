import logging
from pathlib import Path
from typing import List, Optional

from app.core.config.settings import settings
from app.core.execution.context import ExecutionContext
from ..domain.errors import ToolInterrupted
from ..domain.interfaces import ITranscoder
from ..domain.models import TranscodeRequest, ToolResult
from .process_runner import run_process

logger = logging.getLogger(__name__)

VERSION_CHECK_TIMEOUT_SECONDS = 10


class FFmpegTranscoder(ITranscoder):
    """
    Concrete implementation of ITranscoder using the FFmpeg CLI.
    """

    def __init__(self, binary: Optional[str] = None, probe_timeout_seconds: float = 30.0):
        self.binary = binary or settings.FFMPEG_BINARY
        self.probe_timeout_seconds = probe_timeout_seconds

    def is_available(self, context: Optional[ExecutionContext] = None) -> bool:
        context = context or ExecutionContext()
        try:
            outcome = run_process([self.binary, "-version"], context.child(VERSION_CHECK_TIMEOUT_SECONDS))
        except ToolInterrupted:
            if context.done:
                raise
            logger.debug(f"FFmpeg availability check timed out after {VERSION_CHECK_TIMEOUT_SECONDS}s")
            return False
        except OSError as e:
            logger.debug(f"FFmpeg availability check failed: {e}")
            return False
        return outcome.return_code == 0

    def build_integrity_command(self, media_path: Path) -> List[str]:
        # -t 1: decode only the first second
        # -f null -: throw the decoded frames away
        return [
            self.binary,
            "-hide_banner",
            "-loglevel", "error",
            "-i", str(media_path),
            "-t", "1",
            "-f", "null",
            "-",
        ]

    def build_transcode_command(self, request: TranscodeRequest) -> List[str]:
        # -vn: Disable video
        # -ar/-ac: 16kHz mono is what speech recognition models consume anyway
        # -avoid_negative_ts/-fflags +genpts: tolerate broken timestamps
        # -max_muxing_queue_size: large or oddly interleaved inputs
        # -y: Overwrite output
        return [
            self.binary,
            "-hide_banner",
            "-loglevel", "error",
            "-i", str(request.input_path),
            "-vn",
            "-acodec", request.audio_codec,
            "-ar", str(request.sample_rate_hz),
            "-ac", str(request.channels),
            "-b:a", f"{request.bitrate_kbps}k",
            "-f", request.output_format,
            "-avoid_negative_ts", "make_zero",
            "-fflags", "+genpts",
            "-max_muxing_queue_size", "1024",
            "-y",
            str(request.output_path),
        ]

    def probe_integrity(self, media_path: Path, context: ExecutionContext) -> ToolResult:
        cmd = self.build_integrity_command(media_path)
        logger.debug(f"Probing integrity: {' '.join(cmd)}")

        probe_context = context.child(self.probe_timeout_seconds)
        try:
            outcome = run_process(cmd, probe_context)
        except ToolInterrupted as e:
            if context.done:
                raise
            # Only the probe's own budget ran out; report it as an unreadable input
            return ToolResult(
                return_code=-1,
                diagnostic=e.diagnostic or f"integrity probe timed out after {self.probe_timeout_seconds}s",
            )

        return ToolResult(outcome.return_code, outcome.stderr.strip(), outcome.elapsed_seconds)

    def transcode(self, request: TranscodeRequest, context: ExecutionContext) -> ToolResult:
        cmd = self.build_transcode_command(request)
        logger.info(f"Extracting audio: {' '.join(cmd)}")

        outcome = run_process(cmd, context)
        return ToolResult(outcome.return_code, outcome.stderr.strip(), outcome.elapsed_seconds)
