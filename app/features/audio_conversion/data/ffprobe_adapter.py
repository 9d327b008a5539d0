import logging
import math
from pathlib import Path
from typing import List, Optional

from app.core.config.settings import settings
from app.core.execution.context import ExecutionContext
from ..domain.errors import DurationProbeError, ToolInterrupted
from ..domain.interfaces import IDurationProber
from .process_runner import run_process

logger = logging.getLogger(__name__)


class FFprobeDurationProber(IDurationProber):
    """
    Reads the container duration with ffprobe. Short timeout, no decoding.
    """

    def __init__(self, binary: Optional[str] = None, timeout_seconds: float = 30.0):
        self.binary = binary or settings.FFPROBE_BINARY
        self.timeout_seconds = timeout_seconds

    def build_command(self, media_path: Path) -> List[str]:
        # csv=p=0 prints the bare number, e.g. "6150.016000"
        return [
            self.binary,
            "-v", "quiet",
            "-show_entries", "format=duration",
            "-of", "csv=p=0",
            str(media_path),
        ]

    def probe_duration_minutes(self, media_path: Path, context: ExecutionContext) -> float:
        cmd = self.build_command(media_path)
        probe_context = context.child(self.timeout_seconds)

        try:
            outcome = run_process(cmd, probe_context, capture_stdout=True)
        except ToolInterrupted as e:
            if context.done:
                raise
            raise DurationProbeError(f"ffprobe timed out after {self.timeout_seconds}s") from e
        except OSError as e:
            raise DurationProbeError(f"failed to run ffprobe: {e}") from e

        if outcome.return_code != 0:
            raise DurationProbeError(
                f"failed to get video duration: ffprobe exited with {outcome.return_code}"
            )

        raw = outcome.stdout.strip()
        try:
            duration_seconds = float(raw)
        except ValueError as e:
            raise DurationProbeError(f"failed to parse duration '{raw}'") from e

        if not math.isfinite(duration_seconds) or duration_seconds < 0:
            raise DurationProbeError(f"implausible duration '{raw}'")

        return duration_seconds / 60.0
