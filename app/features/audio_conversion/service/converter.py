import dataclasses
import errno
import logging
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Tuple, Union

from app.core.execution.context import ExecutionContext
from ..data.ffmpeg_adapter import FFmpegTranscoder
from ..data.ffprobe_adapter import FFprobeDurationProber
from ..domain.bitrate_strategy import AdaptiveBitrateStrategy
from ..domain.error_classifier import ErrorClassifier
from ..domain.errors import ConversionError, ConversionErrorKind, DurationProbeError, ToolInterrupted
from ..domain.interfaces import IBitrateStrategy, IDurationProber, ITranscoder
from ..domain.models import (
    ConversionConfig,
    ConversionResult,
    ConversionStage,
    TranscodeRequest,
    VideoMetadata,
)
from .validators import InputValidator, OutputValidator

logger = logging.getLogger(__name__)

_DISK_FULL_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}


@dataclass
class ConversionState:
    """Mutable scratchpad for one convert() call. Never shared between calls."""
    video_path: Path
    context: ExecutionContext
    stage: ConversionStage = ConversionStage.IDLE
    metadata: Optional[VideoMetadata] = None
    output_path: Optional[Path] = None
    output_size_bytes: int = 0
    started_at: float = field(default_factory=time.monotonic)


class VideoConverter:
    """
    Turns a video into an audio file that fits under the speech-to-text size ceiling.

    Pipeline (each stage raises ConversionError to stop the run):
        VALIDATING -> PROBING_DURATION -> CONVERTING -> VALIDATING_OUTPUT

    Duration probing is best-effort: if it fails the bitrate falls back to the
    high-quality default. There are no retries; that is the caller's call.
    """

    def __init__(self,
                 config: Optional[ConversionConfig] = None,
                 transcoder: Optional[ITranscoder] = None,
                 prober: Optional[IDurationProber] = None,
                 strategy: Optional[IBitrateStrategy] = None,
                 classifier: Optional[ErrorClassifier] = None):
        self.config = config or ConversionConfig.from_settings()
        self.transcoder = transcoder or FFmpegTranscoder(probe_timeout_seconds=self.config.probe_timeout_seconds)
        self.prober = prober or FFprobeDurationProber(timeout_seconds=self.config.probe_timeout_seconds)
        self.strategy = strategy or AdaptiveBitrateStrategy(self.config)
        self.classifier = classifier or ErrorClassifier()

        self.input_validator = InputValidator(self.transcoder)
        self.output_validator = OutputValidator(self.config.max_size_bytes)

        self._stages: Tuple[Tuple[ConversionStage, Callable[[ConversionState], None]], ...] = (
            (ConversionStage.VALIDATING, self._validate_input),
            (ConversionStage.PROBING_DURATION, self._detect_duration),
            (ConversionStage.CONVERTING, self._convert),
            (ConversionStage.VALIDATING_OUTPUT, self._validate_output),
        )

    # --- Configuration ---

    @property
    def conversion_timeout(self) -> float:
        return self.config.conversion_timeout_seconds

    @conversion_timeout.setter
    def conversion_timeout(self, seconds: float) -> None:
        self.config = dataclasses.replace(self.config, conversion_timeout_seconds=seconds)

    def is_ffmpeg_available(self) -> bool:
        return self.transcoder.is_available()

    # --- Public API ---

    def convert(self, video_path: Union[str, Path], context: Optional[ExecutionContext] = None) -> ConversionResult:
        """
        Runs the whole pipeline.

        Returns:
            ConversionResult whose output file now belongs to the caller.

        Raises:
            ConversionError: Any failure. No output file is left behind.
        """
        state = ConversionState(video_path=Path(video_path), context=context or ExecutionContext())

        try:
            for stage, step in self._stages:
                self._enter(state, stage)
                step(state)
        except ConversionError as e:
            self._fail(state, e)
            raise
        except OSError as e:
            error = self._wrap_os_error(e)
            self._fail(state, error)
            raise error from e
        except BaseException:
            # Interpreter shutdown, KeyboardInterrupt, ... still must not leave output behind
            self._discard_output(state)
            raise

        self._enter(state, ConversionStage.SUCCEEDED)
        elapsed = time.monotonic() - state.started_at
        logger.info(
            f"Video conversion completed: input={state.video_path} output={state.output_path} "
            f"size_bytes={state.output_size_bytes} conversion_seconds={elapsed:.1f}"
        )
        return ConversionResult(
            output_path=state.output_path,
            metadata=state.metadata,
            output_size_bytes=state.output_size_bytes,
            elapsed_seconds=elapsed,
        )

    def generate_output_path(self, video_path: Path, token: Optional[str] = None) -> Path:
        """
        <dir>/<stem><suffix>_<token>.<ext>, next to the input.
        The random token keeps concurrent conversions of the same input apart.
        """
        token = token or uuid.uuid4().hex[:8]
        name = f"{video_path.stem}{self.config.output_suffix}_{token}{self.config.output_extension}"
        return video_path.parent / name

    # --- Stages ---

    def _validate_input(self, state: ConversionState) -> None:
        logger.info(f"Validating video file: {state.video_path}")
        try:
            self.input_validator.validate(state.video_path, state.context)
        except ToolInterrupted as e:
            raise self._interrupted("Video file validation", e) from e

    def _detect_duration(self, state: ConversionState) -> None:
        try:
            duration = self.prober.probe_duration_minutes(state.video_path, state.context)
            logger.info(f"Detected video duration: {duration:.2f} minutes")
        except ToolInterrupted as e:
            raise self._interrupted("Duration detection", e) from e
        except DurationProbeError as e:
            logger.warning(f"Failed to detect video duration, using default bitrate: {e}")
            duration = 0.0

        try:
            state.metadata = self.strategy.describe(duration)
        except ValueError as e:
            logger.warning(f"Unusable video duration {duration}, using default bitrate: {e}")
            duration = 0.0
            state.metadata = self.strategy.describe(duration)
        logger.info(
            f"Selected bitrate {state.metadata.selected_bitrate_kbps}kbps "
            f"(duration_minutes={duration:.2f}, estimated_size_mb={state.metadata.estimated_size_mb:.1f})"
        )

    def _convert(self, state: ConversionState) -> None:
        state.output_path = self.generate_output_path(state.video_path)
        request = TranscodeRequest.from_config(
            input_path=state.video_path,
            output_path=state.output_path,
            bitrate_kbps=state.metadata.selected_bitrate_kbps,
            config=self.config,
        )
        conversion_context = state.context.child(self.config.conversion_timeout_seconds)

        logger.info(
            f"Starting video conversion: input={state.video_path} output={state.output_path} "
            f"bitrate={request.bitrate_kbps}kbps timeout={self.config.conversion_timeout_seconds}s"
        )

        try:
            result = self.transcoder.transcode(request, conversion_context)
        except ToolInterrupted as e:
            raise self._interrupted("Video conversion", e) from e
        except OSError as e:
            raise ConversionError(
                ConversionErrorKind.TOOL_UNAVAILABLE,
                "FFmpeg could not be started",
                diagnostic=str(e),
            ) from e

        if not result.succeeded:
            self._discard_output(state)
            logger.error(
                f"FFmpeg conversion failed: exit_code={result.return_code} "
                f"seconds={result.elapsed_seconds:.1f} stderr={result.diagnostic}"
            )
            raise self.classifier.classify(result.diagnostic)

    def _validate_output(self, state: ConversionState) -> None:
        state.output_size_bytes = self.output_validator.validate(state.output_path)

    # --- Helpers ---

    @staticmethod
    def _enter(state: ConversionState, stage: ConversionStage) -> None:
        state.stage = stage
        logger.debug(f"Conversion of {state.video_path.name} entered stage {stage.value}")

        # Finished stages always get recorded; only new work is refused
        if stage is not ConversionStage.SUCCEEDED and state.context.done:
            raise ConversionError(
                ConversionErrorKind.TIMEOUT_OR_CANCELLED,
                f"Conversion {state.context.reason()} before {stage.value}",
            )

    def _interrupted(self, what: str, error: ToolInterrupted) -> ConversionError:
        return ConversionError(
            ConversionErrorKind.TIMEOUT_OR_CANCELLED,
            f"{what} {error.reason}",
            diagnostic=error.diagnostic,
        )

    def _fail(self, state: ConversionState, error: ConversionError) -> None:
        self._discard_output(state)
        error.stage = state.stage
        state.stage = ConversionStage.FAILED
        logger.error(
            f"Video conversion failed: input={state.video_path} stage={error.stage.value} "
            f"kind={error.kind.value} error={error}"
        )

    @staticmethod
    def _discard_output(state: ConversionState) -> None:
        if state.output_path is None:
            return
        try:
            state.output_path.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"Could not remove partial output {state.output_path}: {e}")

    @staticmethod
    def _wrap_os_error(e: OSError) -> ConversionError:
        if isinstance(e, FileNotFoundError):
            kind = ConversionErrorKind.FILE_MISSING_DURING_CONVERSION
        elif isinstance(e, PermissionError):
            kind = ConversionErrorKind.PERMISSION_DENIED
        elif e.errno in _DISK_FULL_ERRNOS:
            kind = ConversionErrorKind.DISK_EXHAUSTED
        else:
            kind = ConversionErrorKind.CONVERSION_FAILED
        return ConversionError(kind, "Filesystem error during conversion", diagnostic=str(e))
