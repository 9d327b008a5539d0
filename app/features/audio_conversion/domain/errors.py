from enum import Enum, unique
from typing import Optional


@unique
class ConversionErrorKind(str, Enum):
    FILE_NOT_FOUND = "file_not_found"
    TOOL_UNAVAILABLE = "tool_unavailable"
    CORRUPTED_INPUT = "corrupted_input"
    VALIDATION_FAILED = "validation_failed"
    FILE_MISSING_DURING_CONVERSION = "file_missing_during_conversion"
    PERMISSION_DENIED = "permission_denied"
    DISK_EXHAUSTED = "disk_exhausted"
    CONVERSION_FAILED = "conversion_failed"
    EMPTY_OUTPUT = "empty_output"
    OUTPUT_TOO_LARGE = "output_too_large"
    TIMEOUT_OR_CANCELLED = "timeout_or_cancelled"


# Kinds caused by the uploaded file itself rather than by the deployment
USER_ERROR_KINDS = frozenset({
    ConversionErrorKind.FILE_NOT_FOUND,
    ConversionErrorKind.CORRUPTED_INPUT,
    ConversionErrorKind.VALIDATION_FAILED,
    ConversionErrorKind.OUTPUT_TOO_LARGE,
})


class ConversionError(Exception):
    """
    The single failure type of the conversion pipeline.

    Attributes:
        kind: Semantic category the caller maps to a user-facing message.
        message: Human readable summary.
        diagnostic: Raw tool output (stderr), kept for operators.
        stage: Pipeline stage that failed. Filled in by the converter.
    """

    def __init__(self, kind: ConversionErrorKind, message: str, diagnostic: str = "", stage=None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.diagnostic = diagnostic
        self.stage = stage

    @property
    def is_user_error(self) -> bool:
        return self.kind in USER_ERROR_KINDS

    def __str__(self) -> str:
        if self.diagnostic and self.diagnostic not in self.message:
            return f"{self.message}: {self.diagnostic}"
        return self.message

    def __repr__(self) -> str:
        return f"ConversionError(kind={self.kind.value!r}, message={self.message!r})"


class DurationProbeError(Exception):
    """Duration could not be determined. Never surfaces to the caller."""


class ToolInterrupted(Exception):
    """An external tool was killed because its execution context ended."""

    def __init__(self, reason: str, diagnostic: Optional[str] = None):
        super().__init__(f"External tool interrupted: {reason}")
        self.reason = reason
        self.diagnostic = diagnostic or ""
