from dataclasses import dataclass
from typing import Sequence, Tuple

from .errors import ConversionError, ConversionErrorKind


@dataclass(frozen=True)
class ClassificationRule:
    """
    Maps any of `patterns` (case-sensitive substrings of tool stderr) to a kind.
    """
    patterns: Tuple[str, ...]
    kind: ConversionErrorKind
    message: str

    def matches(self, diagnostic: str) -> bool:
        return any(p in diagnostic for p in self.patterns)


# Order matters: first match wins.
CONVERSION_RULES: Tuple[ClassificationRule, ...] = (
    ClassificationRule(
        ("Invalid data found",),
        ConversionErrorKind.CORRUPTED_INPUT,
        "Video file appears to be corrupted or in unsupported format",
    ),
    ClassificationRule(
        ("moov atom not found",),
        ConversionErrorKind.CORRUPTED_INPUT,
        "Video file is corrupted or incomplete (missing moov atom)",
    ),
    ClassificationRule(
        ("No such file",),
        ConversionErrorKind.FILE_MISSING_DURING_CONVERSION,
        "Video file not found during conversion",
    ),
    ClassificationRule(
        ("Permission denied",),
        ConversionErrorKind.PERMISSION_DENIED,
        "Permission denied accessing video file",
    ),
    ClassificationRule(
        ("Disk quota exceeded", "No space left"),
        ConversionErrorKind.DISK_EXHAUSTED,
        "Insufficient disk space for conversion",
    ),
)

# Signatures of the fast pre-conversion decode probe
INTEGRITY_RULES: Tuple[ClassificationRule, ...] = (
    ClassificationRule(
        ("moov atom not found",),
        ConversionErrorKind.CORRUPTED_INPUT,
        "Video file is corrupted or incomplete (missing moov atom)",
    ),
    ClassificationRule(
        ("Invalid data found",),
        ConversionErrorKind.CORRUPTED_INPUT,
        "Video file contains invalid data or unsupported format",
    ),
    ClassificationRule(
        ("No such file",),
        ConversionErrorKind.FILE_NOT_FOUND,
        "Video file disappeared before it could be read",
    ),
)


class ErrorClassifier:
    """
    Best-effort translation of tool diagnostics into ConversionErrors.

    Matching is brittle across FFmpeg versions, so anything unrecognised
    becomes the fallback kind with the raw text preserved in `diagnostic`.
    """

    def __init__(self,
                 rules: Sequence[ClassificationRule] = CONVERSION_RULES,
                 fallback_kind: ConversionErrorKind = ConversionErrorKind.CONVERSION_FAILED,
                 fallback_message: str = "Video conversion failed"):
        self.rules = tuple(rules)
        self.fallback_kind = fallback_kind
        self.fallback_message = fallback_message

    def classify(self, diagnostic: str) -> ConversionError:
        text = (diagnostic or "").strip()
        for rule in self.rules:
            if rule.matches(text):
                return ConversionError(rule.kind, rule.message, diagnostic=text)
        return ConversionError(self.fallback_kind, self.fallback_message, diagnostic=text)
