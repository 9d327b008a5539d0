import pytest

from app.features.audio_conversion.domain.error_classifier import (
    ClassificationRule,
    ErrorClassifier,
    INTEGRITY_RULES,
)
from app.features.audio_conversion.domain.errors import ConversionError, ConversionErrorKind


@pytest.mark.parametrize("stderr, expected_kind", [
    ("input.mp4: Invalid data found when processing input", ConversionErrorKind.CORRUPTED_INPUT),
    ("[mov,mp4,m4a,3gp,3g2,mj2 @ 0x5581] moov atom not found", ConversionErrorKind.CORRUPTED_INPUT),
    ("/tmp/gone.mp4: No such file or directory", ConversionErrorKind.FILE_MISSING_DURING_CONVERSION),
    ("/srv/out.mp3: Permission denied", ConversionErrorKind.PERMISSION_DENIED),
    ("av_interleaved_write_frame(): No space left on device", ConversionErrorKind.DISK_EXHAUSTED),
    ("Error writing trailer: Disk quota exceeded", ConversionErrorKind.DISK_EXHAUSTED),
])
def test_known_diagnostics(stderr, expected_kind):
    error = ErrorClassifier().classify(stderr)

    assert isinstance(error, ConversionError)
    assert error.kind == expected_kind
    assert error.diagnostic == stderr


def test_unknown_diagnostic_keeps_raw_text():
    stderr = "Encoder libmp3lame exploded in an unexpected way"
    error = ErrorClassifier().classify(stderr)

    assert error.kind == ConversionErrorKind.CONVERSION_FAILED
    assert error.diagnostic == stderr
    assert stderr in str(error)


def test_empty_diagnostic_falls_back():
    error = ErrorClassifier().classify("")
    assert error.kind == ConversionErrorKind.CONVERSION_FAILED
    assert str(error) == "Video conversion failed"


def test_first_matching_rule_wins():
    stderr = "No such file or directory\nInvalid data found when processing input"
    assert ErrorClassifier().classify(stderr).kind == ConversionErrorKind.CORRUPTED_INPUT


def test_matching_is_case_sensitive():
    assert ErrorClassifier().classify("permission DENIED").kind == ConversionErrorKind.CONVERSION_FAILED


@pytest.mark.parametrize("stderr, expected_kind", [
    ("moov atom not found", ConversionErrorKind.CORRUPTED_INPUT),
    ("Invalid data found when processing input", ConversionErrorKind.CORRUPTED_INPUT),
    ("No such file or directory", ConversionErrorKind.FILE_NOT_FOUND),
    ("Stream #0:1 decoding failed", ConversionErrorKind.VALIDATION_FAILED),
])
def test_integrity_rules(stderr, expected_kind):
    classifier = ErrorClassifier(
        rules=INTEGRITY_RULES,
        fallback_kind=ConversionErrorKind.VALIDATION_FAILED,
        fallback_message="Video file validation failed",
    )
    assert classifier.classify(stderr).kind == expected_kind


def test_custom_rules():
    rules = [ClassificationRule(("Unknown encoder",), ConversionErrorKind.TOOL_UNAVAILABLE, "Codec missing")]
    error = ErrorClassifier(rules=rules).classify("Unknown encoder 'libmp3lame'")

    assert error.kind == ConversionErrorKind.TOOL_UNAVAILABLE
    assert error.message == "Codec missing"


def test_user_error_flag():
    assert ConversionError(ConversionErrorKind.CORRUPTED_INPUT, "x").is_user_error
    assert ConversionError(ConversionErrorKind.OUTPUT_TOO_LARGE, "x").is_user_error
    assert not ConversionError(ConversionErrorKind.TOOL_UNAVAILABLE, "x").is_user_error
    assert not ConversionError(ConversionErrorKind.DISK_EXHAUSTED, "x").is_user_error
