# File: tests/conftest.py

import os
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Optional

import pytest

# 1. Add project root to path
sys.path.append(os.getcwd())

from app.core.execution.context import ExecutionContext
from app.features.audio_conversion.domain.errors import DurationProbeError, ToolInterrupted
from app.features.audio_conversion.domain.interfaces import IDurationProber, ITranscoder
from app.features.audio_conversion.domain.models import ConversionConfig, ToolResult
from app.features.audio_conversion.service.converter import VideoConverter

HAS_FFMPEG = shutil.which("ffmpeg") is not None and shutil.which("ffprobe") is not None


class FakeTranscoder(ITranscoder):
    """
    Scriptable stand-in for FFmpeg.
    `output_bytes` is written to the output path on every transcode (even a
    failing one) to simulate partial output; None writes nothing.
    """

    def __init__(self):
        self.available = True
        self.integrity = ToolResult(0)
        self.result = ToolResult(0)
        self.output_bytes = b"ID3" + b"\x00" * 1021
        self.interrupt_transcode = False
        self.spawn_error = None
        self.requests = []
        self.contexts = []

    def is_available(self, context: Optional[ExecutionContext] = None) -> bool:
        if context is not None and context.done:
            raise ToolInterrupted(context.reason())
        return self.available

    def probe_integrity(self, media_path: Path, context: ExecutionContext) -> ToolResult:
        if context.done:
            raise ToolInterrupted(context.reason())
        return self.integrity

    def transcode(self, request, context: ExecutionContext) -> ToolResult:
        self.requests.append(request)
        self.contexts.append(context)
        if self.spawn_error:
            raise self.spawn_error
        if self.output_bytes is not None:
            request.output_path.write_bytes(self.output_bytes)
        if self.interrupt_transcode or context.done:
            raise ToolInterrupted(context.reason() if context.done else "cancelled", diagnostic="killed")
        return self.result


class FakeProber(IDurationProber):
    def __init__(self, duration_minutes: float = 30.0):
        self.duration_minutes = duration_minutes
        self.error = None
        self.calls = 0

    def probe_duration_minutes(self, media_path: Path, context: ExecutionContext) -> float:
        self.calls += 1
        if self.error:
            raise self.error
        return self.duration_minutes


@pytest.fixture
def transcoder():
    return FakeTranscoder()


@pytest.fixture
def prober():
    return FakeProber()


@pytest.fixture
def video_file(tmp_path):
    """
    A dummy upload. The fakes never read it, only its existence matters.
    """
    p = tmp_path / "lecture.mp4"
    p.write_bytes(b"FAKE_VIDEO")
    return p


@pytest.fixture
def make_converter(transcoder, prober):
    def factory(**overrides):
        return VideoConverter(
            config=ConversionConfig(**overrides),
            transcoder=transcoder,
            prober=prober,
        )
    return factory


@pytest.fixture
def synthetic_video(tmp_path):
    """
    Generates a small valid MP4 with an audio track using FFmpeg.
    """
    if not HAS_FFMPEG:
        pytest.skip("ffmpeg/ffprobe not on PATH")

    video_path = tmp_path / "test_video.mp4"
    cmd = [
        "ffmpeg", "-y",
        "-f", "lavfi", "-i", "testsrc=duration=2:size=320x240:rate=30",
        "-f", "lavfi", "-i", "sine=frequency=1000:duration=2",
        "-c:v", "libx264",
        "-c:a", "aac",
        "-pix_fmt", "yuv420p",
        "-map", "0:v", "-map", "1:a",
        str(video_path)
    ]
    subprocess.run(cmd, check=True, capture_output=True)
    return video_path
