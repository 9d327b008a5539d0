# File: app/core/common/enums.py

from enum import Enum, unique
from pathlib import Path


@unique
class FileType(str, Enum):
    VIDEO = "video"
    AUDIO = "audio"
    UNKNOWN = "unknown"

    @classmethod
    def from_path(cls, path) -> "FileType":
        """Classifies a file by extension (case-insensitive). Contents are not inspected."""
        ext = Path(path).suffix.lower()
        if ext in AUDIO_EXTENSIONS:
            return cls.AUDIO
        if ext in VIDEO_EXTENSIONS:
            return cls.VIDEO
        return cls.UNKNOWN


AUDIO_EXTENSIONS = frozenset({".mp3", ".wav", ".m4a", ".ogg", ".flac", ".aac"})
VIDEO_EXTENSIONS = frozenset({".mp4", ".avi", ".mov", ".mkv", ".webm", ".flv", ".wmv", ".m4v"})
