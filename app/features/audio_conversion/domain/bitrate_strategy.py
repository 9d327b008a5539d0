import math
from typing import Optional

from .interfaces import IBitrateStrategy
from .models import ConversionConfig


class AdaptiveBitrateStrategy(IBitrateStrategy):
    """
    Picks the highest bitrate that keeps the output near the target size.

    Size model (1 kbit = 1024 bits):
        size_bytes   = bitrate_kbps * 1024 * duration_seconds / 8
        bitrate_kbps = size_bytes * 8 / (duration_seconds * 1024)

    Tiers:
        short  (<= short_video_minutes):  up to the high bitrate
        medium (<= medium_video_minutes): up to the medium bitrate
        long:                             whatever fits, never below low

    Every tier clamps into [low, ceiling] and the ceilings never rise with
    duration, so a longer video never gets a higher bitrate than a shorter one.
    """

    def __init__(self, config: Optional[ConversionConfig] = None):
        self.config = config or ConversionConfig()

    def calculate_bitrate(self, duration_minutes: float) -> int:
        cfg = self.config
        if math.isnan(duration_minutes) or duration_minutes <= 0:
            # Unknown duration: best quality
            return cfg.high_bitrate_kbps

        duration_seconds = duration_minutes * 60
        calculated = cfg.target_size_bytes * 8 / (duration_seconds * 1024)

        if duration_minutes <= cfg.short_video_minutes:
            ceiling = cfg.high_bitrate_kbps
        elif duration_minutes <= cfg.medium_video_minutes:
            ceiling = cfg.medium_bitrate_kbps
        else:
            # Defaults already compute well below medium here; the cap only
            # binds for unusually large target sizes.
            ceiling = cfg.medium_bitrate_kbps

        return int(min(ceiling, max(calculated, cfg.low_bitrate_kbps)))

    def estimate_file_size(self, duration_minutes: float, bitrate_kbps: int) -> int:
        if math.isnan(duration_minutes) or duration_minutes <= 0:
            return 0
        duration_seconds = duration_minutes * 60
        size_bytes = bitrate_kbps * 1024 * duration_seconds / 8
        # Huge finite durations overflow to inf on the way
        if math.isinf(size_bytes):
            raise ValueError(f"Cannot estimate the size of a {duration_minutes} minute duration.")
        return int(size_bytes)
