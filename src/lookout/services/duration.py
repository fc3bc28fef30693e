"""Video duration heuristic.

Approximates playable duration from the encoded size of the video. The
figure only gives the model a sense of scale for its timestamps; callers
that know the real duration should pass it instead.
"""

import logging

from lookout.config import Settings
from lookout.utils.data_uri import decoded_length, payload_of

logger = logging.getLogger(__name__)


def estimate_video_duration(
    video_data_uri: str,
    *,
    min_seconds: float = 1.0,
    max_seconds: float = 120.0,
    bytes_per_second: float = 0.5 * 1024 * 1024,
) -> float:
    """Estimate duration in seconds from payload size, clamped to [min_seconds, max_seconds]."""
    size = decoded_length(payload_of(video_data_uri))
    estimated = size / bytes_per_second if bytes_per_second > 0 else min_seconds
    capped = max(min_seconds, min(estimated, max_seconds))
    logger.warning(
        "Rough duration estimate %.2fs from %d bytes; pass videoDuration for accuracy",
        capped,
        size,
    )
    return capped


class DurationEstimator:
    """Settings-bound wrapper around estimate_video_duration."""

    def __init__(self, settings: Settings) -> None:
        self._min = settings.duration_min_seconds
        self._max = settings.duration_max_seconds
        self._bytes_per_second = settings.duration_bytes_per_second

    def estimate(self, video_data_uri: str) -> float:
        return estimate_video_duration(
            video_data_uri,
            min_seconds=self._min,
            max_seconds=self._max,
            bytes_per_second=self._bytes_per_second,
        )
