import base64

import pytest

from lookout.config import Settings
from lookout.services.duration import DurationEstimator, estimate_video_duration


def _video_uri(n_bytes: int) -> str:
    return "data:video/mp4;base64," + base64.b64encode(bytes(n_bytes)).decode("ascii")


class TestEstimateVideoDuration:
    def test_empty_payload_clamps_to_minimum(self):
        assert estimate_video_duration("data:video/mp4;base64,") == 1.0

    def test_size_divided_by_assumed_bitrate(self):
        five_mib = 5 * 1024 * 1024
        assert estimate_video_duration(_video_uri(five_mib)) == pytest.approx(10.0)

    def test_large_payload_clamps_to_maximum(self):
        assert estimate_video_duration(_video_uri(1024), bytes_per_second=1.0) == 120.0

    def test_padding_is_not_counted(self):
        # 2 bytes -> "AAA=" ; 1 byte per second -> 2 seconds
        uri = _video_uri(2)
        assert uri.endswith("=")
        assert estimate_video_duration(uri, bytes_per_second=1.0) == pytest.approx(2.0)

    def test_missing_header_uses_whole_string(self):
        payload = base64.b64encode(bytes(8)).decode("ascii")
        assert estimate_video_duration(payload, bytes_per_second=1.0) == pytest.approx(8.0)

    def test_same_input_same_result(self):
        uri = _video_uri(3 * 1024 * 1024)
        first = estimate_video_duration(uri)
        assert all(estimate_video_duration(uri) == first for _ in range(5))


class TestDurationEstimator:
    def test_uses_configured_bounds(self):
        estimator = DurationEstimator(
            Settings(_env_file=None, duration_min_seconds=2.0, duration_max_seconds=30.0)
        )
        assert estimator.estimate("data:video/mp4;base64,") == 2.0
        assert estimator.estimate(_video_uri(100 * 1024 * 1024)) == 30.0
