import math

import pytest

from lookout.schemas.analysis import ModelVerdict, NormalizedBox
from lookout.services.verdict import normalize_verdict


def _raw(**kwargs) -> ModelVerdict:
    return ModelVerdict.model_validate(kwargs)


class TestNormalizeVerdict:
    def test_absent_verdict_has_no_identifications(self):
        raw = _raw(isPresent=False, reason="Not seen.", identifications=[{"timestamp": 2.0}])
        verdict = normalize_verdict(raw, 10.0)

        assert verdict.is_present is False
        assert verdict.reason == "Not seen."
        assert verdict.identifications == []

    def test_present_verdict_keeps_in_range_timestamp(self):
        raw = _raw(isPresent=True, confidence=0.9, reason="Seen.", identifications=[{"timestamp": 3.2}])
        verdict = normalize_verdict(raw, 10.0)

        assert verdict.is_present is True
        assert verdict.confidence == 0.9
        assert [i.timestamp for i in verdict.identifications] == [3.2]
        assert verdict.identifications[0].bounding_box is None

    def test_out_of_range_timestamp_dropped_valid_box_kept(self):
        raw = _raw(
            isPresent=True,
            reason="Seen.",
            identifications=[
                {"timestamp": 1.5, "boundingBox": {"xMin": 0.1, "yMin": 0.2, "xMax": 0.4, "yMax": 0.9}},
                {"timestamp": 50.0},
            ],
        )
        verdict = normalize_verdict(raw, 10.0)

        assert len(verdict.identifications) == 1
        ident = verdict.identifications[0]
        assert ident.timestamp == 1.5
        assert ident.bounding_box == NormalizedBox(x_min=0.1, y_min=0.2, x_max=0.4, y_max=0.9)

    @pytest.mark.parametrize(
        "box",
        [
            {"xMin": 0.5, "yMin": 0.2, "xMax": 0.4, "yMax": 0.9},
            {"xMin": 0.1, "yMin": 0.2, "xMax": 1.4, "yMax": 0.9},
            {"xMin": -0.1, "yMin": 0.2, "xMax": 0.4, "yMax": 0.9},
            {"xMin": 0.1, "yMin": 0.3, "xMax": 0.4, "yMax": 0.3},
        ],
    )
    def test_invalid_box_dropped_timestamp_kept(self, box: dict):
        raw = _raw(isPresent=True, reason="Seen.", identifications=[{"timestamp": 4.0, "boundingBox": box}])
        verdict = normalize_verdict(raw, 10.0)

        assert len(verdict.identifications) == 1
        assert verdict.identifications[0].timestamp == 4.0
        assert verdict.identifications[0].bounding_box is None

    def test_negative_and_non_finite_timestamps_dropped(self):
        raw = _raw(
            isPresent=True,
            reason="Seen.",
            identifications=[{"timestamp": -1.0}, {"timestamp": math.inf}, {"timestamp": 0.0}],
        )
        verdict = normalize_verdict(raw, 10.0)
        assert [i.timestamp for i in verdict.identifications] == [0.0]

    def test_timestamp_equal_to_duration_kept(self):
        raw = _raw(isPresent=True, reason="Seen.", identifications=[{"timestamp": 10.0}])
        assert [i.timestamp for i in normalize_verdict(raw, 10.0).identifications] == [10.0]

    def test_sorted_and_deduplicated_first_wins(self):
        raw = _raw(
            isPresent=True,
            reason="Seen.",
            identifications=[
                {"timestamp": 7.0},
                {"timestamp": 2.0, "boundingBox": {"xMin": 0.1, "yMin": 0.1, "xMax": 0.2, "yMax": 0.2}},
                {"timestamp": 2.0},
                {"timestamp": 5.0},
            ],
        )
        verdict = normalize_verdict(raw, 10.0)

        assert [i.timestamp for i in verdict.identifications] == [2.0, 5.0, 7.0]
        assert verdict.identifications[0].bounding_box is not None

    def test_present_without_identifications(self):
        verdict = normalize_verdict(_raw(isPresent=True, reason="Seen."), 10.0)
        assert verdict.is_present is True
        assert verdict.identifications == []

    def test_serializes_camel_case(self):
        raw = _raw(
            isPresent=True,
            reason="Seen.",
            identifications=[{"timestamp": 1.0, "boundingBox": {"xMin": 0.1, "yMin": 0.1, "xMax": 0.2, "yMax": 0.2}}],
        )
        dumped = normalize_verdict(raw, 10.0).model_dump(by_alias=True)

        assert dumped["schemaVersion"] == 2
        assert dumped["isPresent"] is True
        assert dumped["identifications"][0]["boundingBox"]["xMax"] == 0.2


class TestModelVerdictParsing:
    def test_legacy_timestamps_become_identifications(self):
        raw = _raw(isPresent=True, reason="Seen.", timestamps=[1.0, 2.5])
        assert [i.timestamp for i in raw.identifications] == [1.0, 2.5]
        assert all(i.bounding_box is None for i in raw.identifications)

    def test_identifications_win_over_legacy_timestamps(self):
        raw = _raw(isPresent=True, reason="Seen.", timestamps=[9.0], identifications=[{"timestamp": 1.0}])
        assert [i.timestamp for i in raw.identifications] == [1.0]
