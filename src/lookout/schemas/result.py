from enum import StrEnum
from typing import Literal

from pydantic import Field

from lookout.schemas.analysis import AnalysisVerdict
from lookout.schemas.snapshot import Snapshot


class FlowState(StrEnum):
    ESTIMATING_DURATION = "estimating_duration"
    INVOKING_MODEL = "invoking_model"
    AWAITING_EXTRACTION = "awaiting_extraction"
    DONE_ABSENT = "done_absent"
    DONE_PRESENT = "done_present"
    FAILED = "failed"


DurationSource = Literal["client", "estimate"]


class ReIdentificationResult(AnalysisVerdict):
    """Verdict plus the snapshots extracted for its identifications."""

    snapshots: list[Snapshot] = Field(default_factory=list)
    duration_seconds: float | None = None
    duration_source: DurationSource | None = None
    state: FlowState = FlowState.DONE_ABSENT
