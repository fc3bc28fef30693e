"""Lookout schemas."""

from lookout.schemas.analysis import (
    AnalysisRequest,
    AnalysisVerdict,
    Identification,
    NormalizedBox,
)
from lookout.schemas.result import FlowState, ReIdentificationResult
from lookout.schemas.snapshot import Snapshot, SnapshotStatus

__all__ = [
    "AnalysisRequest",
    "AnalysisVerdict",
    "FlowState",
    "Identification",
    "NormalizedBox",
    "ReIdentificationResult",
    "Snapshot",
    "SnapshotStatus",
]
