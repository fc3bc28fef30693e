"""Pipeline stages."""

from lookout.services.pipeline.stages.duration_estimate import DurationEstimateStage
from lookout.services.pipeline.stages.model_invoke import ModelInvokeStage
from lookout.services.pipeline.stages.snapshot_extract import SnapshotExtractStage

__all__ = [
    "DurationEstimateStage",
    "ModelInvokeStage",
    "SnapshotExtractStage",
]
