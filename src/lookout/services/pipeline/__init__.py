"""Re-identification flow facade.

Both entry points run a Stage-based orchestrator and never raise: any
failure below them becomes a negative verdict whose ``reason`` carries the
error text.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from lookout.schemas.analysis import AnalysisRequest, AnalysisVerdict, Identification
from lookout.schemas.result import FlowState, ReIdentificationResult
from lookout.schemas.snapshot import Snapshot
from lookout.services.pipeline.base import FlowContext
from lookout.services.pipeline.orchestrator import PipelineOrchestrator
from lookout.services.pipeline.stages import (
    DurationEstimateStage,
    ModelInvokeStage,
    SnapshotExtractStage,
)
from lookout.utils.data_uri import DataUri
from lookout.utils.types import ProgressCallback

if TYPE_CHECKING:
    from lookout.services.duration import DurationEstimator
    from lookout.services.reidentifier import ReIdentifier
    from lookout.services.snapshots import SnapshotExtractor

logger = logging.getLogger(__name__)

__all__ = [
    "FlowContext",
    "ReIdentificationService",
    "degraded_verdict",
]


def degraded_verdict(error: BaseException) -> AnalysisVerdict:
    message = str(error) or type(error).__name__
    return AnalysisVerdict(
        is_present=False,
        reason=f"An error occurred during processing: {message}",
        identifications=[],
    )


class ReIdentificationService:
    """Facade: verdict-only and verdict+snapshot flows."""

    def __init__(
        self,
        estimator: DurationEstimator,
        reidentifier: ReIdentifier,
        extractor: SnapshotExtractor,
        *,
        snapshots_enabled: bool = True,
    ) -> None:
        self._reidentifier = reidentifier
        self._extractor = extractor
        self._snapshots_enabled = snapshots_enabled

        # duration -> model
        self._verdict_pipeline = (
            PipelineOrchestrator()
            .register(DurationEstimateStage(estimator))
            .register(ModelInvokeStage(reidentifier))
        )
        # duration -> model -> snapshots (skipped for absent verdicts)
        self._full_pipeline = (
            PipelineOrchestrator()
            .register(DurationEstimateStage(estimator))
            .register(ModelInvokeStage(reidentifier))
            .register(SnapshotExtractStage(extractor, enabled=snapshots_enabled))
        )

    @property
    def extractor(self) -> SnapshotExtractor:
        return self._extractor

    async def reidentify_person(self, request: AnalysisRequest) -> AnalysisVerdict:
        """Return the normalized verdict; snapshots are left to the caller."""
        logger.info("reidentify_person started")
        ctx = FlowContext(request=request, extract_snapshots=False)
        try:
            ctx = await self._verdict_pipeline.run(ctx)
            verdict = self._require_verdict(ctx)
        except Exception as e:
            logger.exception("Re-identification flow failed in state %s", ctx.state)
            ctx.state = FlowState.FAILED
            return degraded_verdict(e)

        ctx.state = (
            FlowState.AWAITING_EXTRACTION if verdict.is_present else FlowState.DONE_ABSENT
        )
        logger.info(
            "reidentify_person finished: state=%s is_present=%s identifications=%d",
            ctx.state,
            verdict.is_present,
            len(verdict.identifications),
        )
        return verdict

    async def reidentify_with_snapshots(
        self,
        request: AnalysisRequest,
        on_progress: ProgressCallback | None = None,
        *,
        extract_snapshots: bool = True,
    ) -> ReIdentificationResult:
        """Run the full flow; progress is reported for the snapshot stage only."""
        logger.info("reidentify_with_snapshots started")
        start = time.perf_counter()
        ctx = FlowContext(request=request, extract_snapshots=extract_snapshots)

        def _stage_progress(
            stage_name: str,
            stage_idx: int,
            total_stages: int,
            current: int,
            total: int,
        ) -> None:
            if on_progress and stage_name == SnapshotExtractStage.name:
                on_progress(current, total)

        try:
            ctx = await self._full_pipeline.run(ctx, on_stage_progress=_stage_progress)
            verdict = self._require_verdict(ctx)
        except Exception as e:
            logger.exception("Re-identification flow failed in state %s", ctx.state)
            return ReIdentificationResult(
                **degraded_verdict(e).model_dump(),
                duration_seconds=ctx.video_duration,
                duration_source=ctx.duration_source,
                state=FlowState.FAILED,
            )

        if not verdict.is_present:
            ctx.state = FlowState.DONE_ABSENT
        elif ctx.state == FlowState.AWAITING_EXTRACTION or not verdict.identifications:
            ctx.state = FlowState.DONE_PRESENT
        else:
            # Present, but the caller asked to extract frames itself
            ctx.state = FlowState.AWAITING_EXTRACTION

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "reidentify_with_snapshots finished in %.0fms: state=%s snapshots=%d",
            elapsed_ms,
            ctx.state,
            len(ctx.snapshots),
        )
        return ReIdentificationResult(
            **verdict.model_dump(),
            snapshots=ctx.snapshots,
            duration_seconds=ctx.video_duration,
            duration_source=ctx.duration_source,
            state=ctx.state,
        )

    async def extract_snapshots(
        self,
        video: DataUri,
        identifications: list[Identification],
        on_progress: ProgressCallback | None = None,
    ) -> list[Snapshot]:
        """Extraction tier on its own, for verdicts obtained earlier."""
        if not self._snapshots_enabled:
            return self._extractor.placeholders(identifications)
        return await self._extractor.extract(video, identifications, on_progress=on_progress)

    async def is_model_reachable(self) -> bool:
        return await self._reidentifier.is_reachable()

    @staticmethod
    def _require_verdict(ctx: FlowContext) -> AnalysisVerdict:
        if ctx.verdict is None:
            raise RuntimeError("Flow finished without a verdict")
        return ctx.verdict
