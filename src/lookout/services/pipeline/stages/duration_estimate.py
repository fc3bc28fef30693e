"""Stage: decide the video duration the model is told about."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from lookout.schemas.result import FlowState
from lookout.services.pipeline.base import FlowContext
from lookout.utils.types import ProgressCallback

if TYPE_CHECKING:
    from lookout.services.duration import DurationEstimator

logger = logging.getLogger(__name__)


class DurationEstimateStage:
    name = "duration_estimate"
    state = FlowState.ESTIMATING_DURATION

    def __init__(self, estimator: DurationEstimator) -> None:
        self._estimator = estimator

    def should_run(self, ctx: FlowContext) -> bool:
        return True

    async def execute(
        self,
        ctx: FlowContext,
        on_progress: ProgressCallback | None = None,
    ) -> FlowContext:
        client_duration = ctx.request.video_duration
        if client_duration is not None and client_duration > 0:
            ctx.video_duration = client_duration
            ctx.duration_source = "client"
        else:
            ctx.video_duration = self._estimator.estimate(ctx.request.video_data_uri)
            ctx.duration_source = "estimate"

        logger.info(
            "Using video duration %.2fs (%s)", ctx.video_duration, ctx.duration_source
        )
        return ctx
