"""Stage: ask the model for a verdict and normalize it."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from lookout.schemas.result import FlowState
from lookout.services.pipeline.base import FlowContext
from lookout.services.verdict import normalize_verdict
from lookout.utils.types import ProgressCallback

if TYPE_CHECKING:
    from lookout.services.reidentifier import ReIdentifier

logger = logging.getLogger(__name__)


class ModelInvokeStage:
    name = "model_invoke"
    state = FlowState.INVOKING_MODEL

    def __init__(self, reidentifier: ReIdentifier) -> None:
        self._reidentifier = reidentifier

    def should_run(self, ctx: FlowContext) -> bool:
        return ctx.video_duration is not None

    async def execute(
        self,
        ctx: FlowContext,
        on_progress: ProgressCallback | None = None,
    ) -> FlowContext:
        if ctx.video_duration is None:
            raise RuntimeError("video_duration is None in ModelInvokeStage")

        raw = await self._reidentifier.analyze(
            ctx.request.photo_data_uri,
            ctx.request.video_data_uri,
            ctx.video_duration,
        )
        ctx.verdict = normalize_verdict(raw, ctx.video_duration)

        dropped = len(raw.identifications or []) - len(ctx.verdict.identifications)
        if ctx.verdict.is_present and dropped > 0:
            logger.info("Normalization removed %d identification(s)", dropped)
        return ctx
