"""Stage: capture one frame per identification of a positive verdict."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from lookout.schemas.result import FlowState
from lookout.services.pipeline.base import FlowContext
from lookout.utils.data_uri import parse_data_uri
from lookout.utils.types import ProgressCallback

if TYPE_CHECKING:
    from lookout.services.snapshots import SnapshotExtractor

logger = logging.getLogger(__name__)


class SnapshotExtractStage:
    name = "snapshot_extract"
    state = FlowState.AWAITING_EXTRACTION

    def __init__(self, extractor: SnapshotExtractor, *, enabled: bool = True) -> None:
        self._extractor = extractor
        self._enabled = enabled

    def should_run(self, ctx: FlowContext) -> bool:
        return (
            ctx.extract_snapshots
            and ctx.verdict is not None
            and ctx.verdict.is_present
            and len(ctx.verdict.identifications) > 0
        )

    async def execute(
        self,
        ctx: FlowContext,
        on_progress: ProgressCallback | None = None,
    ) -> FlowContext:
        if ctx.verdict is None:
            raise RuntimeError("verdict is None in SnapshotExtractStage")

        identifications = ctx.verdict.identifications
        if not self._enabled:
            logger.info("Snapshot extraction disabled, returning placeholders")
            ctx.snapshots = self._extractor.placeholders(identifications)
            return ctx

        video = parse_data_uri(ctx.request.video_data_uri)
        ctx.snapshots = await self._extractor.extract(
            video, identifications, on_progress=on_progress
        )
        return ctx
