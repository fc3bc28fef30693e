"""Sequential stage runner driving the re-identification state machine."""

import logging
import time
from functools import partial

from lookout.services.pipeline.base import (
    FlowContext,
    ProgressCallback,
    Stage,
    StageProgressCallback,
)

logger = logging.getLogger(__name__)


class PipelineOrchestrator:
    """Runs registered stages in order.

    A stage whose ``should_run`` is False is skipped and leaves ``ctx.state``
    untouched; otherwise the flow moves to the stage's state before it
    executes. A stage exception propagates to the caller with ``ctx.state``
    still naming the stage that failed.
    """

    def __init__(self) -> None:
        self._stages: list[Stage] = []

    def register(self, stage: Stage) -> "PipelineOrchestrator":
        self._stages.append(stage)
        return self

    @property
    def stage_names(self) -> list[str]:
        return [s.name for s in self._stages]

    async def run(
        self,
        ctx: FlowContext,
        on_stage_progress: StageProgressCallback | None = None,
    ) -> FlowContext:
        runnable = len(self._stages)
        position = 0

        for stage in self._stages:
            if not stage.should_run(ctx):
                logger.debug("Skipping %s in state %s", stage.name, ctx.state)
                continue

            if ctx.state != stage.state:
                logger.debug("Flow state %s -> %s", ctx.state, stage.state)
            ctx.state = stage.state

            forward: ProgressCallback | None = None
            if on_stage_progress is not None:
                forward = partial(on_stage_progress, stage.name, position, runnable)
            position += 1

            started = time.perf_counter()
            try:
                ctx = await stage.execute(ctx, on_progress=forward)
            except Exception:
                logger.warning("%s raised in state %s", stage.name, ctx.state)
                raise
            finally:
                ctx.processing_times[stage.name] = (time.perf_counter() - started) * 1000

            logger.info(
                "%s done in %.0fms (%d/%d)",
                stage.name, ctx.processing_times[stage.name], position, runnable,
            )

        return ctx
