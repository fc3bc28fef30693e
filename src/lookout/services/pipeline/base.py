"""Pipeline core abstractions: FlowContext and Stage protocol."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from lookout.schemas.analysis import AnalysisRequest, AnalysisVerdict
from lookout.schemas.result import DurationSource, FlowState
from lookout.schemas.snapshot import Snapshot
from lookout.utils.types import ProgressCallback

logger = logging.getLogger(__name__)

# (stage_name, stage_index, total_stages, current, total)
StageProgressCallback = Callable[[str, int, int, int, int], None]


@dataclass
class FlowContext:
    """Shared data bus passed through all stages."""

    # Input
    request: AnalysisRequest
    extract_snapshots: bool = True

    state: FlowState = FlowState.ESTIMATING_DURATION

    # Duration estimation output
    video_duration: float | None = None
    duration_source: DurationSource | None = None

    # Model output, already normalized
    verdict: AnalysisVerdict | None = None

    # Extraction output
    snapshots: list[Snapshot] = field(default_factory=list)

    # Timing
    processing_times: dict[str, float] = field(default_factory=dict)


@runtime_checkable
class Stage(Protocol):
    """Protocol that all pipeline stages must implement."""

    name: str
    state: FlowState

    async def execute(
        self,
        ctx: FlowContext,
        on_progress: ProgressCallback | None = None,
    ) -> FlowContext: ...

    def should_run(self, ctx: FlowContext) -> bool: ...
