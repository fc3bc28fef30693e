"""Caller-side cleanup of the model's verdict.

The model is asked for in-range timestamps and well-formed boxes but nothing
guarantees it. Before a verdict leaves the flow:

- absent verdicts carry no identifications;
- timestamps outside ``[0, duration]`` are dropped;
- boxes violating the NormalizedBox invariant are dropped, their timestamp kept;
- identifications are sorted by timestamp and deduplicated (first wins).
"""

import logging
import math

from lookout.schemas.analysis import AnalysisVerdict, Identification, ModelVerdict

logger = logging.getLogger(__name__)


def normalize_verdict(raw: ModelVerdict, video_duration: float) -> AnalysisVerdict:
    if not raw.is_present:
        return AnalysisVerdict(
            is_present=False,
            confidence=raw.confidence,
            reason=raw.reason,
            identifications=[],
        )

    kept: list[Identification] = []
    for item in raw.identifications or []:
        t = item.timestamp
        if not math.isfinite(t) or t < 0 or t > video_duration:
            logger.info("Dropping out-of-range timestamp %.2fs (duration %.2fs)", t, video_duration)
            continue
        box = None
        if item.bounding_box is not None:
            box = item.bounding_box.to_normalized()
            if box is None:
                logger.info("Dropping invalid bounding box at %.2fs: %s", t, item.bounding_box)
        kept.append(Identification(timestamp=t, bounding_box=box))

    kept.sort(key=lambda i: i.timestamp)
    deduped: list[Identification] = []
    for ident in kept:
        if deduped and deduped[-1].timestamp == ident.timestamp:
            continue
        deduped.append(ident)

    return AnalysisVerdict(
        is_present=True,
        confidence=raw.confidence,
        reason=raw.reason,
        identifications=deduped,
    )
