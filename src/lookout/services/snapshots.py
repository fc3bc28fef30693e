"""Snapshot extraction: one still frame per identification.

The video is spooled to a single temporary file and frames are captured
strictly one after another, so snapshot order always matches the order of
the identifications. A frame that cannot be captured becomes a ``failed``
snapshot carrying the placeholder image; the batch itself never fails.
"""

from __future__ import annotations

import asyncio
import logging
import mimetypes
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from lookout.exceptions import DeadlineExceeded, FrameExtractionError
from lookout.schemas.analysis import Identification
from lookout.schemas.snapshot import Snapshot, SnapshotStatus
from lookout.services.frame_grabber import Codec, FfmpegFrameGrabber, FrameGrabber, VideoMetadata
from lookout.utils.data_uri import DataUri, build_data_uri
from lookout.utils.deadline import wait_with_deadline
from lookout.utils.types import ProgressCallback

if TYPE_CHECKING:
    from lookout.config import Settings

logger = logging.getLogger(__name__)

# Compressed first, lossless when the compressed encode comes back empty
_ENCODINGS: tuple[tuple[Codec, str], ...] = (
    ("mjpeg", "image/jpeg"),
    ("png", "image/png"),
)

# Seeking exactly to the end yields no frame; back off slightly
_END_MARGIN_S = 0.05


class SnapshotExtractor:
    """Captures frames for a list of identifications from one video."""

    def __init__(
        self,
        grabber: FrameGrabber,
        *,
        placeholder_data_uri: str,
        metadata_timeout: float = 4.0,
        seek_timeout: float = 2.5,
        retry_delay: float = 0.12,
    ) -> None:
        self._grabber = grabber
        self._placeholder = placeholder_data_uri
        self._metadata_timeout = metadata_timeout
        self._seek_timeout = seek_timeout
        self._retry_delay = retry_delay

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        grabber: FrameGrabber | None = None,
    ) -> SnapshotExtractor:
        return cls(
            grabber or FfmpegFrameGrabber(settings),
            placeholder_data_uri=settings.snapshot_placeholder_data_uri,
            metadata_timeout=settings.snapshot_metadata_timeout_s,
            seek_timeout=settings.snapshot_seek_timeout_s,
            retry_delay=settings.snapshot_retry_delay_s,
        )

    @property
    def grabber(self) -> FrameGrabber:
        return self._grabber

    def placeholders(self, identifications: list[Identification]) -> list[Snapshot]:
        """Snapshots for when extraction is switched off."""
        return [
            Snapshot(
                timestamp=ident.timestamp,
                data_uri=self._placeholder,
                status=SnapshotStatus.PLACEHOLDER,
                bounding_box=ident.bounding_box,
            )
            for ident in identifications
        ]

    async def extract(
        self,
        video: DataUri,
        identifications: list[Identification],
        on_progress: ProgressCallback | None = None,
    ) -> list[Snapshot]:
        if not identifications:
            return []

        total = len(identifications)
        suffix = mimetypes.guess_extension(video.mime_type) or ".bin"
        snapshots: list[Snapshot] = []

        with tempfile.TemporaryDirectory(prefix="lookout-") as tmp:
            video_path = Path(tmp) / f"source{suffix}"
            await asyncio.to_thread(video_path.write_bytes, video.data)

            metadata = await self._wait_for_metadata(video_path)
            duration = metadata.duration if metadata else None

            for i, ident in enumerate(identifications):
                snapshots.append(await self._snapshot(video_path, ident, duration))
                if on_progress:
                    on_progress(i + 1, total)

        extracted = sum(1 for s in snapshots if s.status == SnapshotStatus.EXTRACTED)
        logger.info("Snapshot extraction: %d/%d frames extracted", extracted, total)
        return snapshots

    async def _wait_for_metadata(self, video_path: Path) -> VideoMetadata | None:
        try:
            metadata = await wait_with_deadline(
                self._grabber.probe(video_path),
                self._metadata_timeout,
                what="video metadata probe",
            )
        except (DeadlineExceeded, FrameExtractionError) as e:
            logger.warning("Video metadata unavailable, continuing best-effort: %s", e)
            return None
        except Exception:
            logger.exception("Video metadata probe crashed, continuing best-effort")
            return None
        logger.debug(
            "Video metadata: %sx%s, %ss", metadata.width, metadata.height, metadata.duration
        )
        return metadata

    async def _snapshot(
        self,
        video_path: Path,
        ident: Identification,
        duration: float | None,
    ) -> Snapshot:
        seek_to = ident.timestamp
        if duration is not None and seek_to >= duration:
            seek_to = max(0.0, duration - _END_MARGIN_S)

        try:
            data, mime_type = await self._capture(video_path, seek_to)
        except (DeadlineExceeded, FrameExtractionError) as e:
            logger.warning("Snapshot at %.2fs failed: %s", ident.timestamp, e)
            return self._failed(ident)
        except Exception:
            logger.exception("Snapshot at %.2fs crashed", ident.timestamp)
            return self._failed(ident)

        return Snapshot(
            timestamp=ident.timestamp,
            data_uri=build_data_uri(data, mime_type),
            status=SnapshotStatus.EXTRACTED,
            bounding_box=ident.bounding_box,
        )

    def _failed(self, ident: Identification) -> Snapshot:
        return Snapshot(
            timestamp=ident.timestamp,
            data_uri=self._placeholder,
            status=SnapshotStatus.FAILED,
            bounding_box=ident.bounding_box,
        )

    async def _capture(self, video_path: Path, timestamp: float) -> tuple[bytes, str]:
        """Seek and encode one frame, retrying once after a short delay.

        Raises:
            DeadlineExceeded: a seek did not finish within the seek timeout.
            FrameExtractionError: decoding failed or no frame was produced.
        """
        for attempt in (1, 2):
            for codec, mime_type in _ENCODINGS:
                data = await wait_with_deadline(
                    self._grabber.grab(video_path, timestamp, codec),
                    self._seek_timeout,
                    what=f"seek to {timestamp:.2f}s",
                )
                if data:
                    return data, mime_type
            if attempt == 1:
                logger.debug("No frame at %.2fs yet, retrying once", timestamp)
                await asyncio.sleep(self._retry_delay)

        raise FrameExtractionError(f"No frame decoded at {timestamp:.2f}s")
