"""Single-frame capture from a video file via ffmpeg/ffprobe subprocesses."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Protocol, runtime_checkable

from lookout.config import Settings
from lookout.exceptions import FrameExtractionError

logger = logging.getLogger(__name__)

Codec = Literal["mjpeg", "png"]


@dataclass(frozen=True)
class VideoMetadata:
    width: int | None = None
    height: int | None = None
    duration: float | None = None


@runtime_checkable
class FrameGrabber(Protocol):
    """Seeks a video file and returns one encoded frame."""

    async def probe(self, video_path: Path) -> VideoMetadata: ...

    async def grab(self, video_path: Path, timestamp: float, codec: Codec) -> bytes: ...


class FfmpegFrameGrabber:
    def __init__(self, settings: Settings) -> None:
        self._ffmpeg = settings.ffmpeg_bin
        self._ffprobe = settings.ffprobe_bin
        self._jpeg_quality = settings.snapshot_jpeg_quality

    def is_available(self) -> bool:
        return shutil.which(self._ffmpeg) is not None and shutil.which(self._ffprobe) is not None

    async def probe(self, video_path: Path) -> VideoMetadata:
        cmd = [
            self._ffprobe,
            "-v", "error",
            "-select_streams", "v:0",
            "-show_entries", "stream=width,height:format=duration",
            "-of", "json",
            str(video_path),
        ]
        returncode, stdout, stderr = await self._run(cmd)
        if returncode != 0:
            raise FrameExtractionError(
                f"ffprobe failed (code {returncode}): {stderr.decode(errors='replace')}"
            )
        try:
            info = json.loads(stdout or b"{}")
        except json.JSONDecodeError as e:
            raise FrameExtractionError(f"Could not parse ffprobe output: {e}") from e

        streams = info.get("streams") or [{}]
        raw_duration = (info.get("format") or {}).get("duration")
        try:
            duration = float(raw_duration) if raw_duration not in (None, "N/A") else None
        except (TypeError, ValueError) as e:
            raise FrameExtractionError(f"Unexpected ffprobe duration {raw_duration!r}") from e
        return VideoMetadata(
            width=streams[0].get("width"),
            height=streams[0].get("height"),
            duration=duration,
        )

    async def grab(self, video_path: Path, timestamp: float, codec: Codec) -> bytes:
        """Decode the frame at ``timestamp`` at native resolution, audio disabled.

        Returns an empty bytes object when ffmpeg succeeds without producing a
        frame (e.g. seeking past the last keyframe).
        """
        cmd = [
            self._ffmpeg,
            "-v", "error",
            "-ss", f"{timestamp:.3f}",
            "-i", str(video_path),
            "-an",
            "-frames:v", "1",
            "-f", "image2pipe",
            "-c:v", codec,
        ]
        if codec == "mjpeg":
            cmd += ["-q:v", str(self._jpeg_quality)]
        cmd.append("pipe:1")

        returncode, stdout, stderr = await self._run(cmd)
        if returncode != 0:
            raise FrameExtractionError(
                f"ffmpeg frame capture at {timestamp:.2f}s failed (code {returncode}): "
                f"{stderr.decode(errors='replace')}"
            )
        return stdout

    @staticmethod
    async def _run(cmd: list[str]) -> tuple[int, bytes, bytes]:
        """Run a subprocess; kill it if the awaiting task is cancelled."""
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise FrameExtractionError(
                f"{cmd[0]} not found. Please install ffmpeg and ensure it is on PATH."
            ) from e
        except OSError as e:
            raise FrameExtractionError(f"Could not start {cmd[0]}: {e}") from e

        try:
            stdout, stderr = await proc.communicate()
        except asyncio.CancelledError:
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()
            raise
        except OSError as e:
            raise FrameExtractionError(f"{cmd[0]} I/O failed: {e}") from e
        return proc.returncode or 0, stdout, stderr
