import asyncio
import base64
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from lookout.config import Settings
from lookout.services.frame_grabber import Codec, VideoMetadata
from lookout.services.pipeline import ReIdentificationService
from lookout.utils.media import MediaPolicy

PLACEHOLDER = "data:image/png;base64,UExBQ0VIT0xERVI="

TINY_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwAD+wGmE3+gYwAAAABJRU5ErkJggg=="
)


def data_uri(data: bytes, mime: str) -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


PHOTO_URI = data_uri(TINY_PNG, "image/png")
VIDEO_URI = data_uri(b"\x00\x00\x00\x18ftypmp42fake-video-bytes", "video/mp4")


class FakeGrabber:
    """Scripted FrameGrabber: ``frames[(timestamp, codec)]`` is bytes or an exception."""

    def __init__(
        self,
        frames: dict[tuple[float, str], object] | None = None,
        default: object = b"\xff\xd8jpeg-bytes",
        metadata: VideoMetadata | Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.frames = frames or {}
        self.default = default
        self.metadata = metadata if metadata is not None else VideoMetadata(640, 360, 10.0)
        self.delay = delay
        self.calls: list[tuple[float, str]] = []
        self.paths: list[Path] = []

    async def probe(self, video_path: Path) -> VideoMetadata:
        self.paths.append(video_path)
        if isinstance(self.metadata, Exception):
            raise self.metadata
        return self.metadata

    async def grab(self, video_path: Path, timestamp: float, codec: Codec) -> bytes:
        self.calls.append((timestamp, codec))
        self.paths.append(video_path)
        if self.delay:
            await asyncio.sleep(self.delay)
        result = self.frames.get((timestamp, codec), self.default)
        if isinstance(result, Exception):
            raise result
        return result  # type: ignore[return-value]


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        llm_api_key="test-key",
        llm_base_url="http://gemini.test/v1beta",
        llm_model_name="test-model",
        llm_retry_delay=0.0,
        snapshot_placeholder_data_uri=PLACEHOLDER,
        snapshot_seek_timeout_s=0.2,
        snapshot_metadata_timeout_s=0.2,
        snapshot_retry_delay_s=0.0,
    )


@pytest.fixture
def mock_service() -> MagicMock:
    """Create a mocked ReIdentificationService for router tests."""
    return MagicMock(spec=ReIdentificationService)


@pytest.fixture
def test_app(mock_service: MagicMock, test_settings: Settings):
    """Create a test FastAPI app with mocked dependencies."""
    from fastapi import FastAPI
    from lookout.routers.reidentify import router as reidentify_router

    app = FastAPI()
    app.state.reidentification = mock_service
    app.state.media_policy = MediaPolicy(test_settings)
    app.include_router(reidentify_router)
    return app


@pytest.fixture
def client(test_app) -> TestClient:
    return TestClient(test_app)
