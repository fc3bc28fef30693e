from enum import StrEnum

from pydantic import ConfigDict, Field

from lookout.schemas.analysis import CamelModel, Identification, NormalizedBox


class SnapshotStatus(StrEnum):
    EXTRACTED = "extracted"
    FAILED = "failed"
    PLACEHOLDER = "placeholder"


class Snapshot(CamelModel):
    """A still frame taken from the video at an identification's timestamp."""

    model_config = ConfigDict(frozen=True)

    timestamp: float
    data_uri: str
    status: SnapshotStatus
    bounding_box: NormalizedBox | None = None


class SnapshotRequest(CamelModel):
    video_data_uri: str = Field(min_length=1)
    identifications: list[Identification] = Field(default_factory=list)


class SnapshotResponse(CamelModel):
    snapshots: list[Snapshot]
