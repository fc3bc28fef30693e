"""Request and verdict schemas exchanged with clients and the model provider.

Wire names are camelCase; Python attributes are snake_case.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NormalizedBox(CamelModel):
    """Rectangle in fractional image coordinates."""

    x_min: float = Field(ge=0.0, le=1.0)
    y_min: float = Field(ge=0.0, le=1.0)
    x_max: float = Field(ge=0.0, le=1.0)
    y_max: float = Field(ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_order(self) -> "NormalizedBox":
        if self.x_min >= self.x_max or self.y_min >= self.y_max:
            raise ValueError("bounding box requires xMin < xMax and yMin < yMax")
        return self


class Identification(CamelModel):
    timestamp: float = Field(ge=0.0, description="Seconds from the start of the video")
    bounding_box: NormalizedBox | None = None


class AnalysisRequest(CamelModel):
    photo_data_uri: str = Field(min_length=1)
    video_data_uri: str = Field(min_length=1)
    # Authoritative duration from the caller, e.g. a <video> element's metadata.
    video_duration: float | None = Field(default=None, gt=0)


class AnalysisVerdict(CamelModel):
    schema_version: Literal[2] = 2
    is_present: bool
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    reason: str
    identifications: list[Identification] = Field(default_factory=list)


# ---------------------------------------------------------------------- #
#  Model-facing shapes: parsed loosely, cleaned up by services.verdict
# ---------------------------------------------------------------------- #


class RawBox(CamelModel):
    x_min: float
    y_min: float
    x_max: float
    y_max: float

    def to_normalized(self) -> NormalizedBox | None:
        """Return the box if it satisfies the NormalizedBox invariant, else None."""
        try:
            return NormalizedBox(
                x_min=self.x_min, y_min=self.y_min, x_max=self.x_max, y_max=self.y_max
            )
        except ValidationError:
            return None


class RawIdentification(CamelModel):
    timestamp: float
    bounding_box: RawBox | None = None


class ModelVerdict(CamelModel):
    is_present: bool
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    reason: str = ""
    identifications: list[RawIdentification] | None = None

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_timestamps(cls, data: Any) -> Any:
        """Older prompts asked for ``timestamps: [number]`` without boxes."""
        if isinstance(data, dict) and "identifications" not in data and "timestamps" in data:
            data = dict(data)
            timestamps = data.pop("timestamps") or []
            data["identifications"] = [{"timestamp": t} for t in timestamps]
        return data


class HealthResponse(CamelModel):
    llm_configured: bool
    llm_reachable: bool
    ffmpeg_available: bool
