"""Person re-identification through a multimodal LLM.

The model receives the reference photo and the video inline, and answers
with a JSON verdict constrained by ``VERDICT_RESPONSE_SCHEMA``. This module
only parses that answer; range checks and box validation are done by the
caller (see ``lookout.services.verdict``).
"""

import json
import logging

import httpx
from pydantic import ValidationError

from lookout.config import Settings
from lookout.exceptions import ModelInvocationError
from lookout.schemas.analysis import ModelVerdict
from lookout.services.llm import GeminiClient, media_part, text_part
from lookout.utils.data_uri import split_data_uri
from lookout.utils.llm_parse import extract_json_object

logger = logging.getLogger(__name__)

_BOX_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "xMin": {"type": "NUMBER"},
        "yMin": {"type": "NUMBER"},
        "xMax": {"type": "NUMBER"},
        "yMax": {"type": "NUMBER"},
    },
    "required": ["xMin", "yMin", "xMax", "yMax"],
}

VERDICT_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "isPresent": {"type": "BOOLEAN"},
        "confidence": {"type": "NUMBER"},
        "reason": {"type": "STRING"},
        "identifications": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "timestamp": {"type": "NUMBER"},
                    "boundingBox": _BOX_SCHEMA,
                },
                "required": ["timestamp"],
            },
        },
    },
    "required": ["isPresent", "reason"],
}

_INSTRUCTION = """\
You are an expert system for person re-identification in videos.
Decide whether the person shown in the reference PHOTO appears anywhere in the VIDEO.
Compare appearance, clothing, build and other visual features."""

_OUTPUT_CONTRACT = """\
The video is about {duration:.2f} seconds long.

Respond with a JSON object containing:
1. "isPresent": true if the person is found in the video, otherwise false.
2. "confidence": (optional) your confidence in the determination, between 0.0 and 1.0.
3. "reason": a short justification, e.g. "Person matching the photo's clothing enters \
the frame at ~3s" or "No individual matching the photo was observed."
4. "identifications": only when "isPresent" is true, up to {max_items} distinct moments \
where the person is clearly visible. Each item has "timestamp" (seconds, between 0 and \
{duration:.2f}) and, when you can localise the person, "boundingBox" with "xMin", "yMin", \
"xMax", "yMax" as fractions (0.0-1.0) of the frame width and height. When the person \
is not present return an empty list.

Example (person found):
{{"isPresent": true, "confidence": 0.85, "reason": "Person matching the photo seen near \
the entrance around 5 seconds.", "identifications": [{{"timestamp": 4.8, "boundingBox": \
{{"xMin": 0.42, "yMin": 0.18, "xMax": 0.61, "yMax": 0.95}}}}, {{"timestamp": 5.5}}]}}

Example (person not found):
{{"isPresent": false, "reason": "No individual matching the photo was observed.", \
"identifications": []}}"""


class ReIdentifier:
    """Asks the model whether the photographed person appears in the video."""

    def __init__(self, client: GeminiClient, settings: Settings) -> None:
        self._client = client
        self._max_items = settings.llm_max_identifications

    def build_parts(
        self,
        photo_data_uri: str,
        video_data_uri: str,
        video_duration: float,
    ) -> list[dict]:
        photo_mime, photo_b64 = split_data_uri(photo_data_uri)
        video_mime, video_b64 = split_data_uri(video_data_uri)
        return [
            text_part(_INSTRUCTION),
            text_part("Reference photo:"),
            media_part(photo_mime, photo_b64),
            text_part("Video to analyze:"),
            media_part(video_mime, video_b64),
            text_part(
                _OUTPUT_CONTRACT.format(duration=video_duration, max_items=self._max_items)
            ),
        ]

    async def analyze(
        self,
        photo_data_uri: str,
        video_data_uri: str,
        video_duration: float,
    ) -> ModelVerdict:
        """Return the model's parsed verdict.

        Raises:
            ModelInvocationError: the request failed or the reply was empty or
                did not match the verdict schema.
        """
        parts = self.build_parts(photo_data_uri, video_data_uri, video_duration)

        try:
            response = await self._client.generate(
                parts, response_schema=VERDICT_RESPONSE_SCHEMA
            )
        except httpx.HTTPError as e:
            raise ModelInvocationError(f"Model request failed: {e}") from e
        except ValueError as e:
            raise ModelInvocationError(f"Model response was not valid JSON: {e}") from e

        if not response.content.strip():
            logger.error(
                "LLM returned no output (finish_reason=%s)", response.finish_reason
            )
            raise ModelInvocationError("LLM analysis failed to produce an output.")

        try:
            data = json.loads(extract_json_object(response.content))
            verdict = ModelVerdict.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.error("Unparseable LLM output: %s", response.content[:500])
            raise ModelInvocationError(f"LLM output did not match the verdict schema: {e}") from e

        logger.info(
            "LLM verdict from %s: is_present=%s confidence=%s identifications=%d",
            response.model,
            verdict.is_present,
            verdict.confidence,
            len(verdict.identifications or []),
        )
        return verdict

    async def is_reachable(self) -> bool:
        return await self._client.is_reachable()
