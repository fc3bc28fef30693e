"""Gemini generateContent client using httpx.

Provides async multimodal generation with inline media parts and
schema-constrained JSON output.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from lookout.config import Settings

logger = logging.getLogger(__name__)


def text_part(text: str) -> dict[str, Any]:
    return {"text": text}


def media_part(mime_type: str, b64_data: str) -> dict[str, Any]:
    return {"inline_data": {"mime_type": mime_type, "data": b64_data}}


@dataclass(frozen=True)
class GenerationResponse:
    content: str
    model: str
    finish_reason: str | None = None
    prompt_tokens: int | None = None
    output_tokens: int | None = None


def _is_retryable(exc: Exception) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return isinstance(exc, (httpx.ReadTimeout, httpx.ConnectError))


class GeminiClient:
    """Async client for the Gemini ``models/{model}:generateContent`` endpoint."""

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = settings.llm_base_url.rstrip("/")
        self._api_key = settings.llm_api_key
        self._model = settings.llm_model_name
        self._temperature = settings.llm_temperature
        self._max_retries = settings.llm_max_retries
        self._retry_delay = settings.llm_retry_delay
        self._semaphore = asyncio.Semaphore(settings.llm_max_concurrent)
        # Uploading a video inline makes writes slow too
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(
                connect=30.0,
                read=settings.llm_timeout,
                write=settings.llm_timeout,
                pool=30.0,
            ),
            headers={"x-goog-api-key": self._api_key},
            transport=transport,
        )

    @property
    def model(self) -> str:
        return self._model

    async def generate(
        self,
        parts: list[dict[str, Any]],
        *,
        response_schema: dict[str, Any] | None = None,
        temperature: float | None = None,
    ) -> GenerationResponse:
        """Send a generateContent request with retries.

        Network errors, 429 and 5xx responses are retried with exponential
        backoff; other HTTP errors are raised immediately.
        """
        last_error: Exception | None = None
        max_attempts = 1 + self._max_retries

        for attempt in range(1, max_attempts + 1):
            try:
                async with self._semaphore:
                    return await self._do_generate(
                        parts,
                        response_schema=response_schema,
                        temperature=temperature,
                    )
            except (httpx.ReadTimeout, httpx.ConnectError, httpx.HTTPStatusError) as e:
                last_error = e
                if attempt >= max_attempts or not _is_retryable(e):
                    raise
                delay = self._retry_delay * (2 ** (attempt - 1))
                logger.warning(
                    "LLM attempt %d/%d failed, retry in %.1fs: %s",
                    attempt,
                    max_attempts,
                    delay,
                    e,
                )
                await asyncio.sleep(delay)

        raise last_error  # type: ignore[misc]

    async def _do_generate(
        self,
        parts: list[dict[str, Any]],
        *,
        response_schema: dict[str, Any] | None = None,
        temperature: float | None = None,
    ) -> GenerationResponse:
        """Execute a single generateContent request (no retry logic)."""
        generation_config: dict[str, Any] = {
            "temperature": temperature if temperature is not None else self._temperature,
        }
        if response_schema is not None:
            generation_config["responseMimeType"] = "application/json"
            generation_config["responseSchema"] = response_schema

        payload = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": generation_config,
        }

        response = await self._client.post(
            f"{self._base_url}/models/{self._model}:generateContent",
            json=payload,
        )
        response.raise_for_status()
        body = response.json()

        candidates = body.get("candidates") or []
        content = ""
        finish_reason = None
        if candidates:
            first = candidates[0]
            finish_reason = first.get("finishReason")
            content = "".join(
                p.get("text", "") for p in (first.get("content") or {}).get("parts", [])
            )
        else:
            logger.warning(
                "Gemini returned no candidates (promptFeedback=%s)",
                body.get("promptFeedback"),
            )

        usage = body.get("usageMetadata") or {}
        logger.debug("Gemini response (first 200 chars): %s", content[:200])

        return GenerationResponse(
            content=content,
            model=body.get("modelVersion", self._model),
            finish_reason=finish_reason,
            prompt_tokens=usage.get("promptTokenCount"),
            output_tokens=usage.get("candidatesTokenCount"),
        )

    async def is_reachable(self) -> bool:
        """Check that the model endpoint answers for the configured key."""
        try:
            response = await self._client.get(
                f"{self._base_url}/models/{self._model}",
                timeout=httpx.Timeout(5.0),
            )
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    async def close(self) -> None:
        await self._client.aclose()
