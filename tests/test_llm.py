import json

import httpx
import pytest

from lookout.services.llm import GeminiClient, media_part, text_part


def _ok_body(text: str) -> dict:
    return {
        "candidates": [
            {"content": {"role": "model", "parts": [{"text": text}]}, "finishReason": "STOP"}
        ],
        "usageMetadata": {"promptTokenCount": 120, "candidatesTokenCount": 30},
        "modelVersion": "test-model-001",
    }


class TestGeminiClient:
    @pytest.mark.asyncio
    async def test_generate_posts_parts_and_schema(self, test_settings):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_ok_body('{"isPresent": false}'))

        client = GeminiClient(test_settings, transport=httpx.MockTransport(handler))
        parts = [text_part("hello"), media_part("image/png", "AAAA")]
        response = await client.generate(parts, response_schema={"type": "OBJECT"})
        await client.close()

        assert response.content == '{"isPresent": false}'
        assert response.model == "test-model-001"
        assert response.finish_reason == "STOP"
        assert response.prompt_tokens == 120
        assert response.output_tokens == 30

        request = seen[0]
        assert str(request.url) == "http://gemini.test/v1beta/models/test-model:generateContent"
        assert request.headers["x-goog-api-key"] == "test-key"
        body = json.loads(request.content)
        assert body["contents"][0]["parts"][1] == {
            "inline_data": {"mime_type": "image/png", "data": "AAAA"}
        }
        assert body["generationConfig"]["responseMimeType"] == "application/json"
        assert body["generationConfig"]["responseSchema"] == {"type": "OBJECT"}
        assert body["generationConfig"]["temperature"] == 0.1

    @pytest.mark.asyncio
    async def test_joins_text_parts(self, test_settings):
        def handler(request: httpx.Request) -> httpx.Response:
            body = _ok_body("")
            body["candidates"][0]["content"]["parts"] = [{"text": '{"a":'}, {"text": " 1}"}]
            return httpx.Response(200, json=body)

        client = GeminiClient(test_settings, transport=httpx.MockTransport(handler))
        response = await client.generate([text_part("hi")])
        await client.close()

        assert response.content == '{"a": 1}'

    @pytest.mark.asyncio
    async def test_no_candidates_gives_empty_content(self, test_settings):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}})

        client = GeminiClient(test_settings, transport=httpx.MockTransport(handler))
        response = await client.generate([text_part("hi")])
        await client.close()

        assert response.content == ""
        assert response.finish_reason is None

    @pytest.mark.asyncio
    async def test_retries_on_server_error(self, test_settings):
        statuses = iter([503, 429, 200])
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            status = next(statuses)
            if status != 200:
                return httpx.Response(status, json={"error": {"message": "busy"}})
            return httpx.Response(200, json=_ok_body("done"))

        client = GeminiClient(test_settings, transport=httpx.MockTransport(handler))
        response = await client.generate([text_part("hi")])
        await client.close()

        assert response.content == "done"
        assert calls == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, test_settings):
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(500, json={"error": {"message": "boom"}})

        client = GeminiClient(test_settings, transport=httpx.MockTransport(handler))
        with pytest.raises(httpx.HTTPStatusError):
            await client.generate([text_part("hi")])
        await client.close()

        assert calls == 1 + test_settings.llm_max_retries

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self, test_settings):
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(400, json={"error": {"message": "bad request"}})

        client = GeminiClient(test_settings, transport=httpx.MockTransport(handler))
        with pytest.raises(httpx.HTTPStatusError):
            await client.generate([text_part("hi")])
        await client.close()

        assert calls == 1

    @pytest.mark.asyncio
    async def test_is_reachable(self, test_settings):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v1beta/models/test-model"
            return httpx.Response(200, json={"name": "models/test-model"})

        client = GeminiClient(test_settings, transport=httpx.MockTransport(handler))
        assert await client.is_reachable() is True
        await client.close()

    @pytest.mark.asyncio
    async def test_unreachable_on_transport_error(self, test_settings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = GeminiClient(test_settings, transport=httpx.MockTransport(handler))
        assert await client.is_reachable() is False
        await client.close()
