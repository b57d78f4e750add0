"""
Unit tests for OllamaClient against a mocked Ollama HTTP API.
"""

import json

import httpx
import pytest

from agentic.ollama_client import OllamaClient
from core.exceptions import ErrorCode, ExternalServiceError


def _client(mock_transport_client, handler) -> OllamaClient:
    return OllamaClient(
        base_url="http://ollama.test",
        default_model="llama3.1:8b",
        client=mock_transport_client(handler),
    )


class TestGenerate:

    @pytest.mark.asyncio
    async def test_payload_and_response(self, mock_transport_client):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"response": "battery", "done": True})

        llm = _client(mock_transport_client, handler)
        text = await llm.generate("Classify", options={"temperature": 0.1}, system="sys")

        assert text == "battery"
        assert seen["path"] == "/api/generate"
        assert seen["body"] == {
            "model": "llama3.1:8b",
            "prompt": "Classify",
            "stream": False,
            "options": {"temperature": 0.1},
            "system": "sys",
        }

    @pytest.mark.asyncio
    async def test_explicit_model(self, mock_transport_client):
        seen = {}

        def handler(request):
            seen["model"] = json.loads(request.content)["model"]
            return httpx.Response(200, json={"response": ""})

        await _client(mock_transport_client, handler).generate("p", model="qwen2.5:7b")
        assert seen["model"] == "qwen2.5:7b"

    @pytest.mark.asyncio
    async def test_http_error(self, mock_transport_client):
        llm = _client(mock_transport_client, lambda r: httpx.Response(500))

        with pytest.raises(ExternalServiceError) as exc_info:
            await llm.generate("p")
        assert exc_info.value.code == ErrorCode.OLLAMA_ERROR

    @pytest.mark.asyncio
    async def test_unreachable(self, mock_transport_client):
        def handler(request):
            raise httpx.ConnectError("refused")

        with pytest.raises(ExternalServiceError) as exc_info:
            await _client(mock_transport_client, handler).generate("p")
        assert exc_info.value.code == ErrorCode.OLLAMA_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_timeout(self, mock_transport_client):
        def handler(request):
            raise httpx.ReadTimeout("slow")

        with pytest.raises(ExternalServiceError):
            await _client(mock_transport_client, handler).generate("p")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [["battery"], "battery", 42])
    async def test_non_object_body(self, mock_transport_client, body):
        llm = _client(mock_transport_client, lambda r: httpx.Response(200, json=body))

        with pytest.raises(ExternalServiceError) as exc_info:
            await llm.generate("p")
        assert exc_info.value.code == ErrorCode.OLLAMA_ERROR


class TestChatStream:

    @pytest.mark.asyncio
    async def test_fragments(self, mock_transport_client):
        lines = "\n".join([
            json.dumps({"message": {"role": "assistant", "content": "Hel"}}),
            "not json",
            json.dumps(["stray", "array"]),
            json.dumps({"message": "flat string"}),
            "",
            json.dumps({"response": "lo"}),
            json.dumps({"message": {"content": ""}, "done": True}),
        ])
        llm = _client(mock_transport_client, lambda r: httpx.Response(200, content=lines.encode()))

        fragments = [chunk async for chunk in llm.chat_stream([{"role": "user", "content": "hi"}])]

        assert fragments == ["Hel", "lo"]

    @pytest.mark.asyncio
    async def test_http_error(self, mock_transport_client):
        llm = _client(mock_transport_client, lambda r: httpx.Response(404, json={"error": "model not found"}))

        with pytest.raises(ExternalServiceError):
            async for _ in llm.chat_stream([{"role": "user", "content": "hi"}]):
                pass


class TestModels:

    @pytest.mark.asyncio
    async def test_list_models(self, mock_transport_client):
        llm = _client(
            mock_transport_client,
            lambda r: httpx.Response(200, json={"models": [{"name": "llama3.1:8b"}]})
        )
        assert await llm.list_models() == [{"name": "llama3.1:8b"}]

    @pytest.mark.asyncio
    async def test_is_available(self, mock_transport_client):
        def handler(request):
            raise httpx.ConnectError("refused")

        assert await _client(mock_transport_client, handler).is_available() is False
        assert await _client(mock_transport_client, lambda r: httpx.Response(200, json={})).is_available() is True

    @pytest.mark.asyncio
    async def test_list_models_non_object_body(self, mock_transport_client):
        llm = _client(mock_transport_client, lambda r: httpx.Response(200, json=[{"name": "llama3.1:8b"}]))

        with pytest.raises(ExternalServiceError) as exc_info:
            await llm.list_models()
        assert exc_info.value.code == ErrorCode.OLLAMA_UNAVAILABLE
