"""Tests for the HTTP LLM client."""

import json

import anyio
import httpx
import pytest

from passage_coder.errors import LLMTransportError, TransportConflictError
from passage_coder.llm import LLMClient


def client_with(handler, settings, provider="openai"):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return LLMClient(provider=provider, settings=settings, http_client=http)


class TestOpenAI:
    """Test the Responses API backend."""

    def test_output_items(self, settings):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            seen["auth"] = request.headers["Authorization"]
            return httpx.Response(
                200,
                json={
                    "output": [
                        {"type": "reasoning", "content": None},
                        {"type": "message", "content": [{"type": "output_text", "text": ' ["slow"] '}]},
                    ]
                },
            )

        result = anyio.run(client_with(handler, settings).complete, "prompt", "gpt-4.1-mini")

        assert result.text == '["slow"]'
        assert seen["url"].endswith("/responses")
        assert seen["body"] == {"model": "gpt-4.1-mini", "input": "prompt", "store": False}
        assert seen["auth"] == "Bearer test-key"

    def test_unaccepted_model_falls_back(self, settings):
        seen = {}

        def handler(request):
            seen["model"] = json.loads(request.content)["model"]
            return httpx.Response(200, json={"output_text": "ok"})

        anyio.run(client_with(handler, settings).complete, "prompt", "not-a-model")

        assert seen["model"] == settings.suggestion_model

    @pytest.mark.parametrize("status", [400, 409])
    def test_conflict_statuses(self, settings, status):
        def handler(request):
            return httpx.Response(status, text="request already in progress")

        with pytest.raises(TransportConflictError):
            anyio.run(client_with(handler, settings).complete, "prompt", "gpt-5.1")

    def test_server_error(self, settings):
        def handler(request):
            return httpx.Response(500, text="oops")

        with pytest.raises(LLMTransportError):
            anyio.run(client_with(handler, settings).complete, "prompt", "gpt-5.1")

    def test_connection_error(self, settings):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(LLMTransportError):
            anyio.run(client_with(handler, settings).complete, "prompt", "gpt-5.1")

    def test_missing_key(self, settings):
        settings = settings.model_copy(update={"openai_api_key": ""})

        with pytest.raises(LLMTransportError, match="key"):
            anyio.run(client_with(lambda r: httpx.Response(200), settings).complete, "p", "gpt-5.1")


class TestOllama:
    """Test the local backend."""

    def test_generate(self, settings):
        def handler(request):
            assert request.url.path == "/api/generate"
            assert json.loads(request.content)["stream"] is False
            return httpx.Response(200, json={"response": " slowness \n"})

        result = anyio.run(client_with(handler, settings, "ollama").complete, "prompt", "llama3")

        assert result.text == "slowness"


class TestExtractJson:
    """Test lenient JSON extraction."""

    def test_fenced(self):
        assert LLMClient.extract_json('```json\n["a"]\n```') == ["a"]

    def test_embedded_object(self):
        assert LLMClient.extract_json('Answer: {"a": 1} done') == {"a": 1}

    def test_garbage(self):
        assert LLMClient.extract_json("no json here") is None
