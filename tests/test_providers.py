# tests/test_providers.py
"""
Adapter tests. Backends are faked with httpx.MockTransport, so the real
wire formats (Ollama NDJSON, OpenAI-compatible JSON and SSE) are exercised
without network access.
"""

from __future__ import annotations

import json

import httpx
import pytest

from ai_router.exceptions import BackendError, ConfigurationError
from ai_router.models import LLMRequest, Message, ProviderConfig, TaskType
from ai_router.providers import (
    OllamaProvider,
    OpenRouterProvider,
    ProviderRegistry,
    create_provider,
    supported_provider_types,
)


def make_request(**kwargs) -> LLMRequest:
    return LLMRequest(messages=[Message(role="user", content="Hello")], **kwargs)


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


# ---------------------------------------------------------------------------
# Ollama
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
class TestOllama:
    async def test_complete(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "model": "llama3.2",
                    "message": {"role": "assistant", "content": "Hi there"},
                    "done": True,
                    "prompt_eval_count": 5,
                    "eval_count": 7,
                },
            )

        provider = OllamaProvider(http_client=mock_client(handler))
        response = await provider.complete(make_request(system_prompt="be kind", max_tokens=50))

        assert seen["url"] == "http://localhost:11434/api/chat"
        assert seen["body"]["stream"] is False
        assert seen["body"]["options"] == {"temperature": 0.7, "num_predict": 50}
        assert seen["body"]["messages"][0] == {"role": "system", "content": "be kind"}
        assert response.content == "Hi there"
        assert response.provider == "ollama"
        assert response.usage.total_tokens == 12

    async def test_http_error_becomes_backend_error(self):
        provider = OllamaProvider(
            http_client=mock_client(lambda r: httpx.Response(500, text="model not found"))
        )
        with pytest.raises(BackendError) as exc_info:
            await provider.complete(make_request())
        assert exc_info.value.status_code == 500
        assert str(exc_info.value) == "Ollama API error: 500 - model not found"

    async def test_transport_error_becomes_backend_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        provider = OllamaProvider(http_client=mock_client(handler))
        with pytest.raises(BackendError) as exc_info:
            await provider.complete(make_request())
        assert exc_info.value.status_code is None

    async def test_stream_ndjson(self):
        lines = [
            {"message": {"content": "Hel"}, "done": False},
            "not json",
            {"message": {"content": "lo"}, "done": False},
            {"message": {"content": ""}, "done": True},
        ]
        body = "\n".join(l if isinstance(l, str) else json.dumps(l) for l in lines)
        provider = OllamaProvider(
            http_client=mock_client(lambda r: httpx.Response(200, text=body))
        )
        chunks = [c async for c in provider.stream(make_request())]
        assert [(c.content, c.done) for c in chunks] == [("Hel", False), ("lo", False), ("", True)]

    async def test_stream_error_status(self):
        provider = OllamaProvider(
            http_client=mock_client(lambda r: httpx.Response(503, text="busy"))
        )
        with pytest.raises(BackendError, match="503 - busy"):
            async for _ in provider.stream(make_request()):
                pass

    async def test_list_models_and_availability(self):
        def handler(request):
            assert request.url.path == "/api/tags"
            return httpx.Response(200, json={"models": [{"name": "llama3.2"}, {"name": "qwen2"}]})

        provider = OllamaProvider(http_client=mock_client(handler))
        assert await provider.is_available() is True
        assert await provider.list_models() == ["llama3.2", "qwen2"]

    async def test_unreachable_is_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("down", request=request)

        provider = OllamaProvider(http_client=mock_client(handler))
        assert await provider.is_available() is False
        assert await provider.list_models() == []

    async def test_http_client_created_on_first_use(self):
        provider = OllamaProvider()
        assert provider._client is None
        await provider.close()
        assert provider._client is None

    async def test_task_model_override(self):
        seen = {}

        def handler(request):
            seen["model"] = json.loads(request.content)["model"]
            return httpx.Response(200, json={"message": {"content": "x"}})

        provider = OllamaProvider(
            task_models={"code_generation": "qwen2.5-coder"}, http_client=mock_client(handler)
        )
        await provider.complete(make_request(task_type=TaskType.CODE_GENERATION))
        assert seen["model"] == "qwen2.5-coder"


# ---------------------------------------------------------------------------
# OpenRouter
# ---------------------------------------------------------------------------


def completion_json(content: str = "Hi", model: str = "openai/gpt-4o-mini") -> dict:
    return {
        "id": "gen-1",
        "object": "chat.completion",
        "created": 0,
        "model": model,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 3, "completion_tokens": 4, "total_tokens": 7},
    }


def sse_chunk(content: str) -> str:
    payload = {
        "id": "gen-1",
        "object": "chat.completion.chunk",
        "created": 0,
        "model": "openai/gpt-4o-mini",
        "choices": [{"index": 0, "delta": {"content": content}, "finish_reason": None}],
    }
    return f"data: {json.dumps(payload)}\n\n"


@pytest.mark.asyncio
class TestOpenRouter:
    async def test_complete(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["referer"] = request.headers.get("HTTP-Referer")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=completion_json("Hello back"))

        provider = OpenRouterProvider(api_key="sk-or", http_client=mock_client(handler))
        response = await provider.complete(make_request(model="anthropic/claude-3-haiku"))

        assert seen["url"] == "https://openrouter.ai/api/v1/chat/completions"
        assert seen["auth"] == "Bearer sk-or"
        assert seen["referer"]
        assert seen["body"]["model"] == "anthropic/claude-3-haiku"
        assert response.content == "Hello back"
        assert response.provider == "openrouter"
        assert response.usage.total_tokens == 7

    async def test_alias_reports_its_own_id(self):
        provider = create_provider(ProviderConfig(type="anthropic", api_key="k"))
        provider._http_client = mock_client(lambda r: httpx.Response(200, json=completion_json()))
        response = await provider.complete(make_request())
        assert response.provider == "anthropic"
        assert "anthropic" in provider.name

    async def test_missing_api_key(self):
        provider = OpenRouterProvider()
        with pytest.raises(BackendError, match="API key is required"):
            await provider.complete(make_request())
        assert await provider.is_available() is False

    async def test_status_error_becomes_backend_error(self):
        provider = OpenRouterProvider(
            api_key="k",
            http_client=mock_client(
                lambda r: httpx.Response(402, json={"error": {"message": "no credits"}})
            ),
        )
        with pytest.raises(BackendError) as exc_info:
            await provider.complete(make_request())
        assert exc_info.value.status_code == 402
        assert "no credits" in exc_info.value.body

    async def test_stream_sse(self):
        body = sse_chunk("Hel") + sse_chunk("lo") + "data: [DONE]\n\n"
        provider = OpenRouterProvider(
            api_key="k",
            http_client=mock_client(
                lambda r: httpx.Response(
                    200, text=body, headers={"content-type": "text/event-stream"}
                )
            ),
        )
        chunks = [c async for c in provider.stream(make_request())]
        assert [(c.content, c.done) for c in chunks] == [("Hel", False), ("lo", False), ("", True)]

    async def test_list_models_is_curated(self):
        models = await OpenRouterProvider(api_key="k").list_models()
        assert "openai/gpt-4o" in models
        assert "anthropic/claude-3.5-sonnet" in models


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestRegistry:
    def test_supported_types(self):
        assert set(supported_provider_types()) == {
            "openrouter", "ollama", "openai", "anthropic", "gemini",
        }

    def test_unknown_type(self):
        with pytest.raises(ConfigurationError, match="Unknown provider type 'mistral'"):
            create_provider(ProviderConfig(type="mistral"))

    def test_disabled_configs_skipped(self):
        registry = ProviderRegistry.from_configs(
            [
                ProviderConfig(type="openrouter", api_key="k"),
                ProviderConfig(type="ollama", enabled=False),
            ]
        )
        assert registry.names() == ["openrouter"]
        assert "ollama" not in registry
        assert len(registry) == 1

    def test_config_fields_reach_adapter(self):
        provider = create_provider(
            ProviderConfig(type="ollama", base_url="http://gpu:11434/", default_model="qwen2"),
            timeout=5,
        )
        assert isinstance(provider, OllamaProvider)
        assert provider.base_url == "http://gpu:11434"
        assert provider.model == "qwen2"
        assert provider.timeout == 5
