# tests/conftest.py
"""
Shared pytest fixtures and helpers for ai-router tests.
"""

from __future__ import annotations

from typing import Any, AsyncIterator

import pytest

from ai_router.config import RouterConfig
from ai_router.models import LLMRequest, LLMResponse, Message, StreamChunk, Usage
from ai_router.providers.base import BaseProvider
from ai_router.router import RoutingEngine


class MockProvider(BaseProvider):
    """In-memory provider adapter for testing."""

    provider_type = "mock"
    display_name = "Mock"
    default_model = "mock-model"

    def __init__(
        self,
        provider_id: str,
        should_fail: bool = False,
        error: Exception | None = None,
        chunks: list[str] | None = None,
        stream_error_after: int | None = None,
        available: bool | Exception = True,
        models: list[str] | Exception | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(provider_id=provider_id, **kwargs)
        self.should_fail = should_fail
        self.error = error or RuntimeError(f"Provider {provider_id} failed")
        self.chunks = chunks if chunks is not None else ["Hel", "lo"]
        self.stream_error_after = stream_error_after
        self.available = available
        self.models = models if models is not None else [f"{provider_id}-model"]
        self.calls: list[LLMRequest] = []
        self.closed = False

    async def complete(self, request: LLMRequest) -> LLMResponse:
        self.calls.append(request)
        if self.should_fail:
            raise self.error
        return LLMResponse(
            content=f"Response from {self.provider_id}",
            model=self.get_model(request),
            provider=self.provider_id,
            usage=Usage(prompt_tokens=10, completion_tokens=20),
            latency_ms=1.0,
        )

    async def stream(self, request: LLMRequest) -> AsyncIterator[StreamChunk]:
        self.calls.append(request)
        if self.should_fail:
            raise self.error
        for i, text in enumerate(self.chunks):
            if self.stream_error_after is not None and i >= self.stream_error_after:
                raise self.error
            yield StreamChunk(content=text)
        yield StreamChunk(content="", done=True)

    async def is_available(self) -> bool:
        if isinstance(self.available, Exception):
            raise self.available
        return self.available

    async def list_models(self) -> list[str]:
        if isinstance(self.models, Exception):
            raise self.models
        return list(self.models)

    async def close(self) -> None:
        self.closed = True


def make_engine(
    providers: list[MockProvider],
    default: str | None = None,
    fallback_chain: list[str] | None = None,
    **config_kwargs: Any,
) -> RoutingEngine:
    """Build a RoutingEngine over pre-built mock adapters."""
    config = RouterConfig(
        default_provider=default or providers[0].provider_id,
        fallback_chain=fallback_chain or [],
        **config_kwargs,
    )
    return RoutingEngine(config, adapters=providers)


def make_request(content: str = "Hello", **kwargs: Any) -> LLMRequest:
    return LLMRequest(messages=[Message(role="user", content=content)], **kwargs)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def two_providers() -> tuple[MockProvider, MockProvider]:
    return MockProvider("a"), MockProvider("b")


@pytest.fixture(autouse=True)
def _clean_router_env(monkeypatch):
    """Keep the developer's real credentials out of env-driven tests."""
    for var in (
        "OPENROUTER_API_KEY",
        "OLLAMA_BASE_URL",
        "OLLAMA_ENABLED",
        "AI_ROUTER_LOGGING",
        "AI_ROUTER_TIMEOUT_SECONDS",
        "AI_ROUTER_RATE_LIMIT",
        "AI_ROUTER_RATE_WINDOW_SECONDS",
        "AI_ROUTER_RATE_GLOBAL_LIMIT",
        "AI_ROUTER_LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)
