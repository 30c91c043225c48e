# ai_router/providers/openrouter.py
"""
OpenRouter provider adapter.

OpenRouter serves 100+ models (OpenAI, Anthropic, Google, Meta, ...) behind
an OpenAI-compatible API, so this adapter drives it with the openai SDK
pointed at the OpenRouter base URL.

The "openai", "anthropic" and "gemini" provider types are served by this
same adapter: the registry instantiates it with the alias as provider_id
and the alias's own default model.
"""

from __future__ import annotations

import time
from collections.abc import AsyncIterator, Iterator
from contextlib import contextmanager
from typing import Any, cast

import httpx
import openai

from .base import BaseProvider
from ..constants import (
    DEFAULT_OPENROUTER_MODEL,
    OPENROUTER_BASE_URL,
    OPENROUTER_CURATED_MODELS,
    OPENROUTER_REFERER,
    OPENROUTER_TITLE,
)
from ..exceptions import BackendError
from ..models import LLMRequest, LLMResponse, StreamChunk, Usage


class OpenRouterProvider(BaseProvider):
    """Adapter wrapping openai.AsyncOpenAI against the OpenRouter API."""

    provider_type = "openrouter"
    display_name = "OpenRouter"
    default_base_url = OPENROUTER_BASE_URL
    default_model = DEFAULT_OPENROUTER_MODEL

    def __init__(
        self,
        *args: Any,
        client: Any = None,  # pre-configured AsyncOpenAI
        http_client: httpx.AsyncClient | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self._client = client
        self._http_client = http_client
        self._owns_client = client is None

    def _get_client(self) -> Any:
        if self._client is not None:
            return self._client
        if not self.api_key:
            raise BackendError(self.provider_id, "OpenRouter API key is required")
        self._client = openai.AsyncOpenAI(
            api_key=self.api_key,
            base_url=self.base_url,
            timeout=self.timeout,
            max_retries=0,
            default_headers={"HTTP-Referer": OPENROUTER_REFERER, "X-Title": OPENROUTER_TITLE},
            http_client=self._http_client
            or httpx.AsyncClient(
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20)
            ),
        )
        return self._client

    @contextmanager
    def _translate_errors(self) -> Iterator[None]:
        try:
            yield
        except openai.APIStatusError as exc:
            body = exc.response.text
            raise BackendError(
                self.provider_id,
                f"OpenRouter API error: {exc.status_code} - {body}",
                status_code=exc.status_code,
                body=body,
            ) from exc
        except openai.APIError as exc:
            raise BackendError(self.provider_id, f"OpenRouter request failed: {exc}") from exc

    def _call_kwargs(self, request: LLMRequest) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": self.get_model(request),
            "messages": cast(list, self.build_messages(request)),
            "temperature": self.temperature(request),
        }
        if request.max_tokens is not None:
            kwargs["max_tokens"] = request.max_tokens
        return kwargs

    async def complete(self, request: LLMRequest) -> LLMResponse:
        client = self._get_client()
        kwargs = self._call_kwargs(request)
        t0 = time.monotonic()
        with self._translate_errors():
            response = await client.chat.completions.create(**kwargs)

        content = ""
        if response.choices:
            content = response.choices[0].message.content or ""
        usage = None
        if response.usage is not None:
            usage = Usage(
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
            )
        return LLMResponse(
            content=content,
            model=response.model or kwargs["model"],
            provider=self.provider_id,
            usage=usage,
            latency_ms=self.elapsed_ms(t0),
            raw=response.model_dump(),
        )

    async def stream(self, request: LLMRequest) -> AsyncIterator[StreamChunk]:
        client = self._get_client()
        with self._translate_errors():
            response = await client.chat.completions.create(
                **self._call_kwargs(request), stream=True
            )
            async for chunk in response:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    yield StreamChunk(content=delta, done=False)
        yield StreamChunk(content="", done=True)

    async def is_available(self) -> bool:
        if not self.api_key and self._client is None:
            return False
        try:
            await self._get_client().models.list()
        except Exception:
            return False
        return True

    async def list_models(self) -> list[str]:
        return list(OPENROUTER_CURATED_MODELS)

    async def close(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.close()
            self._client = None
