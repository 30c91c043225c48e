# ai_router/providers/ollama.py
"""
Ollama provider adapter.

Talks to a local or self-hosted Ollama server over its native HTTP API
(/api/chat, /api/tags) with httpx. No credential is needed.

Streaming
---------
With ``stream: true`` Ollama answers with newline-delimited JSON objects,
each carrying ``message.content``; the last object has ``done: true``.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import AsyncIterator
from typing import Any

import httpx

from .base import BaseProvider
from ..constants import DEFAULT_OLLAMA_MODEL, OLLAMA_BASE_URL
from ..exceptions import BackendError
from ..models import LLMRequest, LLMResponse, StreamChunk, Usage

logger = logging.getLogger(__name__)


class OllamaProvider(BaseProvider):
    """Adapter for the Ollama HTTP API."""

    provider_type = "ollama"
    display_name = "Ollama (Local)"
    default_base_url = OLLAMA_BASE_URL
    default_model = DEFAULT_OLLAMA_MODEL

    def __init__(
        self,
        *args: Any,
        http_client: httpx.AsyncClient | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self._client = http_client
        self._owns_client = http_client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    def _payload(self, request: LLMRequest, stream: bool) -> dict[str, Any]:
        options: dict[str, Any] = {"temperature": self.temperature(request)}
        if request.max_tokens is not None:
            options["num_predict"] = request.max_tokens
        return {
            "model": self.get_model(request),
            "messages": self.build_messages(request),
            "stream": stream,
            "options": options,
        }

    def _error(self, status_code: int, body: str) -> BackendError:
        return BackendError(
            self.provider_id,
            f"Ollama API error: {status_code} - {body}",
            status_code=status_code,
            body=body,
        )

    async def complete(self, request: LLMRequest) -> LLMResponse:
        payload = self._payload(request, stream=False)
        t0 = time.monotonic()
        try:
            response = await self._get_client().post(f"{self.base_url}/api/chat", json=payload)
        except httpx.HTTPError as exc:
            raise BackendError(self.provider_id, f"Ollama request failed: {exc}") from exc

        if not response.is_success:
            raise self._error(response.status_code, response.text)

        data = response.json()
        usage = None
        if data.get("eval_count"):
            usage = Usage(
                prompt_tokens=data.get("prompt_eval_count") or 0,
                completion_tokens=data["eval_count"],
            )
        return LLMResponse(
            content=(data.get("message") or {}).get("content") or "",
            model=data.get("model") or payload["model"],
            provider=self.provider_id,
            usage=usage,
            latency_ms=self.elapsed_ms(t0),
            raw=data,
        )

    async def stream(self, request: LLMRequest) -> AsyncIterator[StreamChunk]:
        payload = self._payload(request, stream=True)
        try:
            async with self._get_client().stream(
                "POST", f"{self.base_url}/api/chat", json=payload
            ) as response:
                if not response.is_success:
                    body = (await response.aread()).decode(errors="replace")
                    raise self._error(response.status_code, body)

                async for line in response.aiter_lines():
                    if not line.strip():
                        continue
                    try:
                        parsed = json.loads(line)
                    except json.JSONDecodeError:
                        logger.debug("Skipping malformed stream line from Ollama: %r", line)
                        continue

                    if parsed.get("done"):
                        yield StreamChunk(content="", done=True)
                        return

                    content = (parsed.get("message") or {}).get("content") or ""
                    if content:
                        yield StreamChunk(content=content, done=False)
        except httpx.HTTPError as exc:
            raise BackendError(self.provider_id, f"Ollama request failed: {exc}") from exc

        yield StreamChunk(content="", done=True)

    async def is_available(self) -> bool:
        try:
            response = await self._get_client().get(f"{self.base_url}/api/tags")
        except Exception:
            return False
        return response.is_success

    async def list_models(self) -> list[str]:
        try:
            response = await self._get_client().get(f"{self.base_url}/api/tags")
        except httpx.HTTPError:
            return []
        if not response.is_success:
            return []
        return [m["name"] for m in response.json().get("models") or []]

    async def close(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
