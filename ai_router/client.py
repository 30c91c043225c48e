# ai_router/client.py
"""
AIRouterClient — async SDK for applications that call the gateway over HTTP.

    async with AIRouterClient("http://localhost:5181") as ai:
        providers = await ai.list_providers()
        summary = await ai.summarize(text)
        answer = await ai.complete(
            [{"role": "user", "content": "Hello!"}],
            model="anthropic/claude-3.5-sonnet",
        )

Every method unwraps the ``{"success": ..., "data": ...}`` envelope and raises
GatewayError when the gateway reports a failure.
"""

from __future__ import annotations

from typing import Any

import httpx

from .constants import DEFAULT_LOG_LIMIT, DEFAULT_TIMEOUT_SECONDS
from .exceptions import GatewayError
from .models import TaskType


class AIRouterClient:
    """
    Parameters
    ----------
    base_url:
        Gateway root URL, e.g. "http://localhost:5181".
    timeout:
        Per-request timeout in seconds.
    client_id:
        Sent as X-Client-ID so the gateway's rate limiter can tell callers apart.
    client:
        Pre-configured httpx.AsyncClient (tests, custom transports).
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client_id: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._headers = {"X-Client-ID": client_id} if client_id else {}
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        return await self._client.request(
            method, f"{self.base_url}{path}", headers=self._headers, **kwargs
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._send(method, path, **kwargs)
        return response.json()

    async def _unwrap(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._send(method, path, **kwargs)
        payload = response.json()
        if not payload.get("success"):
            raise GatewayError(payload.get("error") or "Unknown gateway error", response.status_code)
        return payload.get("data")

    # -------------------------------------------------------------------------
    # Health & status
    # -------------------------------------------------------------------------

    async def health(self) -> dict[str, Any]:
        return await self._request("GET", "/health")

    async def status(self) -> dict[str, Any]:
        return await self._request("GET", "/status")

    # -------------------------------------------------------------------------
    # Provider discovery
    # -------------------------------------------------------------------------

    async def list_providers(self) -> list[dict[str, Any]]:
        return await self._unwrap("GET", "/providers")

    async def list_models(self, provider: str) -> dict[str, Any]:
        return await self._unwrap("GET", f"/providers/{provider}/models")

    async def provider_status(self, provider: str) -> dict[str, Any]:
        return await self._unwrap("GET", f"/providers/{provider}/status")

    # -------------------------------------------------------------------------
    # Config
    # -------------------------------------------------------------------------

    async def get_config(self) -> dict[str, Any]:
        return await self._unwrap("GET", "/config")

    async def update_config(self, updates: dict[str, Any]) -> dict[str, Any]:
        return await self._unwrap("POST", "/config", json=updates)

    async def configure(self, router_config: dict[str, Any]) -> None:
        """Replace the gateway's RouterConfig (providers, default, fallback chain)."""
        await self._unwrap("POST", "/configure", json=router_config)

    # -------------------------------------------------------------------------
    # Logs
    # -------------------------------------------------------------------------

    async def get_logs(self, limit: int = DEFAULT_LOG_LIMIT) -> dict[str, Any]:
        return await self._unwrap("GET", "/logs", params={"limit": limit})

    async def get_log(self, log_id: str) -> dict[str, Any]:
        return await self._unwrap("GET", f"/logs/{log_id}")

    async def clear_logs(self) -> None:
        await self._unwrap("DELETE", "/logs")

    # -------------------------------------------------------------------------
    # Completion
    # -------------------------------------------------------------------------

    async def complete(
        self,
        messages: list[dict[str, str]],
        *,
        model: str | None = None,
        task_type: TaskType | str | None = None,
        provider: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> dict[str, Any]:
        body = _drop_none(
            messages=messages,
            model=model,
            task_type=_task_value(task_type),
            provider=provider,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return await self._unwrap("POST", "/complete", json=body)

    async def route(
        self,
        task_type: TaskType | str,
        prompt: str,
        *,
        system_prompt: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> dict[str, Any]:
        body = _drop_none(
            task_type=_task_value(task_type),
            prompt=prompt,
            system_prompt=system_prompt,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return await self._unwrap("POST", "/route", json=body)

    # -------------------------------------------------------------------------
    # Quick helpers
    # -------------------------------------------------------------------------

    async def summarize(self, text: str) -> str:
        response = await self.route(TaskType.SUMMARIZATION, f"Summarize the following:\n\n{text}")
        return response["content"]

    async def extract(self, text: str, what: str) -> str:
        response = await self.route(
            TaskType.EXTRACTION, f"Extract {what} from the following:\n\n{text}"
        )
        return response["content"]

    async def generate_code(self, prompt: str, language: str = "python") -> str:
        response = await self.route(
            TaskType.CODE_GENERATION, f"Write {language} code for: {prompt}"
        )
        return response["content"]

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "AIRouterClient":
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()


def _task_value(task_type: TaskType | str | None) -> str | None:
    if task_type is None:
        return None
    return TaskType(task_type).value


def _drop_none(**fields: Any) -> dict[str, Any]:
    return {k: v for k, v in fields.items() if v is not None}
