# ai_router/providers/base.py
"""
BaseProvider — abstract contract every provider adapter must implement.

An adapter translates a normalized LLMRequest into one backend's wire call
and normalizes the reply into an LLMResponse. The router never talks to a
backend directly; it always goes through an adapter.

This design means:
  - Wire-format details and HTTP error handling are contained inside each
    adapter, which reports every failure as a BackendError.
  - The router only needs to know "succeeded" or "raised".
  - Adding a new backend family requires only implementing this interface.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Mapping

from ..constants import DEFAULT_TEMPERATURE, DEFAULT_TIMEOUT_SECONDS
from ..models import LLMRequest, LLMResponse, StreamChunk, TaskType


class BaseProvider(ABC):
    """
    Abstract base class for all provider adapters.

    Class attributes
    ----------------
    provider_type:
        Stable family tag, e.g. "openrouter", "ollama".
    display_name:
        Human-readable name used in logs and the dashboard.
    default_base_url / default_model:
        Used when the ProviderConfig leaves them unset.

    Instance attributes
    -------------------
    provider_id:
        Identifier this adapter is registered under. Equals provider_type
        unless the adapter serves an alias (e.g. "anthropic" through
        OpenRouter).
    """

    provider_type: str = ""
    display_name: str = ""
    default_base_url: str = ""
    default_model: str = ""

    def __init__(
        self,
        provider_id: str | None = None,
        api_key: str | None = None,
        base_url: str | None = None,
        default_model: str | None = None,
        task_models: Mapping[TaskType | str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.provider_id = provider_id or self.provider_type
        self.api_key = api_key
        self.base_url = (base_url or self.default_base_url).rstrip("/")
        self.model = default_model or self.default_model
        self.task_models = {TaskType(k): v for k, v in (task_models or {}).items()}
        self.timeout = timeout

    @property
    def name(self) -> str:
        if self.provider_id != self.provider_type:
            return f"{self.display_name} ({self.provider_id})"
        return self.display_name

    # ------------------------------------------------------------------
    # Request helpers shared by every adapter
    # ------------------------------------------------------------------

    def get_model(self, request: LLMRequest) -> str:
        """Explicit model, then this provider's task override, then its default."""
        if request.model:
            return request.model
        if request.task_type is not None and request.task_type in self.task_models:
            return self.task_models[request.task_type]
        return self.model

    def build_messages(self, request: LLMRequest) -> list[dict[str, str]]:
        return request.build_messages()

    @staticmethod
    def temperature(request: LLMRequest) -> float:
        if request.temperature is None:
            return DEFAULT_TEMPERATURE
        return request.temperature

    @staticmethod
    def elapsed_ms(started: float) -> float:
        return (time.monotonic() - started) * 1000

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    @abstractmethod
    async def complete(self, request: LLMRequest) -> LLMResponse:
        """
        Send a non-streaming chat request and return an LLMResponse.

        Raises
        ------
        BackendError
            On a non-2xx response, a transport failure, or a missing
            credential. The router treats every exception the same way
            (log it, try the next provider in the fallback chain).
        """

    @abstractmethod
    def stream(self, request: LLMRequest) -> AsyncIterator[StreamChunk]:
        """
        Send a streaming chat request.

        Yields StreamChunk(content, done=False) as text arrives and finishes
        with StreamChunk(content="", done=True). Same failure modes as
        complete().
        """

    @abstractmethod
    async def is_available(self) -> bool:
        """Check the backend. Never raises: any failure means False."""

    @abstractmethod
    async def list_models(self) -> list[str]:
        """Model identifiers this backend can serve."""

    async def close(self) -> None:
        """Release any resources held by this adapter (HTTP clients, etc.)."""

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"{self.__class__.__name__}("
            f"provider_id={self.provider_id!r}, model={self.model!r}, "
            f"base_url={self.base_url!r})"
        )
