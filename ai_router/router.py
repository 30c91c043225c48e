# ai_router/router.py
"""
RoutingEngine — the primary class the gateway (or any caller) talks to.

Orchestrates a completion:
  1. Resolve the model once (explicit model, else the task policy when smart
     routing is on).
  2. Call the default provider.
  3. On failure, walk the fallback chain in configured order, trying each
     provider at most once; the first success is returned.
  4. If every candidate fails, re-raise the default provider's error so the
     caller sees the root cause. Fallback errors are only logged.

There is no memory of failures between calls: every call walks the full
chain again. Timeouts live in the adapters' HTTP clients, so a slow default
provider delays the fallback by its full timeout.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Iterable
from typing import Any

from .config import RouterConfig
from .engine.policy import TaskModelPolicy
from .engine.stream import ChunkStream
from .exceptions import ConfigurationError
from .models import LLMRequest, LLMResponse, StreamChunk
from .providers.base import BaseProvider
from .providers.registry import ProviderRegistry

logger = logging.getLogger(__name__)


class RoutingEngine:
    """
    Default-provider-first LLM router with an ordered fallback chain.

    Parameters
    ----------
    config:
        Router configuration. Immutable once the engine is built.
    adapters:
        Pre-built adapters to route across instead of building them from
        ``config.providers`` (bring-your-own-client, tests).
    policy:
        Task → model policy used by smart routing.

    Raises
    ------
    ConfigurationError
        If a provider type is unknown, or if ``config.default_provider``
        has no enabled adapter.
    """

    def __init__(
        self,
        config: RouterConfig,
        adapters: Iterable[BaseProvider] | None = None,
        policy: TaskModelPolicy | None = None,
    ) -> None:
        self._config = config
        self._policy = policy or TaskModelPolicy()
        if adapters is None:
            # Checked before any adapter exists, so a rejected config holds no clients.
            enabled = [p.type for p in config.providers if p.enabled]
            self._check_default(enabled)
            self._registry = ProviderRegistry.from_configs(
                config.providers, timeout=config.timeout_seconds
            )
        else:
            self._registry = ProviderRegistry(adapters)
            self._check_default(self._registry.names())

    def _check_default(self, available: list[str]) -> None:
        if self._config.default_provider not in available:
            raise ConfigurationError(
                f'Default provider "{self._config.default_provider}" not configured. '
                f"Available: {', '.join(available) or '(none)'}"
            )

    # ------------------------------------------------------------------
    # Factory methods
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, Any], **kwargs: Any) -> "RoutingEngine":
        """Construct from a plain Python dictionary."""
        return cls(RouterConfig.from_dict(data), **kwargs)

    @classmethod
    def from_yaml(cls, path: str, **kwargs: Any) -> "RoutingEngine":
        """Construct from a YAML config file."""
        return cls(RouterConfig.from_yaml(path), **kwargs)

    @classmethod
    def from_env(cls, **kwargs: Any) -> "RoutingEngine":
        """Construct from environment variables (see RouterConfig.from_env)."""
        return cls(RouterConfig.from_env(), **kwargs)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def config(self) -> RouterConfig:
        return self._config

    @property
    def policy(self) -> TaskModelPolicy:
        return self._policy

    @property
    def providers(self) -> list[str]:
        return self._registry.names()

    @property
    def default_provider(self) -> BaseProvider:
        return self._registry.get(self._config.default_provider)  # type: ignore[return-value]

    def get_provider(self, provider_id: str) -> BaseProvider | None:
        return self._registry.get(provider_id)

    def _log_progress(self, msg: str, *args: Any) -> None:
        if self._config.logging:
            logger.info(msg, *args)

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    def select_model(self, request: LLMRequest) -> LLMRequest:
        """
        Return the request with its effective model resolved.

        With smart routing on, a request that declares a task type but no
        model gets the policy's recommendation. An explicit model always
        wins. The caller's request object is never mutated.
        """
        if self._config.smart_routing and request.task_type is not None and not request.model:
            return request.model_copy(update={"model": self._policy.recommend(request.task_type)})
        return request

    def _fallback_candidates(self) -> list[BaseProvider]:
        candidates: list[BaseProvider] = []
        seen = {self._config.default_provider}
        for provider_id in self._config.fallback_chain:
            if provider_id in seen:
                continue
            seen.add(provider_id)
            provider = self._registry.get(provider_id)
            if provider is None:
                logger.debug("Fallback provider %s is not configured, skipping", provider_id)
                continue
            candidates.append(provider)
        return candidates

    async def complete(self, request: LLMRequest) -> LLMResponse:
        """
        Complete *request* on the default provider, falling back on failure.

        Raises
        ------
        Exception
            The default provider's own exception, unchanged, when the
            default provider and every fallback fail.
        """
        request = self.select_model(request)
        primary = self.default_provider

        self._log_progress("Trying %s...", primary.name)
        try:
            response = await primary.complete(request)
        except Exception as exc:
            logger.warning("%s failed: %s", primary.name, exc)
            original_error = exc
        else:
            self._log_progress("Success: %s (%.0fms)", response.model, response.latency_ms)
            return response

        for fallback in self._fallback_candidates():
            self._log_progress("Falling back to %s...", fallback.name)
            try:
                response = await fallback.complete(request)
            except Exception as exc:
                logger.warning("%s failed: %s", fallback.name, exc)
                continue
            self._log_progress("Fallback success: %s via %s", response.model, fallback.name)
            return response

        raise original_error

    def stream(self, request: LLMRequest) -> ChunkStream:
        """
        Stream *request* from the default provider. No fallback.

        The returned ChunkStream ends with exactly one terminal chunk. A
        failure mid-stream is raised to the consumer; chunks already
        delivered stay delivered, and the request must be restarted from
        the beginning.
        """
        request = self.select_model(request)
        provider = self.default_provider
        self._log_progress("Streaming via %s...", provider.name)
        return ChunkStream(self._watch_stream(provider, request), provider=provider.provider_id)

    async def _watch_stream(
        self, provider: BaseProvider, request: LLMRequest
    ) -> AsyncIterator[StreamChunk]:
        try:
            async for chunk in provider.stream(request):
                yield chunk
        except Exception as exc:
            logger.warning("%s stream failed: %s", provider.name, exc)
            raise

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    async def check_availability(self) -> dict[str, bool]:
        """Check every provider. A check that raises counts as unavailable."""

        async def _check(provider: BaseProvider) -> bool:
            try:
                return bool(await provider.is_available())
            except Exception as exc:
                logger.warning("Availability check for %s failed: %s", provider.name, exc)
                return False

        items = self._registry.items()
        results = await asyncio.gather(*(_check(p) for _, p in items))
        return {provider_id: ok for (provider_id, _), ok in zip(items, results)}

    async def list_all_models(self) -> dict[str, list[str]]:
        """Models per provider. A provider that fails contributes []."""

        async def _models(provider: BaseProvider) -> list[str]:
            try:
                return list(await provider.list_models())
            except Exception as exc:
                logger.warning("Listing models for %s failed: %s", provider.name, exc)
                return []

        items = self._registry.items()
        results = await asyncio.gather(*(_models(p) for _, p in items))
        return {provider_id: models for (provider_id, _), models in zip(items, results)}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Release all adapter resources (HTTP clients)."""
        await self._registry.close_all()

    async def __aenter__(self) -> "RoutingEngine":
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()
