# ai_router/providers/registry.py
"""
ProviderRegistry — the set of adapters a RoutingEngine routes across.

Built once from the RouterConfig and read-only afterwards, so concurrent
requests can share it without locking.

Provider families are a closed set: OpenRouterProvider and OllamaProvider.
The "openai", "anthropic" and "gemini" types are aliases, served by
OpenRouterProvider with their own default model.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from .base import BaseProvider
from .ollama import OllamaProvider
from .openrouter import OpenRouterProvider
from ..constants import (
    DEFAULT_ANTHROPIC_MODEL,
    DEFAULT_GEMINI_MODEL,
    DEFAULT_OPENAI_MODEL,
    DEFAULT_TIMEOUT_SECONDS,
)
from ..exceptions import ConfigurationError
from ..models import ProviderConfig


# Map provider type → adapter class
_ADAPTER_MAP: dict[str, type[BaseProvider]] = {
    "openrouter": OpenRouterProvider,
    "ollama": OllamaProvider,
}

# Alias → (adapter class, alias default model)
_ALIAS_MAP: dict[str, tuple[type[BaseProvider], str]] = {
    "openai": (OpenRouterProvider, DEFAULT_OPENAI_MODEL),
    "anthropic": (OpenRouterProvider, DEFAULT_ANTHROPIC_MODEL),
    "gemini": (OpenRouterProvider, DEFAULT_GEMINI_MODEL),
}


def supported_provider_types() -> list[str]:
    return [*_ADAPTER_MAP, *_ALIAS_MAP]


def create_provider(
    config: ProviderConfig,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> BaseProvider:
    """Instantiate the adapter for *config*, resolving aliases."""
    default_model = config.default_model
    adapter_cls = _ADAPTER_MAP.get(config.type)
    if adapter_cls is None and config.type in _ALIAS_MAP:
        adapter_cls, alias_model = _ALIAS_MAP[config.type]
        default_model = default_model or alias_model
    if adapter_cls is None:
        raise ConfigurationError(
            f"Unknown provider type '{config.type}'. "
            f"Supported provider types: {supported_provider_types()}."
        )

    return adapter_cls(
        provider_id=config.type,
        api_key=config.api_key,
        base_url=config.base_url,
        default_model=default_model,
        task_models=config.task_models,
        timeout=timeout,
    )


class ProviderRegistry:
    """Holds the adapters, keyed by provider identifier."""

    def __init__(self, adapters: Iterable[BaseProvider] = ()) -> None:
        self._providers: dict[str, BaseProvider] = {}
        for adapter in adapters:
            self.register_adapter(adapter)

    @classmethod
    def from_configs(
        cls,
        configs: Iterable[ProviderConfig],
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> "ProviderRegistry":
        """Build one adapter per enabled ProviderConfig. Disabled entries are skipped."""
        return cls(create_provider(c, timeout=timeout) for c in configs if c.enabled)

    def register_adapter(self, adapter: BaseProvider) -> None:
        self._providers[adapter.provider_id] = adapter

    def get(self, provider_id: str) -> BaseProvider | None:
        """Return provider by identifier, or None if not configured."""
        return self._providers.get(provider_id)

    def names(self) -> list[str]:
        return list(self._providers)

    def items(self) -> list[tuple[str, BaseProvider]]:
        return list(self._providers.items())

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._providers

    def __iter__(self) -> Iterator[BaseProvider]:
        return iter(list(self._providers.values()))

    def __len__(self) -> int:
        return len(self._providers)

    async def close_all(self) -> None:
        """Call close() on every provider (releases HTTP connections, etc.)."""
        for provider in self._providers.values():
            await provider.close()
