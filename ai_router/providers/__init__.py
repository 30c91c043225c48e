# ai_router/providers/__init__.py
from .base import BaseProvider
from .registry import ProviderRegistry, create_provider, supported_provider_types
from .openrouter import OpenRouterProvider
from .ollama import OllamaProvider

__all__ = [
    "BaseProvider",
    "ProviderRegistry",
    "create_provider",
    "supported_provider_types",
    "OpenRouterProvider",
    "OllamaProvider",
]
