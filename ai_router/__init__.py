# ai_router/__init__.py
"""
ai-router — multi-provider LLM gateway with task routing and fallback.

Public API surface:
  RoutingEngine      — main class; complete() / stream() with a fallback chain
  RouterConfig       — providers, default provider, fallback chain, flags
  ProviderConfig     — per-provider config used in RouterConfig
  RateLimiter        — token-bucket admission control
  RateLimitConfig    — rate limiter tuning
  TaskModelPolicy    — task type → recommended model
  LLMRequest / LLMResponse / StreamChunk / Message / Usage
  TaskType           — closed set of task tags
  ConfigurationError — raised when the engine cannot be built
  BackendError       — raised by an adapter when a backend call fails
  RateLimitExceeded  — raised by RateLimiter.check()
"""

from .router import RoutingEngine
from .config import RateLimitConfig, RouterConfig
from .engine.policy import TaskModelPolicy
from .engine.stream import ChunkStream, StreamState
from .limiter.token_bucket import RateLimiter
from .models import (
    LLMRequest,
    LLMResponse,
    Message,
    ProviderConfig,
    ProviderType,
    StreamChunk,
    TaskType,
    Usage,
)
from .exceptions import (
    AIRouterError,
    BackendError,
    ConfigurationError,
    GatewayError,
    NoProvidersConfigured,
    RateLimitExceeded,
)

__all__ = [
    "RoutingEngine",
    "RouterConfig",
    "RateLimitConfig",
    "TaskModelPolicy",
    "ChunkStream",
    "StreamState",
    "RateLimiter",
    "LLMRequest",
    "LLMResponse",
    "Message",
    "ProviderConfig",
    "ProviderType",
    "StreamChunk",
    "TaskType",
    "Usage",
    "AIRouterError",
    "BackendError",
    "ConfigurationError",
    "GatewayError",
    "NoProvidersConfigured",
    "RateLimitExceeded",
]

__version__ = "1.0.0"
