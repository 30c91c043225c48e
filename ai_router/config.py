# ai_router/config.py
"""
RouterConfig, RateLimitConfig and related factories.

RouterConfig supports construction from:
  - Python dict   → RouterConfig.from_dict(data)
  - YAML file     → RouterConfig.from_yaml("router.yaml")
  - Environment   → RouterConfig.from_env()
"""

from __future__ import annotations

import os
import re
from typing import Any

from pydantic import BaseModel, Field

from .constants import (
    DEFAULT_TIMEOUT_SECONDS,
    OLLAMA_BASE_URL,
    RATE_LIMIT_MAX_REQUESTS,
    RATE_LIMIT_WINDOW_SECONDS,
)
from .exceptions import NoProvidersConfigured
from .models import ProviderConfig


class RateLimitConfig(BaseModel):
    """Token-bucket limits applied by the gateway before routing."""

    max_requests: int = Field(
        default=RATE_LIMIT_MAX_REQUESTS,
        gt=0,
        description="Bucket capacity: requests admitted per window.",
    )
    window_seconds: float = Field(
        default=RATE_LIMIT_WINDOW_SECONDS,
        gt=0,
        description="Time for an empty bucket to refill completely.",
    )
    per_client: bool = Field(
        default=True,
        description="One bucket per client id. When False all clients share one bucket.",
    )
    global_limit: int | None = Field(
        default=None,
        gt=0,
        description="Optional shared ceiling enforced on top of per-client buckets.",
    )

    @classmethod
    def from_env(cls) -> "RateLimitConfig":
        """
        Read AI_ROUTER_RATE_LIMIT, AI_ROUTER_RATE_WINDOW_SECONDS and
        AI_ROUTER_RATE_GLOBAL_LIMIT, falling back to the defaults.
        """
        data: dict[str, Any] = {}
        max_requests = os.environ.get("AI_ROUTER_RATE_LIMIT")
        if max_requests:
            data["max_requests"] = int(max_requests)
        window = os.environ.get("AI_ROUTER_RATE_WINDOW_SECONDS")
        if window:
            data["window_seconds"] = float(window)
        global_limit = os.environ.get("AI_ROUTER_RATE_GLOBAL_LIMIT")
        if global_limit:
            data["global_limit"] = int(global_limit)
        return cls.model_validate(data)


class RouterConfig(BaseModel):
    """
    Top-level configuration for the RoutingEngine.

    Immutable once built. The engine validates that ``default_provider``
    names a configured, enabled provider when it is constructed.
    """

    model_config = {"frozen": True}

    providers: list[ProviderConfig] = Field(default_factory=list)
    default_provider: str = Field(..., description="Provider tried first for every request.")
    fallback_chain: list[str] = Field(
        default_factory=list,
        description="Providers tried in order after the default provider fails.",
    )
    smart_routing: bool = Field(
        default=True,
        description="Inject the task policy's model when a request has a task type but no model.",
    )
    logging: bool = Field(default=False, description="Log every routing attempt at INFO.")
    timeout_seconds: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        gt=0,
        description="Transport timeout for each adapter call.",
    )

    # ------------------------------------------------------------------
    # Factory methods
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, Any], **kwargs: Any) -> "RouterConfig":
        """Build config from a plain Python dictionary."""
        merged = {**data, **kwargs}
        return cls.model_validate(merged)

    @classmethod
    def from_yaml(cls, path: str, **kwargs: Any) -> "RouterConfig":
        """
        Build config from a YAML file.

        Environment variable interpolation is supported:
          api_key: "${OPENROUTER_API_KEY}"
        """
        import yaml

        with open(path) as f:
            raw = f.read()

        def _replace(match: re.Match) -> str:  # type: ignore[type-arg]
            var = match.group(1)
            value = os.environ.get(var)
            if value is None:
                raise EnvironmentError(
                    f"Environment variable '{var}' referenced in '{path}' is not set."
                )
            return value

        raw = re.sub(r"\$\{([^}]+)\}", _replace, raw)
        data = yaml.safe_load(raw) or {}
        return cls.from_dict(data, **kwargs)

    @classmethod
    def from_env(cls, **kwargs: Any) -> "RouterConfig":
        """
        Build a config from environment variables.

        Reads the following variables to select providers:
          OPENROUTER_API_KEY → registers an OpenRouter provider
          OLLAMA_BASE_URL    → registers an Ollama provider at that URL
          OLLAMA_ENABLED     → "true" registers Ollama at the default URL

        Optional overrides:
          AI_ROUTER_LOGGING          → "true" turns on routing logs
          AI_ROUTER_TIMEOUT_SECONDS  → timeout_seconds

        The first provider found becomes the default; the rest form the
        fallback chain. Raises NoProvidersConfigured when none is set.
        """
        providers: list[dict[str, Any]] = []

        api_key = os.environ.get("OPENROUTER_API_KEY")
        if api_key:
            providers.append({"type": "openrouter", "api_key": api_key})

        ollama_url = os.environ.get("OLLAMA_BASE_URL")
        if ollama_url or os.environ.get("OLLAMA_ENABLED", "").lower() == "true":
            providers.append({"type": "ollama", "base_url": ollama_url or OLLAMA_BASE_URL})

        if not providers:
            raise NoProvidersConfigured(
                "No AI providers configured. Set OPENROUTER_API_KEY or OLLAMA_ENABLED=true"
            )

        data: dict[str, Any] = {
            "providers": providers,
            "default_provider": providers[0]["type"],
            "fallback_chain": [p["type"] for p in providers[1:]],
            "smart_routing": True,
            "logging": os.environ.get("AI_ROUTER_LOGGING", "").lower() == "true",
        }

        timeout = os.environ.get("AI_ROUTER_TIMEOUT_SECONDS")
        if timeout:
            data["timeout_seconds"] = float(timeout)

        data.update(kwargs)
        return cls.from_dict(data)
