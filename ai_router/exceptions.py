# ai_router/exceptions.py
"""
Custom exceptions for ai-router.

All public exceptions inherit from AIRouterError so callers can catch
the whole family with a single except clause if preferred.
"""

from __future__ import annotations

import math


class AIRouterError(Exception):
    """Base exception for all router errors."""


class ConfigurationError(AIRouterError):
    """
    Raised while building a RoutingEngine from an invalid RouterConfig
    (unknown provider type, default provider missing or disabled).

    Never retried: the dependent engine must not start.
    """


class NoProvidersConfigured(ConfigurationError):
    """Raised when auto-configuration from the environment finds no provider."""


class BackendError(AIRouterError):
    """
    Raised by a provider adapter when a backend call fails.

    Attributes
    ----------
    provider:
        Identifier of the provider that failed.
    status_code:
        HTTP status of the failed response, or None for transport failures
        and missing credentials.
    body:
        Response text returned by the backend, if any.
    """

    def __init__(
        self,
        provider: str,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        self.provider = provider
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class RateLimitExceeded(AIRouterError):
    """
    Raised by RateLimiter.check() when a client has no tokens left.

    Attributes
    ----------
    retry_after:
        Seconds until the next token accrues.
    remaining:
        Tokens left in the bucket (always 0 at rejection time).
    """

    def __init__(self, retry_after: float, remaining: int = 0) -> None:
        self.retry_after = retry_after
        self.remaining = remaining
        super().__init__(
            f"Rate limit exceeded. Retry after {math.ceil(retry_after)} seconds."
        )


class GatewayError(AIRouterError):
    """
    Raised by AIRouterClient when the gateway answers with success=false.

    Attributes
    ----------
    status_code:
        HTTP status of the gateway response.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)
