# ai_router/store.py
"""
Gateway state: editable task-route config, bounded request log, and the
engine / limiter the HTTP layer serves with.

There is no module-level singleton. The process builds one GatewayState at
startup and hands it to create_app(); each test builds its own.

Nothing here is persisted. Config edits and logs live until the process
exits; the log keeps only the newest MAX_LOGS entries.
"""

from __future__ import annotations

import logging
import random
import string
import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

from .config import RateLimitConfig
from .constants import DEFAULT_LOG_LIMIT, MAX_LOGS
from .engine.policy import TASK_MODEL_RECOMMENDATIONS
from .exceptions import ConfigurationError
from .limiter.token_bucket import RateLimiter
from .models import TaskType
from .router import RoutingEngine

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Task routing config
# ---------------------------------------------------------------------------


class TaskRoute(BaseModel):
    task: TaskType
    provider: str
    model: str
    enabled: bool = True


class GatewayConfig(BaseModel):
    task_routes: list[TaskRoute]
    default_provider: str
    fallback_chain: list[str]

    @classmethod
    def default(cls) -> "GatewayConfig":
        return cls(
            task_routes=[
                TaskRoute(task=task, provider="openrouter", model=model)
                for task, model in TASK_MODEL_RECOMMENDATIONS.items()
            ],
            default_provider="openrouter",
            fallback_chain=["ollama"],
        )


class GatewayConfigUpdate(BaseModel):
    """Partial update; fields left as None are not touched."""

    task_routes: list[TaskRoute] | None = None
    default_provider: str | None = None
    fallback_chain: list[str] | None = None


# ---------------------------------------------------------------------------
# Request log
# ---------------------------------------------------------------------------


class TokenCounts(BaseModel):
    prompt: int
    completion: int
    total: int


class RequestSummary(BaseModel):
    provider: str | None = None
    model: str | None = None
    task_type: str | None = None
    prompt_preview: str = ""
    temperature: float | None = None
    max_tokens: int | None = None


class ResponseSummary(BaseModel):
    provider: str
    model: str
    content_preview: str
    tokens: TokenCounts | None = None
    latency_ms: float


class RequestLog(BaseModel):
    id: str
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    method: Literal["complete", "route"]
    request: RequestSummary
    response: ResponseSummary | None = None
    error: str | None = None
    duration_ms: float


class LogStats(BaseModel):
    total: int
    success: int
    failed: int
    avg_latency_ms: int


def generate_log_id() -> str:
    """``log_<epoch ms>_<6 random base36 chars>``"""
    alphabet = string.digits + string.ascii_lowercase
    suffix = "".join(random.choices(alphabet, k=6))
    return f"log_{int(time.time() * 1000)}_{suffix}"


class ConfigStore:
    """In-memory task-route config plus a bounded, newest-first request log."""

    def __init__(
        self,
        config: GatewayConfig | None = None,
        max_logs: int = MAX_LOGS,
    ) -> None:
        self._config = config or GatewayConfig.default()
        self._logs: list[RequestLog] = []
        self._max_logs = max_logs

    # ------------------------------------------------------------------
    # Config
    # ------------------------------------------------------------------

    def get_config(self) -> GatewayConfig:
        """Return a deep copy; editing it does not change the store."""
        return self._config.model_copy(deep=True)

    def update_config(self, updates: GatewayConfigUpdate | dict[str, Any]) -> GatewayConfig:
        """Replace only the fields present in *updates*. An empty update is a no-op."""
        if isinstance(updates, dict):
            updates = GatewayConfigUpdate.model_validate(updates)
        if updates.task_routes is not None:
            self._config.task_routes = [r.model_copy() for r in updates.task_routes]
        if updates.default_provider:
            self._config.default_provider = updates.default_provider
        if updates.fallback_chain is not None:
            self._config.fallback_chain = list(updates.fallback_chain)
        return self.get_config()

    def route_for_task(self, task: TaskType | str) -> TaskRoute | None:
        """First enabled route for *task*, or None."""
        for route in self._config.task_routes:
            if route.task == task and route.enabled:
                return route.model_copy()
        return None

    def get_default_provider(self) -> str:
        return self._config.default_provider

    def get_fallback_chain(self) -> list[str]:
        return list(self._config.fallback_chain)

    # ------------------------------------------------------------------
    # Logs
    # ------------------------------------------------------------------

    def add_log(self, log: RequestLog) -> None:
        self._logs.insert(0, log)
        del self._logs[self._max_logs :]

    def get_logs(self, limit: int = DEFAULT_LOG_LIMIT) -> list[RequestLog]:
        return self._logs[: max(0, limit)]

    def get_log(self, log_id: str) -> RequestLog | None:
        return next((log for log in self._logs if log.id == log_id), None)

    def clear_logs(self) -> None:
        self._logs = []

    def stats(self) -> LogStats:
        successes = [log for log in self._logs if not log.error]
        latencies = [log.duration_ms for log in successes]
        return LogStats(
            total=len(self._logs),
            success=len(successes),
            failed=len(self._logs) - len(successes),
            avg_latency_ms=round(sum(latencies) / len(latencies)) if latencies else 0,
        )


# ---------------------------------------------------------------------------
# Gateway state
# ---------------------------------------------------------------------------


class GatewayState:
    """
    Everything the HTTP gateway needs, with an explicit lifecycle.

    Parameters
    ----------
    engine:
        Routing engine to serve with. When None, one is built on first use
        by *engine_factory* (environment variables by default).
    limiter:
        Rate limiter applied to completion routes.
    store:
        Config/log store.
    """

    def __init__(
        self,
        engine: RoutingEngine | None = None,
        limiter: RateLimiter | None = None,
        store: ConfigStore | None = None,
        engine_factory: Callable[[], RoutingEngine] = RoutingEngine.from_env,
    ) -> None:
        self._engine = engine
        self._engine_factory = engine_factory
        self.limiter = limiter or RateLimiter(RateLimitConfig())
        self.store = store or ConfigStore()

    @property
    def configured(self) -> bool:
        return self._engine is not None

    def get_engine(self) -> RoutingEngine:
        """Return the engine, building it from the environment on first use."""
        if self._engine is None:
            try:
                self._engine = self._engine_factory()
            except (ConfigurationError, ValueError) as exc:  # ValidationError is a ValueError
                raise ConfigurationError(
                    f"Router not configured. Set OPENROUTER_API_KEY or OLLAMA_ENABLED=true ({exc})"
                ) from exc
            logger.info("Router configured with providers: %s", ", ".join(self._engine.providers))
        return self._engine

    async def replace_engine(self, engine: RoutingEngine) -> None:
        """Swap in a new engine, closing the old one's HTTP clients."""
        old, self._engine = self._engine, engine
        if old is not None:
            await old.close()
        logger.info("Router reconfigured with providers: %s", ", ".join(engine.providers))

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.close()
