# ai_router/server.py
"""
HTTP gateway for ai-router.

Translates JSON bodies into LLMRequest, runs them through the RoutingEngine
and wraps results in ``{"success": ..., "data" | "error": ...}`` envelopes.
Completion routes are guarded by the token-bucket RateLimiter, keyed by the
``X-Client-ID`` header (falling back to ``Authorization``, then
"anonymous").

Endpoints:
- GET    /health                    - liveness
- GET    /status                    - provider availability + log stats
- GET    /providers                 - provider discovery
- GET    /providers/{type}/models   - models of one provider
- GET    /providers/{type}/status   - check one provider
- GET    /config, POST /config      - task-route config
- GET    /logs, GET /logs/{id}, DELETE /logs
- POST   /complete                  - chat completion
- POST   /route                     - task-routed completion
- POST   /configure                 - replace the router config
"""

from __future__ import annotations

import logging
import math
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError

from .config import RouterConfig
from .constants import (
    ANONYMOUS_CLIENT_ID,
    CONTENT_PREVIEW_CHARS,
    DEFAULT_LOG_LIMIT,
    PROMPT_PREVIEW_CHARS,
    SERVICE_NAME,
    SERVICE_VERSION,
)
from .exceptions import ConfigurationError
from .models import LLMRequest, LLMResponse, Message, TaskType, truncate
from .router import RoutingEngine
from .store import (
    GatewayConfigUpdate,
    GatewayState,
    RequestLog,
    RequestSummary,
    ResponseSummary,
    TokenCounts,
    generate_log_id,
)

logger = logging.getLogger(__name__)

RATE_LIMITED_PATHS = frozenset({"/complete", "/route"})


# =============================================================================
# REQUEST BODIES
# =============================================================================


class CompletionBody(BaseModel):
    messages: list[Message]
    provider: str | None = None
    model: str | None = None
    task_type: TaskType | None = None
    system_prompt: str | None = None
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, gt=0)


class RouteBody(BaseModel):
    task_type: TaskType
    prompt: str
    system_prompt: str | None = None
    model: str | None = None
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, gt=0)


# =============================================================================
# HELPERS
# =============================================================================


def get_state(request: Request) -> GatewayState:
    return request.app.state.gateway


def client_id_for(request: Request) -> str:
    return (
        request.headers.get("X-Client-ID")
        or request.headers.get("Authorization")
        or ANONYMOUS_CLIENT_ID
    )


def _error(message: str, status_code: int, **extra: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content={"success": False, "error": message, **extra}
    )


def _response_summary(response: LLMResponse) -> ResponseSummary:
    tokens = None
    if response.usage is not None:
        tokens = TokenCounts(
            prompt=response.usage.prompt_tokens,
            completion=response.usage.completion_tokens,
            total=response.usage.total_tokens,
        )
    return ResponseSummary(
        provider=response.provider,
        model=response.model,
        content_preview=truncate(response.content, CONTENT_PREVIEW_CHARS),
        tokens=tokens,
        latency_ms=response.latency_ms,
    )


def _response_data(response: LLMResponse, **extra: Any) -> dict[str, Any]:
    return {
        "content": response.content,
        "provider": response.provider,
        "model": response.model,
        **extra,
        "usage": response.usage.model_dump() if response.usage else None,
        "latency_ms": response.latency_ms,
    }


def _elapsed_ms(started: float) -> float:
    return round((time.monotonic() - started) * 1000, 1)


# =============================================================================
# ROUTES
# =============================================================================

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, Any]:
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/status")
async def status(state: GatewayState = Depends(get_state)) -> dict[str, Any]:
    try:
        engine = state.get_engine()
    except ConfigurationError as exc:
        return {"configured": False, "error": str(exc)}

    availability = await engine.check_availability()
    return {
        "configured": True,
        "providers": [
            {"type": provider, "available": available}
            for provider, available in availability.items()
        ],
        "stats": state.store.stats().model_dump(),
    }


@router.get("/providers")
async def list_providers(state: GatewayState = Depends(get_state)) -> Any:
    try:
        engine = state.get_engine()
    except ConfigurationError as exc:
        return _error(str(exc), 500)

    availability = await engine.check_availability()
    all_models = await engine.list_all_models()
    return {
        "success": True,
        "data": [
            {
                "type": provider,
                "available": available,
                "model_count": len(all_models.get(provider, [])),
            }
            for provider, available in availability.items()
        ],
    }


@router.get("/providers/{provider_type}/models")
async def list_models(provider_type: str, state: GatewayState = Depends(get_state)) -> Any:
    try:
        engine = state.get_engine()
    except ConfigurationError as exc:
        return _error(str(exc), 500)

    models = (await engine.list_all_models()).get(provider_type, [])
    # OpenRouter marks free models with a ":free" suffix
    free_models = [m for m in models if ":free" in m]
    return {
        "success": True,
        "data": {
            "provider": provider_type,
            "models": [m for m in models if ":free" not in m],
            "free_models": free_models,
            "total": len(models),
        },
    }


@router.get("/providers/{provider_type}/status")
async def provider_status(provider_type: str, state: GatewayState = Depends(get_state)) -> Any:
    try:
        engine = state.get_engine()
    except ConfigurationError as exc:
        return _error(str(exc), 500)

    started = time.monotonic()
    provider = engine.get_provider(provider_type)
    available = False
    if provider is not None:
        try:
            available = bool(await provider.is_available())
        except Exception as exc:
            logger.warning("Availability check for %s failed: %s", provider_type, exc)
    return {
        "success": True,
        "data": {
            "provider": provider_type,
            "available": available,
            "latency_ms": _elapsed_ms(started),
        },
    }


@router.get("/config")
async def get_config(state: GatewayState = Depends(get_state)) -> dict[str, Any]:
    return {"success": True, "data": state.store.get_config().model_dump(mode="json")}


@router.post("/config")
async def update_config(
    updates: GatewayConfigUpdate, state: GatewayState = Depends(get_state)
) -> dict[str, Any]:
    new_config = state.store.update_config(updates)
    return {"success": True, "data": new_config.model_dump(mode="json")}


@router.get("/logs")
async def get_logs(
    limit: int = Query(default=DEFAULT_LOG_LIMIT, ge=0),
    state: GatewayState = Depends(get_state),
) -> dict[str, Any]:
    return {
        "success": True,
        "data": {
            "logs": [log.model_dump(mode="json") for log in state.store.get_logs(limit)],
            "stats": state.store.stats().model_dump(),
        },
    }


@router.get("/logs/{log_id}")
async def get_log(log_id: str, state: GatewayState = Depends(get_state)) -> Any:
    log = state.store.get_log(log_id)
    if log is None:
        return _error("Log not found", 404)
    return {"success": True, "data": log.model_dump(mode="json")}


@router.delete("/logs")
async def clear_logs(state: GatewayState = Depends(get_state)) -> dict[str, Any]:
    state.store.clear_logs()
    return {"success": True, "message": "Logs cleared"}


@router.post("/complete")
async def complete(body: CompletionBody, state: GatewayState = Depends(get_state)) -> Any:
    started = time.monotonic()
    log_id = generate_log_id()
    llm_request = LLMRequest(
        messages=body.messages,
        system_prompt=body.system_prompt,
        model=body.model,
        task_type=body.task_type,
        temperature=body.temperature,
        max_tokens=body.max_tokens,
    )
    summary = RequestSummary(
        provider=body.provider,
        model=body.model,
        task_type=body.task_type.value if body.task_type else None,
        prompt_preview=llm_request.prompt_preview(PROMPT_PREVIEW_CHARS),
        temperature=body.temperature,
        max_tokens=body.max_tokens,
    )

    try:
        response = await state.get_engine().complete(llm_request)
    except Exception as exc:
        duration = _elapsed_ms(started)
        state.store.add_log(
            RequestLog(
                id=log_id, method="complete", request=summary, error=str(exc), duration_ms=duration
            )
        )
        logger.error("%s | ERROR | %.0fms | %s", log_id, duration, exc)
        return _error(str(exc), 500, log_id=log_id)

    duration = _elapsed_ms(started)
    state.store.add_log(
        RequestLog(
            id=log_id,
            method="complete",
            request=summary,
            response=_response_summary(response),
            duration_ms=duration,
        )
    )
    logger.info("%s | %s/%s | %.0fms", log_id, response.provider, response.model, duration)
    return {"success": True, "data": _response_data(response), "log_id": log_id}


@router.post("/route")
async def route(body: RouteBody, state: GatewayState = Depends(get_state)) -> Any:
    started = time.monotonic()
    log_id = generate_log_id()

    task_route = state.store.route_for_task(body.task_type)
    effective_model = body.model or (task_route.model if task_route else None)
    llm_request = LLMRequest(
        messages=[Message(role="user", content=body.prompt)],
        system_prompt=body.system_prompt,
        model=effective_model,
        task_type=body.task_type,
        temperature=body.temperature,
        max_tokens=body.max_tokens,
    )
    summary = RequestSummary(
        task_type=body.task_type.value,
        model=effective_model,
        prompt_preview=truncate(body.prompt, PROMPT_PREVIEW_CHARS),
        temperature=body.temperature,
        max_tokens=body.max_tokens,
    )

    try:
        response = await state.get_engine().complete(llm_request)
    except Exception as exc:
        duration = _elapsed_ms(started)
        state.store.add_log(
            RequestLog(
                id=log_id, method="route", request=summary, error=str(exc), duration_ms=duration
            )
        )
        logger.error("%s | ROUTE ERROR | %.0fms | %s", log_id, duration, exc)
        return _error(str(exc), 500, log_id=log_id)

    duration = _elapsed_ms(started)
    state.store.add_log(
        RequestLog(
            id=log_id,
            method="route",
            request=summary,
            response=_response_summary(response),
            duration_ms=duration,
        )
    )
    logger.info(
        "%s | ROUTE:%s | %s/%s | %.0fms",
        log_id,
        body.task_type.value,
        response.provider,
        response.model,
        duration,
    )
    return {
        "success": True,
        "data": _response_data(response, task_type=body.task_type.value),
        "log_id": log_id,
    }


@router.post("/configure")
async def configure(body: dict[str, Any], state: GatewayState = Depends(get_state)) -> Any:
    try:
        engine = RoutingEngine(RouterConfig.from_dict(body))
    except (ConfigurationError, ValidationError) as exc:
        logger.warning("Rejected router configuration: %s", exc)
        return _error(str(exc), 400)
    await state.replace_engine(engine)
    return {"success": True, "message": "Router configured"}


# =============================================================================
# APP FACTORY
# =============================================================================


def create_app(state: GatewayState | None = None) -> FastAPI:
    """Build the gateway app around *state* (a fresh GatewayState if None)."""
    gateway_state = state or GatewayState()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("%s %s starting", SERVICE_NAME, SERVICE_VERSION)
        yield
        await gateway_state.close()
        logger.info("%s shut down", SERVICE_NAME)

    app = FastAPI(title=SERVICE_NAME, version=SERVICE_VERSION, lifespan=lifespan)
    app.state.gateway = gateway_state

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def rate_limit(request: Request, call_next):
        if request.url.path not in RATE_LIMITED_PATHS:
            return await call_next(request)

        limiter = gateway_state.limiter
        client_id = client_id_for(request)
        if not limiter.is_allowed(client_id):
            retry_after = limiter.get_retry_after(client_id)
            logger.info("Rate limit exceeded for %s on %s", client_id, request.url.path)
            return JSONResponse(
                status_code=429,
                content={
                    "success": False,
                    "error": "Rate limit exceeded",
                    "retry_after_ms": round(retry_after * 1000),
                },
                headers={
                    "Retry-After": str(math.ceil(retry_after)),
                    "X-RateLimit-Remaining": "0",
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Remaining"] = str(limiter.get_remaining(client_id))
        return response

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(str(exc), 422)

    app.include_router(router)
    return app
