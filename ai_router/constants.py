# ai_router/constants.py
"""
Default constants for ai-router.
All tunable values are centralised here so they can be overridden via
RouterConfig / RateLimitConfig without touching internal logic.
"""

# ---------------------------------------------------------------------------
# Service identity
# ---------------------------------------------------------------------------
SERVICE_NAME: str = "ai-router"
SERVICE_VERSION: str = "1.0.0"

DEFAULT_PORT: int = 5181
"""Port used by `ai-router serve` when AI_ROUTER_PORT is not set."""

# ---------------------------------------------------------------------------
# Provider endpoints and default models
# ---------------------------------------------------------------------------
OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"
OLLAMA_BASE_URL: str = "http://localhost:11434"

DEFAULT_OPENROUTER_MODEL: str = "openai/gpt-4o-mini"
DEFAULT_OLLAMA_MODEL: str = "llama3.2"

# Aliases served through the OpenRouter adapter, each with its own default.
DEFAULT_OPENAI_MODEL: str = "openai/gpt-4o-mini"
DEFAULT_ANTHROPIC_MODEL: str = "anthropic/claude-3.5-sonnet"
DEFAULT_GEMINI_MODEL: str = "google/gemini-2.0-flash-exp"

OPENROUTER_REFERER: str = "https://dooz.ai"
OPENROUTER_TITLE: str = "Dooz PM Suite"

OPENROUTER_CURATED_MODELS: tuple[str, ...] = (
    "openai/gpt-4o",
    "openai/gpt-4o-mini",
    "anthropic/claude-3.5-sonnet",
    "anthropic/claude-3-haiku",
    "google/gemini-2.0-flash-exp",
    "google/gemini-pro",
    "meta-llama/llama-3.1-70b-instruct",
    "mistralai/mistral-large",
)
"""OpenRouter exposes 100+ models; list_models() returns this curated set."""

DEFAULT_TEMPERATURE: float = 0.7

DEFAULT_TIMEOUT_SECONDS: float = 60.0
"""Transport timeout handed to every adapter's HTTP client."""

# ---------------------------------------------------------------------------
# Rate limiting
# ---------------------------------------------------------------------------
RATE_LIMIT_MAX_REQUESTS: int = 60
RATE_LIMIT_WINDOW_SECONDS: float = 60.0
GLOBAL_BUCKET_KEY: str = "global"
ANONYMOUS_CLIENT_ID: str = "anonymous"

# ---------------------------------------------------------------------------
# Request log
# ---------------------------------------------------------------------------
MAX_LOGS: int = 100
DEFAULT_LOG_LIMIT: int = 50
PROMPT_PREVIEW_CHARS: int = 100
CONTENT_PREVIEW_CHARS: int = 200
