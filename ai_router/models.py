# ai_router/models.py
"""
Pydantic v2 data models used throughout ai-router.

These are part of the public API surface: the HTTP gateway translates JSON
bodies into LLMRequest and serialises LLMResponse back out, and the client
SDK speaks the same shapes.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator


class TaskType(str, Enum):
    """Closed set of task tags used for smart routing."""

    EXTRACTION = "extraction"
    SUMMARIZATION = "summarization"
    COMPARISON = "comparison"
    RISK_ANALYSIS = "risk_analysis"
    CODE_GENERATION = "code_generation"
    REASONING = "reasoning"
    GENERAL = "general"


class ProviderType(str, Enum):
    """Provider identifiers understood by the built-in adapter registry."""

    OPENROUTER = "openrouter"
    OLLAMA = "ollama"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"


class Message(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class LLMRequest(BaseModel):
    """
    A normalized chat-completion request.

    ``build_messages()`` is what adapters send on the wire: the
    ``system_prompt`` is prepended as a system message unless the
    conversation already carries one.
    """

    messages: list[Message] = Field(..., description="Chat messages, oldest first.")
    system_prompt: str | None = Field(default=None)
    model: str | None = Field(default=None, description="Explicit model; overrides routing.")
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, gt=0)
    task_type: TaskType | None = Field(default=None, description="Task tag for smart routing.")
    metadata: dict[str, Any] = Field(default_factory=dict)

    def build_messages(self) -> list[dict[str, str]]:
        messages = [m.model_dump() for m in self.messages]
        if self.system_prompt and not any(m["role"] == "system" for m in messages):
            messages.insert(0, {"role": "system", "content": self.system_prompt})
        return messages

    def prompt_preview(self, limit: int) -> str:
        """Last user message, truncated for request logs."""
        user_messages = [m.content for m in self.messages if m.role == "user"]
        if not user_messages:
            return ""
        return truncate(user_messages[-1], limit)


class Usage(BaseModel):
    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)
    total_tokens: int = Field(default=0, ge=0)

    @model_validator(mode="before")
    @classmethod
    def fill_total(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("total_tokens") is None:
            data = dict(data)
            data["total_tokens"] = (data.get("prompt_tokens") or 0) + (
                data.get("completion_tokens") or 0
            )
        return data

    @model_validator(mode="after")
    def check_total(self) -> "Usage":
        if self.total_tokens != self.prompt_tokens + self.completion_tokens:
            raise ValueError(
                f"total_tokens ({self.total_tokens}) must equal prompt_tokens + "
                f"completion_tokens ({self.prompt_tokens + self.completion_tokens})"
            )
        return self


class LLMResponse(BaseModel):
    """
    The normalized result of a completion, whichever provider served it.
    """

    content: str = Field(..., description="Generated text.")
    model: str = Field(..., description="Model identifier the backend reports.")
    provider: str = Field(..., description="Identifier of the provider that served the request.")
    usage: Usage | None = Field(default=None)
    latency_ms: float = Field(..., ge=0.0, description="Wall-clock time from dispatch to completion.")
    raw: Any = Field(default=None, exclude=True, description="Backend payload, for diagnostics.")


class StreamChunk(BaseModel):
    content: str = ""
    done: bool = False


class ProviderConfig(BaseModel):
    """
    Configuration for a single provider.

    ``type`` is kept as a plain string so that an unknown provider reaches
    the adapter registry and fails there with a ConfigurationError.
    """

    type: str = Field(..., description="Provider identifier, e.g. 'openrouter', 'ollama'.")
    api_key: str | None = Field(default=None, description="Provider credential.")
    base_url: str | None = Field(default=None, description="Override of the provider endpoint.")
    default_model: str | None = Field(default=None)
    task_models: dict[TaskType, str] = Field(
        default_factory=dict,
        description="Per-task model overrides applied when the request has no explicit model.",
    )
    enabled: bool = Field(default=True, description="Toggle without removing from config.")


def truncate(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[:limit] + "..."
    return text
