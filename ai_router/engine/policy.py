# ai_router/engine/policy.py
"""
Task → model policy.

Centralises the default-model heuristics used by smart routing, independent
of any one provider family. The policy is a pure lookup: it holds no mutable
state and never fails, because every task outside the table falls back to
the ``general`` recommendation.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from ..models import TaskType


TASK_MODEL_RECOMMENDATIONS: Mapping[TaskType, str] = MappingProxyType(
    {
        TaskType.EXTRACTION: "openai/gpt-4o-mini",  # fast, good at structured output
        TaskType.SUMMARIZATION: "anthropic/claude-3-haiku",  # cheap
        TaskType.COMPARISON: "anthropic/claude-3.5-sonnet",
        TaskType.RISK_ANALYSIS: "anthropic/claude-3.5-sonnet",
        TaskType.CODE_GENERATION: "anthropic/claude-3.5-sonnet",
        TaskType.REASONING: "openai/gpt-4o",
        TaskType.GENERAL: "openai/gpt-4o-mini",
    }
)


class TaskModelPolicy:
    """
    Immutable task → recommended model lookup.

    Parameters
    ----------
    overrides:
        Optional per-task replacements for the built-in recommendations.
        Tasks not overridden keep their default.
    """

    def __init__(self, overrides: Mapping[TaskType | str, str] | None = None) -> None:
        table = dict(TASK_MODEL_RECOMMENDATIONS)
        for task, model in (overrides or {}).items():
            table[TaskType(task)] = model
        self._table: Mapping[TaskType, str] = MappingProxyType(table)

    def recommend(self, task_type: TaskType | str | None) -> str:
        """Return the recommended model for *task_type* (``general`` when unknown)."""
        try:
            task = TaskType(task_type) if task_type is not None else TaskType.GENERAL
        except ValueError:
            task = TaskType.GENERAL
        return self._table.get(task, self._table[TaskType.GENERAL])

    def as_dict(self) -> dict[str, str]:
        return {task.value: model for task, model in self._table.items()}
