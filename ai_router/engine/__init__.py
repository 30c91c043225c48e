# ai_router/engine/__init__.py
from .policy import TASK_MODEL_RECOMMENDATIONS, TaskModelPolicy
from .stream import ChunkStream, StreamState

__all__ = [
    "TASK_MODEL_RECOMMENDATIONS",
    "TaskModelPolicy",
    "ChunkStream",
    "StreamState",
]
