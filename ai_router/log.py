# ai_router/log.py
"""
Logging setup for the gateway process.

Library modules only create ``logging.getLogger(__name__)`` loggers; the
entry points (``ai-router serve``, the CLI) call setup_logging() once.
"""

from __future__ import annotations

import logging
import os


def setup_logging(level: str | None = None) -> logging.Logger:
    """Configure the ``ai_router`` logger (level from AI_ROUTER_LOG_LEVEL, default INFO)."""
    logger = logging.getLogger("ai_router")

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "[%(asctime)s] %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    log_level = (level or os.getenv("AI_ROUTER_LOG_LEVEL", "INFO")).upper()
    logger.setLevel(getattr(logging, log_level, logging.INFO))

    return logger
