# ai_router/limiter/__init__.py
from .token_bucket import RateLimiter, TokenBucket

__all__ = ["RateLimiter", "TokenBucket"]
