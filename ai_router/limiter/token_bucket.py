# ai_router/limiter/token_bucket.py
"""
Token-bucket admission control.

Each bucket holds up to ``max_requests`` tokens and refills at
``max_requests / window_seconds`` tokens per second. An admitted request
consumes one token.

Refill is done in whole tokens. The refill timestamp only moves forward
when at least one whole token was added, so the fractional time between
frequent calls keeps accumulating instead of being thrown away.

Buckets are created lazily, full, on the first request from a key and live
in memory until reset() / clear(). State is per-process: running several
gateway instances needs an external shared counter, which this limiter
does not provide.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from ..config import RateLimitConfig
from ..constants import GLOBAL_BUCKET_KEY
from ..exceptions import RateLimitExceeded

logger = logging.getLogger(__name__)

_GLOBAL_CEILING_KEY = "__global_ceiling__"


@dataclass
class TokenBucket:
    tokens: int
    last_refill: float  # clock() timestamp, seconds


class RateLimiter:
    """
    Per-client (or global) token-bucket rate limiter.

    Check-then-decrement runs under a lock, so two concurrent requests can
    never both take the last token.

    Parameters
    ----------
    config:
        Capacity, window and keying mode.
    clock:
        Monotonic time source in seconds. Injectable for tests.
    """

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config or RateLimitConfig()
        self._clock = clock
        self._buckets: dict[str, TokenBucket] = {}
        self._lock = threading.Lock()

    @property
    def config(self) -> RateLimitConfig:
        return self._config

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _key(self, client_id: str) -> str:
        return client_id if self._config.per_client else GLOBAL_BUCKET_KEY

    def _rate(self, capacity: int) -> float:
        """Tokens accrued per second."""
        return capacity / self._config.window_seconds

    def _get_bucket(self, key: str, capacity: int, now: float) -> TokenBucket:
        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = TokenBucket(tokens=capacity, last_refill=now)
            self._buckets[key] = bucket
        return bucket

    def _accrued(self, bucket: TokenBucket, capacity: int, now: float) -> int:
        elapsed = max(0.0, now - bucket.last_refill)
        return math.floor(elapsed * self._rate(capacity))

    def _refill(self, bucket: TokenBucket, capacity: int, now: float) -> None:
        added = self._accrued(bucket, capacity, now)
        if added > 0:
            bucket.tokens = min(capacity, bucket.tokens + added)
            bucket.last_refill = now

    def _take(self, key: str, capacity: int, now: float) -> bool:
        bucket = self._get_bucket(key, capacity, now)
        self._refill(bucket, capacity, now)
        if bucket.tokens > 0:
            bucket.tokens -= 1
            return True
        return False

    def _ceiling(self) -> int | None:
        """Capacity of the shared ceiling bucket, when one applies."""
        if self._config.per_client:
            return self._config.global_limit
        return None

    def _projected(self, key: str, capacity: int, now: float) -> int:
        bucket = self._buckets.get(key)
        if bucket is None:
            return capacity
        return min(capacity, bucket.tokens + self._accrued(bucket, capacity, now))

    def _wait(self, key: str, capacity: int, now: float) -> float:
        bucket = self._buckets.get(key)
        if bucket is None or bucket.tokens > 0:
            return 0.0
        token_interval = 1.0 / self._rate(capacity)
        return max(0.0, token_interval - (now - bucket.last_refill))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def is_allowed(self, client_id: str = GLOBAL_BUCKET_KEY) -> bool:
        """Consume a token for *client_id* and return True, or return False."""
        key = self._key(client_id)
        ceiling = self._ceiling()
        with self._lock:
            now = self._clock()
            if ceiling is not None:
                ceiling_bucket = self._get_bucket(_GLOBAL_CEILING_KEY, ceiling, now)
                self._refill(ceiling_bucket, ceiling, now)
                if ceiling_bucket.tokens <= 0:
                    logger.debug("Global ceiling reached, rejecting %s", client_id)
                    return False
                if not self._take(key, self._config.max_requests, now):
                    return False
                ceiling_bucket.tokens -= 1
                return True
            return self._take(key, self._config.max_requests, now)

    def check(self, client_id: str = GLOBAL_BUCKET_KEY) -> None:
        """Like is_allowed(), but raise RateLimitExceeded on rejection."""
        if not self.is_allowed(client_id):
            raise RateLimitExceeded(
                retry_after=self.get_retry_after(client_id),
                remaining=self.get_remaining(client_id),
            )

    def get_remaining(self, client_id: str = GLOBAL_BUCKET_KEY) -> int:
        """
        Tokens available to *client_id* right now, including whole tokens
        accrued since the last refill. With a global ceiling this is the
        smaller of the client's and the ceiling's tokens. Does not modify
        any bucket.
        """
        ceiling = self._ceiling()
        with self._lock:
            now = self._clock()
            remaining = self._projected(self._key(client_id), self._config.max_requests, now)
            if ceiling is not None:
                remaining = min(remaining, self._projected(_GLOBAL_CEILING_KEY, ceiling, now))
            return remaining

    def get_retry_after(self, client_id: str = GLOBAL_BUCKET_KEY) -> float:
        """
        Seconds until *client_id* may be admitted again (0 if it may now).
        With a global ceiling this is the longer of the two waits. Does not
        modify any bucket.
        """
        ceiling = self._ceiling()
        with self._lock:
            now = self._clock()
            wait = self._wait(self._key(client_id), self._config.max_requests, now)
            if ceiling is not None:
                wait = max(wait, self._wait(_GLOBAL_CEILING_KEY, ceiling, now))
            return wait

    def reset(self, client_id: str = GLOBAL_BUCKET_KEY) -> None:
        """Forget the bucket for *client_id*; its next request starts full."""
        with self._lock:
            self._buckets.pop(self._key(client_id), None)

    def clear(self) -> None:
        """Forget every bucket."""
        with self._lock:
            self._buckets.clear()
