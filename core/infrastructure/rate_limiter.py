"""
Cache-backed rate limiter.

Each bucket/identifier pair owns a window that starts with its first
request and lasts ``window_seconds``. Windows live in the cache with a
TTL equal to the time left in the window, so losing the cache only
weakens throttling.
"""

import hashlib
import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional

from core.infrastructure.cache import CachePort
from core.metrics import rate_limit_denials_total

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitRule:
    """Threshold of ``requests`` per ``window_seconds``."""

    requests: int
    window_seconds: int

    def __post_init__(self):
        if self.requests < 1:
            raise ValueError("Rate limit must allow at least one request")
        if self.window_seconds < 1:
            raise ValueError("Rate limit window must be at least one second")


@dataclass(frozen=True)
class RateLimitDecision:
    """Admit or Deny(retry_after_seconds)."""

    admitted: bool
    limit: int = 0
    remaining: int = 0
    retry_after_seconds: int = 0

    @classmethod
    def admit(cls, limit: int = 0, remaining: int = 0) -> "RateLimitDecision":
        return cls(admitted=True, limit=limit, remaining=remaining)

    @classmethod
    def deny(cls, limit: int, retry_after_seconds: int) -> "RateLimitDecision":
        return cls(
            admitted=False,
            limit=limit,
            remaining=0,
            retry_after_seconds=retry_after_seconds,
        )


DEFAULT_RATE_LIMITS: Dict[str, RateLimitRule] = {
    "validate:ip": RateLimitRule(requests=60, window_seconds=60),
    "validate:license": RateLimitRule(requests=120, window_seconds=60),
    "activate:ip": RateLimitRule(requests=30, window_seconds=60),
    "activate:license": RateLimitRule(requests=10, window_seconds=60),
    "deactivate:ip": RateLimitRule(requests=30, window_seconds=60),
    "deactivate:license": RateLimitRule(requests=10, window_seconds=60),
    "heartbeat:ip": RateLimitRule(requests=60, window_seconds=60),
    "status:ip": RateLimitRule(requests=30, window_seconds=60),
}


class RateLimiter:
    """
    Rate limiter over a CachePort.

    Counter updates are read-then-write and not atomic: under heavy
    concurrency a window may admit slightly more than its threshold.
    """

    KEY_PREFIX = "rate_limit"

    def __init__(
        self,
        cache: CachePort,
        rules: Optional[Mapping[str, RateLimitRule]] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the limiter.

        Args:
            cache: Cache holding the windows
            rules: Rule per bucket name; buckets without a rule are not limited
            clock: Returns the current time in seconds
        """
        self.cache = cache
        self.rules = dict(DEFAULT_RATE_LIMITS if rules is None else rules)
        self.clock = clock

    def _cache_key(self, bucket: str, identifier: str) -> str:
        """
        Generate cache key for a window.

        Args:
            bucket: Bucket name (e.g. "activate:ip")
            identifier: Client IP or key fingerprint

        Returns:
            Cache key string
        """
        digest = hashlib.sha256(identifier.encode()).hexdigest()[:32]
        return f"{self.KEY_PREFIX}:{bucket}:{digest}"

    async def check(self, bucket: str, identifier: Optional[str]) -> RateLimitDecision:
        """
        Count a request against a bucket.

        Args:
            bucket: Bucket name
            identifier: Value the bucket is keyed on; empty values are admitted

        Returns:
            RateLimitDecision for the request
        """
        rule = self.rules.get(bucket)
        if rule is None or not identifier:
            return RateLimitDecision.admit()

        key = self._cache_key(bucket, identifier)
        now = self.clock()
        window = await self.cache.get(key)

        if not window or now - window.get("started_at", 0) >= rule.window_seconds:
            window = {"count": 0, "started_at": now}

        window["count"] += 1
        window_ends = window["started_at"] + rule.window_seconds
        ttl = max(1, math.ceil(window_ends - now))
        await self.cache.set(key, window, timeout=ttl)

        if window["count"] > rule.requests:
            rate_limit_denials_total.labels(bucket=bucket).inc()
            logger.warning(
                "Rate limit exceeded",
                extra={"bucket": bucket, "count": window["count"], "limit": rule.requests},
            )
            return RateLimitDecision.deny(limit=rule.requests, retry_after_seconds=ttl)

        return RateLimitDecision.admit(
            limit=rule.requests,
            remaining=rule.requests - window["count"],
        )
