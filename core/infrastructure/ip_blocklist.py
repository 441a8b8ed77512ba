"""
Temporary IP blocks for clients with too many failed requests.

A block is a cache entry holding its expiry time; the entry's TTL
matches the block so it disappears on its own. Like rate-limit windows,
blocks are best-effort and vanish with the cache.
"""

import hashlib
import logging
import math
import time
from typing import Callable, Optional

from core.infrastructure.cache import CachePort
from core.metrics import ip_blocks_total

logger = logging.getLogger(__name__)


class IpBlocklist:
    """Cache-backed list of temporarily blocked client IPs."""

    KEY_PREFIX = "ip_block"

    def __init__(
        self,
        cache: CachePort,
        block_seconds: int = 3600,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the blocklist.

        Args:
            cache: Cache holding the blocks
            block_seconds: How long a block lasts
            clock: Returns the current time in seconds
        """
        if block_seconds < 1:
            raise ValueError("Block duration must be at least one second")
        self.cache = cache
        self.block_seconds = block_seconds
        self.clock = clock

    def _cache_key(self, ip_address: str) -> str:
        digest = hashlib.sha256(ip_address.encode()).hexdigest()[:32]
        return f"{self.KEY_PREFIX}:{digest}"

    async def blocked_for(self, ip_address: Optional[str]) -> Optional[int]:
        """
        Seconds left on an IP's block.

        Args:
            ip_address: Client IP; missing IPs are never blocked

        Returns:
            Remaining seconds, or None if the IP is not blocked
        """
        if not ip_address:
            return None
        blocked_until = await self.cache.get(self._cache_key(ip_address))
        if not blocked_until:
            return None
        remaining = math.ceil(blocked_until - self.clock())
        return remaining if remaining > 0 else None

    async def block(self, ip_address: str) -> None:
        """
        Block an IP for ``block_seconds``.

        Args:
            ip_address: Client IP
        """
        blocked_until = self.clock() + self.block_seconds
        await self.cache.set(
            self._cache_key(ip_address), blocked_until, timeout=self.block_seconds
        )
        ip_blocks_total.inc()
        logger.warning(
            "Blocked suspicious IP",
            extra={"ip_address": ip_address, "block_seconds": self.block_seconds},
        )
