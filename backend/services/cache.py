"""
Histogram cache stores

Rendered histograms are cached as raw JSON bytes keyed by
(comparison set id, request fingerprint). Keys are scoped per set so all
histograms of a set can be dropped when it is re-collated.

- RedisHistogramCache:  shared between processes, key histogram:{set_id}:{fingerprint}
- MemoryHistogramCache: thread-safe in-process cache with optional TTL
"""

import logging
import time
from threading import Lock
from typing import Dict, Optional, Tuple

import redis.asyncio as redis

logger = logging.getLogger(__name__)

KEY_PREFIX = "histogram"


def cache_key(set_id: int, fingerprint: int) -> str:
    return f"{KEY_PREFIX}:{set_id}:{fingerprint}"


class MemoryHistogramCache:
    """Thread-safe in-memory histogram cache with optional TTL"""

    def __init__(self, default_ttl: Optional[int] = None):
        self.cache: Dict[Tuple[int, int], Tuple[bytes, Optional[float]]] = {}
        self.lock = Lock()
        self.default_ttl = default_ttl

    async def get(self, set_id: int, fingerprint: int) -> Optional[bytes]:
        """Get cached bytes if present and not expired"""
        key = (set_id, fingerprint)
        with self.lock:
            if key in self.cache:
                value, expiry = self.cache[key]
                if expiry is None or time.time() < expiry:
                    return value
                # Clean up expired entry
                del self.cache[key]
            return None

    async def put(self, set_id: int, fingerprint: int, body: bytes, ttl: Optional[int] = None):
        """Store histogram bytes, last writer wins"""
        ttl = ttl or self.default_ttl
        expiry = time.time() + ttl if ttl else None
        with self.lock:
            self.cache[(set_id, fingerprint)] = (body, expiry)

    async def invalidate(self, set_id: int) -> int:
        """Drop every histogram cached for a comparison set"""
        with self.lock:
            keys = [k for k in self.cache if k[0] == set_id]
            for key in keys:
                del self.cache[key]
        return len(keys)

    async def close(self):
        with self.lock:
            self.cache.clear()


class RedisHistogramCache:
    """
    Redis-backed histogram cache

    Values are stored as plain strings of the cached JSON bytes.
    Writes are last-writer-wins; fingerprints come from immutable request
    content so concurrent writers for one key store identical bytes.
    """

    def __init__(self, redis_url: str, ttl_seconds: Optional[int] = None):
        self.redis = None
        self.redis_url = redis_url
        self.ttl_seconds = ttl_seconds

    async def connect(self):
        """Initialize Redis connection"""
        self.redis = await redis.from_url(self.redis_url)

    async def close(self):
        """Close Redis connection"""
        if self.redis:
            await self.redis.close()

    async def get(self, set_id: int, fingerprint: int) -> Optional[bytes]:
        return await self.redis.get(cache_key(set_id, fingerprint))

    async def put(self, set_id: int, fingerprint: int, body: bytes, ttl: Optional[int] = None):
        ttl = ttl or self.ttl_seconds
        await self.redis.set(cache_key(set_id, fingerprint), body, ex=ttl)

    async def invalidate(self, set_id: int) -> int:
        """
        Drop every histogram cached for a comparison set

        Uses SCAN so large keyspaces are not blocked.
        """
        deleted = 0
        batch = []
        async for key in self.redis.scan_iter(match=f"{KEY_PREFIX}:{set_id}:*", count=500):
            batch.append(key)
            if len(batch) >= 500:
                deleted += await self.redis.delete(*batch)
                batch = []
        if batch:
            deleted += await self.redis.delete(*batch)

        logger.info(f"Invalidated {deleted} cached histograms for set {set_id}")
        return deleted
