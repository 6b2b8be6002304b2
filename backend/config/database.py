"""
Database Configuration
======================

Connection factories for the histogram service.
Opens the PostgreSQL collation store and the histogram cache from the
resolved application settings.
"""
from .settings import Settings


async def create_postgres_pool(settings: Settings):
    """Create PostgreSQL connection pool from settings.database_url."""
    import asyncpg
    return await asyncpg.create_pool(
        settings.database_url,
        min_size=settings.postgres_min_pool,
        max_size=settings.postgres_max_pool,
    )


async def create_histogram_cache(settings: Settings):
    """
    Create and connect the histogram cache.

    Args:
        settings: cache_backend selects 'redis' (shared, uses redis_url)
            or 'memory' (single process); cache_ttl_seconds is the
            optional expiry for cached histograms

    Returns:
        Connected cache store
    """
    from services.cache import MemoryHistogramCache, RedisHistogramCache

    if settings.cache_backend == "memory":
        return MemoryHistogramCache(default_ttl=settings.cache_ttl_seconds)

    cache = RedisHistogramCache(settings.redis_url, ttl_seconds=settings.cache_ttl_seconds)
    await cache.connect()
    return cache
