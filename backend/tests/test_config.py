"""
Test: Settings and connection factories
"""

from unittest.mock import AsyncMock

import pytest

from config import Settings, create_histogram_cache, create_postgres_pool
from services.cache import MemoryHistogramCache, RedisHistogramCache


def make_settings(**overrides):
    return Settings(_env_file=None, **overrides)


class TestSettings:

    def test_database_url_built_from_parts(self):
        settings = make_settings(
            postgres_host="db", postgres_port=6543,
            postgres_user="u", postgres_password="p", postgres_db="collations",
            database_url=None,
        )
        assert settings.database_url == "postgresql://u:p@db:6543/collations"

    def test_explicit_database_url_wins(self):
        settings = make_settings(database_url="postgresql://x@y/z")
        assert settings.database_url == "postgresql://x@y/z"

    def test_unknown_cache_backend_rejected(self):
        with pytest.raises(ValueError):
            make_settings(cache_backend="memcached")


class TestFactories:

    @pytest.mark.asyncio
    async def test_memory_cache(self):
        cache = await create_histogram_cache(make_settings(cache_backend="MEMORY", cache_ttl_seconds=30))
        assert isinstance(cache, MemoryHistogramCache)
        assert cache.default_ttl == 30

    @pytest.mark.asyncio
    async def test_redis_cache_connects_with_settings_url(self, monkeypatch):
        connect = AsyncMock()
        monkeypatch.setattr(RedisHistogramCache, "connect", connect)

        cache = await create_histogram_cache(make_settings(redis_url="redis://cache:6379", cache_ttl_seconds=60))

        assert isinstance(cache, RedisHistogramCache)
        assert cache.redis_url == "redis://cache:6379"
        assert cache.ttl_seconds == 60
        connect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_postgres_pool_uses_database_url(self, monkeypatch):
        create_pool = AsyncMock(return_value="pool")
        monkeypatch.setattr("asyncpg.create_pool", create_pool)

        pool = await create_postgres_pool(make_settings(
            database_url="postgresql://x@y/z", postgres_min_pool=1, postgres_max_pool=4,
        ))

        assert pool == "pool"
        create_pool.assert_awaited_once_with("postgresql://x@y/z", min_size=1, max_size=4)
