"""Unit tests for the response cache.

Run with: pytest backend/tests/unit/moviemonk/test_cache.py -v
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from moviemonk.cache import (
    KEY_PREFIX,
    InMemoryStore,
    RedisStore,
    ResponseCache,
    cache_key,
    normalize_query,
)
from moviemonk.exceptions import CacheFullError, CacheStoreError
from moviemonk.models import GroundingSource, ProviderId

SIX_HOURS = 6 * 60 * 60


class TestCacheKey:
    """Tests for key construction."""

    def test_normalize(self):
        assert normalize_query("  Interstellar ") == "interstellar"

    def test_equivalent_queries_share_key(self):
        """Test queries differing only by case and padding share a key."""
        assert cache_key("Interstellar", ProviderId.GROQ) == cache_key(" interstellar  ", "groq")

    def test_provider_is_part_of_key(self):
        assert cache_key("Heat", ProviderId.GROQ) != cache_key("Heat", ProviderId.MISTRAL)

    def test_prefix(self):
        assert cache_key("Heat", ProviderId.GROQ).startswith(KEY_PREFIX)


class TestResponseCache:
    """Tests for TTL semantics."""

    @pytest.mark.asyncio
    async def test_put_then_get(self, cache, sample_brief):
        """Test an entry is readable immediately after writing."""
        sources = [GroundingSource(uri="https://example.com/interstellar")]
        assert await cache.put("Interstellar", ProviderId.GROQ, sample_brief, sources) is True

        entry = await cache.get("interstellar", ProviderId.GROQ)

        assert entry is not None
        assert entry.result == sample_brief
        assert entry.sources == sources
        assert entry.provider == ProviderId.GROQ
        assert entry.normalized_query == "interstellar"

    @pytest.mark.asyncio
    async def test_other_provider_misses(self, cache, sample_brief):
        """Test entries are scoped to the provider that produced them."""
        await cache.put("Interstellar", ProviderId.GROQ, sample_brief)
        assert await cache.get("Interstellar", ProviderId.MISTRAL) is None

    @pytest.mark.asyncio
    async def test_live_just_before_ttl(self, cache, clock, sample_brief):
        await cache.put("Interstellar", ProviderId.GROQ, sample_brief)
        clock.advance(SIX_HOURS - 1)
        assert await cache.get("Interstellar", ProviderId.GROQ) is not None

    @pytest.mark.asyncio
    async def test_expired_get_deletes_entry(self, cache, store, clock, sample_brief):
        """Test an expired lookup misses and leaves no residual entry."""
        await cache.put("Interstellar", ProviderId.GROQ, sample_brief)
        clock.advance(SIX_HOURS)

        assert await cache.get("Interstellar", ProviderId.GROQ) is None
        assert len(store) == 0
        assert await cache.evict_expired() == 0
        assert await cache.evict_expired() == 0

    @pytest.mark.asyncio
    async def test_evict_expired(self, cache, store, clock, sample_brief):
        """Test the sweep removes only expired entries."""
        await cache.put("Heat", ProviderId.GROQ, sample_brief)
        clock.advance(SIX_HOURS - 10)
        await cache.put("Interstellar", ProviderId.GROQ, sample_brief)
        clock.advance(20)

        assert await cache.evict_expired() == 1
        assert len(store) == 1
        assert await cache.get("Interstellar", ProviderId.GROQ) is not None

    @pytest.mark.asyncio
    async def test_clear(self, cache, store, sample_brief):
        await cache.put("Heat", ProviderId.GROQ, sample_brief)
        await cache.put("Heat", ProviderId.MISTRAL, sample_brief)

        assert await cache.clear() == 2
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_unreadable_entry_is_discarded(self, cache, store):
        """Test a corrupt stored value is deleted and reported as a miss."""
        await store.set(cache_key("Heat", ProviderId.GROQ), {"garbage": True})

        assert await cache.get("Heat", ProviderId.GROQ) is None
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_stats(self, cache, sample_brief):
        await cache.put("Heat", ProviderId.GROQ, sample_brief)
        await cache.get("Heat", ProviderId.GROQ)
        await cache.get("Ronin", ProviderId.GROQ)

        stats = await cache.stats()

        assert stats["entries"] == 1
        assert stats["hits"] == 1
        assert stats["misses"] == 1


class TestBestEffortWrites:
    """Tests for write failure handling."""

    @pytest.mark.asyncio
    async def test_full_store_evicts_then_retries(self, clock, sample_brief):
        """Test a full store is swept of expired entries and the write retried."""
        store = InMemoryStore(max_entries=1)
        cache = ResponseCache(store, ttl_seconds=SIX_HOURS, clock=clock)
        await cache.put("Heat", ProviderId.GROQ, sample_brief)
        clock.advance(SIX_HOURS + 1)

        assert await cache.put("Interstellar", ProviderId.GROQ, sample_brief) is True
        assert await cache.get("Interstellar", ProviderId.GROQ) is not None
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_full_store_gives_up_quietly(self, clock, sample_brief):
        """Test a second write failure is swallowed."""
        store = InMemoryStore(max_entries=1)
        cache = ResponseCache(store, ttl_seconds=SIX_HOURS, clock=clock)
        await cache.put("Heat", ProviderId.GROQ, sample_brief)

        assert await cache.put("Interstellar", ProviderId.GROQ, sample_brief) is False
        assert await cache.get("Heat", ProviderId.GROQ) is not None

    @pytest.mark.asyncio
    async def test_store_errors_never_propagate(self, clock, sample_brief):
        """Test every store failure is absorbed by the cache."""
        store = MagicMock()
        store.get = AsyncMock(side_effect=CacheStoreError("down"))
        store.set = AsyncMock(side_effect=CacheStoreError("down"))
        store.keys = AsyncMock(side_effect=CacheStoreError("down"))
        cache = ResponseCache(store, clock=clock)

        assert await cache.put("Heat", ProviderId.GROQ, sample_brief) is False
        assert store.set.await_count == 2
        assert await cache.get("Heat", ProviderId.GROQ) is None
        assert await cache.evict_expired() == 0
        assert await cache.clear() == 0


class TestInMemoryStore:
    """Tests for the dict-backed store."""

    @pytest.mark.asyncio
    async def test_capacity(self):
        store = InMemoryStore(max_entries=1)
        await store.set("a", {"v": 1})

        with pytest.raises(CacheFullError):
            await store.set("b", {"v": 2})

        await store.set("a", {"v": 3})
        assert await store.get("a") == {"v": 3}

    @pytest.mark.asyncio
    async def test_keys_by_prefix(self):
        store = InMemoryStore()
        await store.set("x:1", {})
        await store.set("y:1", {})

        assert await store.keys("x:") == ["x:1"]
        assert await store.delete("x:1") is True
        assert await store.delete("x:1") is False


class TestRedisStore:
    """Tests for the Redis store with a mocked client."""

    @pytest.mark.asyncio
    async def test_round_trip_serialization(self):
        client = MagicMock()
        client.set = AsyncMock()
        client.get = AsyncMock(return_value=b'{"v": 1}')
        store = RedisStore(client)

        await store.set("k", {"v": 1})
        client.set.assert_awaited_once_with("k", '{"v": 1}')
        assert await store.get("k") == {"v": 1}

    @pytest.mark.asyncio
    async def test_errors_are_wrapped(self):
        client = MagicMock()
        client.set = AsyncMock(side_effect=ConnectionError("refused"))
        store = RedisStore(client)

        with pytest.raises(CacheStoreError):
            await store.set("k", {"v": 1})

    @pytest.mark.asyncio
    async def test_keys_scans_prefix(self):
        async def scan_iter(match, count):
            assert match == "p:*"
            for key in (b"p:1", b"p:2"):
                yield key

        client = MagicMock()
        client.scan_iter = scan_iter
        store = RedisStore(client)

        assert await store.keys("p:") == ["p:1", "p:2"]
