"""Response cache for validated briefs.

Entries are keyed by the normalized query text and the provider that
produced them, and expire six hours after they were written. Expiry is
enforced here, not by the backing store: an expired entry is deleted the
moment a lookup sees it. Stores only need string keys and JSON-able
values.

Caching is best-effort. Store failures are logged and never reach the
caller.
"""

import asyncio
import json
import time
from typing import Any, Callable

from .config import get_settings
from .exceptions import CacheFullError, CacheStoreError
from .logging import get_context_logger, log_cache_event
from .models import CacheEntry, GroundingSource, MovieData, ProviderId

logger = get_context_logger(__name__)

# Cache key prefix
KEY_PREFIX = "moviemonk:brief:"

DEFAULT_TTL_SECONDS = 6 * 60 * 60


class CacheStore:
    """Generic key-value store interface.

    Implementations raise ``CacheStoreError`` (or a subclass) when an
    operation cannot complete.
    """

    async def get(self, key: str) -> dict[str, Any] | None:
        """Get value from the store."""
        raise NotImplementedError

    async def set(self, key: str, value: dict[str, Any]) -> None:
        """Set value in the store."""
        raise NotImplementedError

    async def delete(self, key: str) -> bool:
        """Delete value from the store."""
        raise NotImplementedError

    async def keys(self, prefix: str) -> list[str]:
        """List keys starting with prefix."""
        raise NotImplementedError

    async def close(self) -> None:
        """Close the store connection."""
        pass


class InMemoryStore(CacheStore):
    """Dict-backed store for development, tests and the CLI.

    With ``max_entries`` set, writing a new key into a full store raises
    ``CacheFullError``; overwriting an existing key always succeeds.
    """

    def __init__(self, max_entries: int | None = None):
        self._data: dict[str, dict[str, Any]] = {}
        self._lock = asyncio.Lock()
        self.max_entries = max_entries

    async def get(self, key: str) -> dict[str, Any] | None:
        async with self._lock:
            return self._data.get(key)

    async def set(self, key: str, value: dict[str, Any]) -> None:
        async with self._lock:
            if (
                self.max_entries is not None
                and key not in self._data
                and len(self._data) >= self.max_entries
            ):
                raise CacheFullError(f"store is full ({self.max_entries} entries)")
            self._data[key] = value

    async def delete(self, key: str) -> bool:
        async with self._lock:
            return self._data.pop(key, None) is not None

    async def keys(self, prefix: str) -> list[str]:
        async with self._lock:
            return [k for k in self._data if k.startswith(prefix)]

    def __len__(self) -> int:
        return len(self._data)


class RedisStore(CacheStore):
    """Redis-backed store. Values are stored as JSON strings."""

    def __init__(self, redis_client):
        self._redis = redis_client

    async def get(self, key: str) -> dict[str, Any] | None:
        try:
            data = await self._redis.get(key)
        except Exception as e:
            raise CacheStoreError(f"Redis get failed: {e}") from e
        if not data:
            return None
        try:
            return json.loads(data)
        except json.JSONDecodeError as e:
            raise CacheStoreError(f"Corrupt cache value at {key}") from e

    async def set(self, key: str, value: dict[str, Any]) -> None:
        try:
            await self._redis.set(key, json.dumps(value, default=str))
        except Exception as e:
            raise CacheStoreError(f"Redis set failed: {e}") from e

    async def delete(self, key: str) -> bool:
        try:
            return await self._redis.delete(key) > 0
        except Exception as e:
            raise CacheStoreError(f"Redis delete failed: {e}") from e

    async def keys(self, prefix: str) -> list[str]:
        try:
            found = []
            async for key in self._redis.scan_iter(match=f"{prefix}*", count=100):
                found.append(key.decode() if isinstance(key, bytes) else key)
            return found
        except Exception as e:
            raise CacheStoreError(f"Redis scan failed: {e}") from e

    async def close(self) -> None:
        try:
            await self._redis.aclose()
        except Exception as e:
            logger.debug(f"Redis close error: {e}")


def normalize_query(query: str) -> str:
    """Lower-case and trim a query for use in a cache key."""
    return query.strip().lower()


def cache_key(query: str, provider: ProviderId | str) -> str:
    """Build the cache key for a (query, provider) pair."""
    provider = getattr(provider, "value", provider)
    return f"{KEY_PREFIX}{provider}:{normalize_query(query)}"


class ResponseCache:
    """TTL cache of briefs over a ``CacheStore``.

    Args:
        store: Backing key-value store
        ttl_seconds: Lifetime of an entry
        clock: Returns the current wall-clock time in epoch seconds
    """

    def __init__(
        self,
        store: CacheStore,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self.hits = 0
        self.misses = 0

    def _is_expired(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.created_at >= self.ttl_seconds

    async def _safe_delete(self, key: str) -> None:
        try:
            await self.store.delete(key)
        except CacheStoreError as e:
            logger.warning(f"Cache delete failed for {key}: {e}")

    async def get(self, query: str, provider: ProviderId) -> CacheEntry | None:
        """Look up a live entry.

        An expired or unreadable entry is deleted and reported as a miss.
        """
        provider = ProviderId(provider)
        key = cache_key(query, provider)
        try:
            raw = await self.store.get(key)
        except CacheStoreError as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            self.misses += 1
            return None

        if raw is None:
            self.misses += 1
            log_cache_event("miss", key, provider.value)
            return None

        try:
            entry = CacheEntry.model_validate(raw)
        except ValueError:
            logger.warning(f"Discarding unreadable cache entry {key}")
            await self._safe_delete(key)
            self.misses += 1
            return None

        if self._is_expired(entry):
            await self._safe_delete(key)
            self.misses += 1
            log_cache_event("expired", key, provider.value)
            return None

        self.hits += 1
        log_cache_event("hit", key, provider.value)
        return entry

    async def put(
        self,
        query: str,
        provider: ProviderId,
        result: MovieData,
        sources: list[GroundingSource] | None = None,
    ) -> bool:
        """Store a brief. Returns False if it could not be written.

        A failed write triggers one expiry sweep and a single retry.
        """
        provider = ProviderId(provider)
        key = cache_key(query, provider)
        entry = CacheEntry(
            result=result,
            sources=sources or [],
            created_at=self._clock(),
            normalized_query=normalize_query(query),
            provider=provider,
        )
        value = entry.model_dump(mode="json")

        try:
            await self.store.set(key, value)
            log_cache_event("write", key, provider.value)
            return True
        except CacheStoreError as e:
            logger.warning(f"Cache write failed for {key}, evicting expired entries: {e}")

        await self.evict_expired()
        try:
            await self.store.set(key, value)
            log_cache_event("write", key, provider.value)
            return True
        except CacheStoreError as e:
            logger.warning(f"Cache write retry failed for {key}, continuing uncached: {e}")
            return False

    async def evict_expired(self) -> int:
        """Delete every expired or unreadable entry. Returns the count removed."""
        try:
            keys = await self.store.keys(KEY_PREFIX)
        except CacheStoreError as e:
            logger.warning(f"Cache sweep failed: {e}")
            return 0

        evicted = 0
        for key in keys:
            try:
                raw = await self.store.get(key)
            except CacheStoreError as e:
                logger.warning(f"Cache read failed for {key}: {e}")
                continue
            if raw is None:
                continue
            try:
                expired = self._is_expired(CacheEntry.model_validate(raw))
            except ValueError:
                expired = True
            if expired:
                await self._safe_delete(key)
                evicted += 1

        if evicted:
            logger.info(f"Evicted {evicted} expired cache entries")
        return evicted

    async def clear(self) -> int:
        """Delete every brief entry. Returns the count removed."""
        try:
            keys = await self.store.keys(KEY_PREFIX)
        except CacheStoreError as e:
            logger.warning(f"Cache clear failed: {e}")
            return 0

        for key in keys:
            await self._safe_delete(key)
        logger.info(f"Cleared {len(keys)} cache entries")
        return len(keys)

    async def stats(self) -> dict[str, Any]:
        """Entry count and hit/miss counters."""
        try:
            entries = len(await self.store.keys(KEY_PREFIX))
        except CacheStoreError:
            entries = None
        return {
            "entries": entries,
            "hits": self.hits,
            "misses": self.misses,
            "ttl_seconds": self.ttl_seconds,
        }

    async def close(self) -> None:
        await self.store.close()


# Global cache instance
_cache: ResponseCache | None = None


async def get_cache() -> ResponseCache:
    """Get or create the response cache.

    Uses Redis when a URL is configured and reachable, in-memory otherwise.
    """
    global _cache

    if _cache is not None:
        return _cache

    settings = get_settings()
    store: CacheStore

    if settings.redis_url:
        try:
            import redis.asyncio as redis

            client = redis.from_url(settings.redis_url)
            await client.ping()
            store = RedisStore(client)
            logger.info("Using Redis cache backend")
        except Exception as e:
            logger.warning(f"Redis unavailable for caching: {e}")
            store = InMemoryStore()
    else:
        store = InMemoryStore()
        logger.info("Using in-memory cache backend")

    _cache = ResponseCache(store, ttl_seconds=settings.cache_ttl_seconds)
    return _cache


async def close_cache() -> None:
    """Close the cache connection."""
    global _cache
    if _cache:
        await _cache.close()
        _cache = None
