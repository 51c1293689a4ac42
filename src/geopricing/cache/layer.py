"""Read-through cache over a key-value store.

The layer never originates errors of its own: a store that cannot be reached
behaves as a miss on read and the write is skipped. Concurrent misses on the
same key each run the compute function; whichever write lands last wins.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

import pydantic
from pydantic import TypeAdapter
from redis.exceptions import RedisError

from geopricing.cache.keys import CacheCategory
from geopricing.cache.store import CacheStore
from geopricing.metrics import record_cache_lookup, record_cache_store_error

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Failures of the store itself; anything else raised by a store is a bug
STORE_ERRORS = (RedisError, ConnectionError, OSError, TimeoutError)


@dataclass(frozen=True)
class CacheResult(Generic[T]):
    value: T
    cached: bool


class CacheLayer:
    def __init__(self, store: CacheStore):
        self.store = store
        self.requests = 0
        self.hits = 0
        self.misses = 0

    async def get_or_compute(
        self,
        key: str,
        compute: Callable[[], Awaitable[T]],
        ttl_seconds: int,
        adapter: TypeAdapter[T],
        category: CacheCategory,
    ) -> CacheResult[T]:
        """Return the cached value for ``key`` or compute and store it.

        Errors raised by ``compute`` propagate unchanged and nothing is
        written. A stored payload that no longer matches ``adapter`` is
        treated as a miss and overwritten.
        """
        self.requests += 1

        cached = await self._read(key, adapter)
        if cached is not None:
            self.hits += 1
            record_cache_lookup(category.value, hit=True)
            return CacheResult(value=cached, cached=True)

        self.misses += 1
        record_cache_lookup(category.value, hit=False)

        value = await compute()
        await self._write(key, adapter.dump_json(value).decode("utf-8"), ttl_seconds)
        return CacheResult(value=value, cached=False)

    async def _read(self, key: str, adapter: TypeAdapter[T]) -> T | None:
        try:
            raw = await self.store.get(key)
        except STORE_ERRORS as e:
            logger.error(f"Cache read failed for {key}: {e}")
            record_cache_store_error("get")
            return None

        if raw is None:
            return None

        try:
            return adapter.validate_json(raw)
        except pydantic.ValidationError:
            logger.warning(f"Discarding undecodable cache entry {key}")
            return None

    async def _write(self, key: str, payload: str, ttl_seconds: int) -> None:
        try:
            await self.store.set(key, payload, ttl_seconds)
        except STORE_ERRORS as e:
            logger.error(f"Cache write failed for {key}: {e}")
            record_cache_store_error("set")

    async def ping(self) -> bool:
        try:
            return await self.store.ping()
        except STORE_ERRORS:
            return False

    def get_cache_stats(self) -> dict[str, float | int]:
        hit_rate = self.hits / self.requests if self.requests > 0 else 0.0
        return {
            "requests": self.requests,
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": hit_rate,
        }

    def clear_stats(self) -> None:
        self.requests = 0
        self.hits = 0
        self.misses = 0
