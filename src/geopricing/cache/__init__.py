from geopricing.cache.keys import CacheCategory, TTLPolicy
from geopricing.cache.layer import CacheLayer, CacheResult
from geopricing.cache.store import CacheStore, InMemoryCacheStore, RedisCacheStore

__all__ = [
    "CacheCategory",
    "CacheLayer",
    "CacheResult",
    "CacheStore",
    "InMemoryCacheStore",
    "RedisCacheStore",
    "TTLPolicy",
]
