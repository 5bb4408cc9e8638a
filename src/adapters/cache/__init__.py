from .memory_store import InMemoryCacheStore
from .redis_store import RedisCacheStore

__all__ = [
    "InMemoryCacheStore",
    "RedisCacheStore",
]
