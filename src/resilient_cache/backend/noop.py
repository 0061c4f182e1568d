"""No-op cache used when caching is disabled or as a safe fallback."""

from typing import Any, Generic, TypeVar

from ..protocols import CacheCapability

V = TypeVar("V")


class NoOpCache(Generic[V]):
    """Cache that stores nothing.

    Every lookup is a miss and every write is dropped. Never raises, which
    makes it the usual fallback for SafeCacheWrapper.
    """

    capabilities = CacheCapability.STATS | CacheCapability.LIFECYCLE

    async def get(self, key: str) -> V | None:
        return None

    async def set(self, key: str, value: V) -> None:
        pass

    async def has(self, key: str) -> bool:
        return False

    async def delete(self, key: str) -> None:
        pass

    async def clear(self) -> None:
        pass

    async def get_stats(self) -> dict[str, Any]:
        return {"size": 0, "ttl": 0}

    async def destroy(self) -> None:
        pass
