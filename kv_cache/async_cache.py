import asyncio
from typing import Any

from kv_cache.cache import CacheEntry, FileCache


# Awaitable front for FileCache; each call runs the file work in a worker thread.
class AsyncFileCache:
    def __init__(self, cache: FileCache):
        self.cache = cache

    async def lookup(self, key: str) -> CacheEntry | None:
        return await asyncio.to_thread(self.cache.lookup, key)

    async def get(self, key: str, default: Any = None) -> Any:
        return await asyncio.to_thread(self.cache.get, key, default)

    async def set(self, key: str, data: Any, ttl=None) -> CacheEntry:
        return await asyncio.to_thread(self.cache.set, key, data, ttl)

    async def clear(self, key: str) -> bool:
        return await asyncio.to_thread(self.cache.clear, key)

    async def clear_all(self) -> bool:
        return await asyncio.to_thread(self.cache.clear_all)
