"""
Keyed locks for serializing work on one identity.

With REDIS_URL configured the locks are Redis locks, so separate worker
processes serialize too. Without it, an in-process asyncio.Lock registry is
used, which is enough for a single worker.
"""

import asyncio
import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Dict, Iterable, Optional

import redis.asyncio as redis

from prospect_intel.config import settings

logger = logging.getLogger(__name__)


class KeyedLock:
    """In-process lock per key. Entries live only while someone holds or waits on them."""

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @property
    def active_keys(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def _held(self, key: str):
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]

    @asynccontextmanager
    async def hold(self, keys: Iterable[str]):
        # Sorted acquisition order avoids deadlock between overlapping key sets
        async with AsyncExitStack() as stack:
            for key in sorted(set(keys)):
                await stack.enter_async_context(self._held(key))
            yield


class RedisKeyedLock:
    """Redis lock per key, shared across processes."""

    def __init__(self, client: "redis.Redis", prefix: str = "prospect:lock", timeout: int = 30):
        self.client = client
        self.prefix = prefix
        self.timeout = timeout

    @asynccontextmanager
    async def hold(self, keys: Iterable[str]):
        async with AsyncExitStack() as stack:
            for key in sorted(set(keys)):
                lock = self.client.lock(
                    f"{self.prefix}:{key}",
                    timeout=self.timeout,
                    blocking_timeout=self.timeout
                )
                await stack.enter_async_context(lock)
            yield


_redis_client: Optional["redis.Redis"] = None


def get_redis_client() -> Optional["redis.Redis"]:
    """Shared Redis connection, or None when REDIS_URL is unset."""
    global _redis_client
    if not settings.REDIS_URL:
        return None
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True
        )
        logger.info("Redis connection initialized for identity locks")
    return _redis_client


async def close_redis_client():
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


def create_keyed_lock(prefix: str = "prospect:lock"):
    client = get_redis_client()
    if client is None:
        return KeyedLock()
    return RedisKeyedLock(client, prefix=prefix, timeout=settings.IDENTITY_LOCK_TIMEOUT_SECONDS)
