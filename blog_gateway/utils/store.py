"""Key/value store with per-entry TTL for gateway-wide mutable state.

Rate-limit counters and CSRF tokens live behind this interface so a single
process can keep them in memory while a multi-instance deployment points every
instance at Redis, without touching call sites.

Implementations:
    InMemoryStore: dict + threading.Lock, expiry checked on read, explicit sweep.
    RedisStore:    redis.asyncio client, JSON values, native key expiry.

Neither implementation offers multi-key transactions. Callers needing an atomic
read-modify-write on one key (the rate limiter) serialize it themselves.
"""
from __future__ import annotations

import json
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol

import redis
import redis.asyncio as aioredis

from .logger import get_logger

logger = get_logger(__name__)

Clock = Callable[[], float]


class Store(Protocol):
    async def get(self, key: str) -> Optional[Any]: ...

    async def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def sweep(self) -> int: ...


@dataclass
class _Entry:
    value: Any
    expires_at: Optional[float]


class InMemoryStore:
    """Process-local store. State is lost on restart and not shared between instances."""

    backend = "memory"

    def __init__(self, clock: Clock = time.time):
        self._clock = clock
        self._entries: Dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def _expired(self, entry: _Entry, now: float) -> bool:
        return entry.expires_at is not None and entry.expires_at <= now

    async def get(self, key: str) -> Optional[Any]:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._expired(entry, now):
                del self._entries[key]
                return None
            return entry.value

    async def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        expires_at = self._clock() + ttl_seconds if ttl_seconds is not None else None
        with self._lock:
            self._entries[key] = _Entry(value=value, expires_at=expires_at)

    async def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    async def sweep(self) -> int:
        """Drop expired entries; returns how many were removed."""
        now = self._clock()
        with self._lock:
            stale = [k for k, e in self._entries.items() if self._expired(e, now)]
            for k in stale:
                del self._entries[k]
        return len(stale)

    def __len__(self) -> int:
        return len(self._entries)


class RedisStore:
    """Redis-backed store. Values are JSON encoded; expiry is handled by Redis."""

    backend = "redis"

    def __init__(self, redis_url: str, key_prefix: str = "blog_gateway:"):
        self._redis_url = redis_url
        self._prefix = key_prefix
        self._client = aioredis.from_url(redis_url, decode_responses=True)

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> Optional[Any]:
        raw = await self._client.get(self._key(key))
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        payload = json.dumps(value)
        if ttl_seconds is not None:
            # PX needs a positive integer
            await self._client.set(self._key(key), payload, px=max(1, int(ttl_seconds * 1000)))
        else:
            await self._client.set(self._key(key), payload)

    async def delete(self, key: str) -> None:
        await self._client.delete(self._key(key))

    async def sweep(self) -> int:
        return 0

    async def close(self) -> None:
        await self._client.aclose()


def check_redis_health(redis_url: str, timeout: float = 2.0) -> bool:
    """Synchronous ping used once at startup to decide the store backend."""
    try:
        client = redis.from_url(redis_url, socket_connect_timeout=timeout)
        client.ping()
        client.close()
        return True
    except (redis.RedisError, OSError) as e:
        logger.warning("Redis health check failed", url=redis_url, error=str(e))
        return False


def create_store(settings: Dict[str, Any], clock: Clock = time.time) -> Store:
    """Build the configured store, falling back to memory when Redis is unreachable."""
    backend = str(settings.get("backend", "memory"))
    if backend == "redis":
        redis_url = str(settings.get("redis_url", "redis://localhost:6379/0"))
        timeout = float(settings.get("redis_health_check_timeout", 2.0))
        if check_redis_health(redis_url, timeout):
            logger.info("Using Redis-backed gateway store", url=redis_url)
            return RedisStore(redis_url, key_prefix=str(settings.get("redis_key_prefix", "blog_gateway:")))
        logger.warning("Redis store requested but unreachable; using in-memory store", url=redis_url)
    elif backend != "memory":
        logger.warning("Unknown store backend; using in-memory store", backend=backend)
    return InMemoryStore(clock=clock)


__all__ = ["Store", "InMemoryStore", "RedisStore", "create_store", "check_redis_health"]
