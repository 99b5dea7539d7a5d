"""Resolution cache with in-memory default and optional Redis backend."""
from __future__ import annotations

import json
import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol

import redis

from .config import settings

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass(frozen=True)
class CacheEntry:
    value: Dict[str, Any]
    stored_at: float


class ResolutionCache(Protocol):
    ttl_seconds: int

    def get(self, key: str) -> Optional[CacheEntry]: ...

    def set(self, key: str, value: Dict[str, Any], now: float | None = None) -> None: ...

    def sweep(self, now: float | None = None) -> int: ...

    def clear(self) -> None: ...

    def size(self) -> int: ...


class InMemoryCache:
    def __init__(self, ttl_seconds: int, clock: Clock = time.time) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._store: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def _is_fresh(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.stored_at < self.ttl_seconds

    def get(self, key: str) -> Optional[CacheEntry]:
        now = self._clock()
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            if not self._is_fresh(entry, now):
                self._store.pop(key, None)
                return None
            return entry

    def set(self, key: str, value: Dict[str, Any], now: float | None = None) -> None:
        stored_at = self._clock() if now is None else now
        with self._lock:
            self._store[key] = CacheEntry(value=value, stored_at=stored_at)

    def sweep(self, now: float | None = None) -> int:
        now = self._clock() if now is None else now
        with self._lock:
            expired = [key for key, entry in self._store.items() if not self._is_fresh(entry, now)]
            for key in expired:
                del self._store[key]
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def size(self) -> int:
        with self._lock:
            return len(self._store)


class RedisCache:
    def __init__(
        self,
        client: redis.Redis,
        ttl_seconds: int,
        clock: Clock = time.time,
        prefix: str = "localstock:resolve:",
    ) -> None:
        self.client = client
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str) -> Optional[CacheEntry]:
        try:
            data = self.client.get(self._key(key))
        except redis.RedisError as exc:
            logger.warning("Redis get failed: %s", exc)
            return None
        if not data:
            return None
        try:
            payload = json.loads(data)
            entry = CacheEntry(value=payload["value"], stored_at=float(payload["stored_at"]))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError):
            return None
        # Redis expiry is second-granular; hold reads to the exact window.
        if self._clock() - entry.stored_at >= self.ttl_seconds:
            return None
        return entry

    def set(self, key: str, value: Dict[str, Any], now: float | None = None) -> None:
        stored_at = self._clock() if now is None else now
        body = json.dumps({"stored_at": stored_at, "value": value})
        try:
            self.client.setex(self._key(key), max(1, math.ceil(self.ttl_seconds)), body)
        except redis.RedisError as exc:
            logger.warning("Redis set failed: %s", exc)

    def sweep(self, now: float | None = None) -> int:
        # Redis expires keys on its own.
        return 0

    def clear(self) -> None:
        try:
            keys = list(self.client.scan_iter(match=f"{self._prefix}*"))
            if keys:
                self.client.delete(*keys)
        except redis.RedisError as exc:
            logger.warning("Redis clear failed: %s", exc)

    def size(self) -> int:
        try:
            return sum(1 for _ in self.client.scan_iter(match=f"{self._prefix}*"))
        except redis.RedisError as exc:
            logger.warning("Redis scan failed: %s", exc)
            return 0


_cache: ResolutionCache | None = None


def get_cache() -> ResolutionCache:
    global _cache
    if _cache is not None:
        return _cache
    ttl = settings.cache_ttl_seconds
    if settings.cache_backend != "redis":
        logger.info("Using in-memory resolution cache (ttl=%ss)", ttl)
        _cache = InMemoryCache(ttl)
        return _cache
    try:
        client = redis.Redis(host=settings.redis_host, port=settings.redis_port, decode_responses=False)
        client.ping()
        logger.info("Using Redis cache at %s:%s", settings.redis_host, settings.redis_port)
        _cache = RedisCache(client, ttl)
    except redis.RedisError:
        logger.warning("Redis not available, using in-memory cache")
        _cache = InMemoryCache(ttl)
    return _cache
