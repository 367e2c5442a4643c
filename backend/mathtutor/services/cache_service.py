"""
Hybrid cache with Redis (production) and an in-process store (development/tests).

Values are wrapped in an envelope `{"data": ..., "expires_at": <epoch ms>}`.
Redis also gets a native TTL, but every read re-checks `expires_at` and
deletes entries that have outlived it.

The cache is never authoritative: every failure is logged and degrades to a
miss (or `False` for writes), so callers never have to handle cache errors.

Usage:
    cache = CacheService(redis_url=REDIS_URL)
    await cache.connect()

    await cache.set("user:123:history:1:10", history, ttl_seconds=300)
    history = await cache.get("user:123:history:1:10")
"""

import hashlib
import json
import logging
import threading
import time
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300


def _now_ms() -> int:
    return int(time.time() * 1000)


class MemoryStore:
    """Thread-safe in-process key/value store with native TTL support."""

    def __init__(self, clock: Callable[[], int] = _now_ms):
        self._data: Dict[str, Tuple[str, int]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            item = self._data.get(key)
            if item is None:
                return None
            value, expires_at = item
            if self._clock() >= expires_at:
                del self._data[key]
                return None
            return value

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        with self._lock:
            self._data[key] = (value, self._clock() + ttl_seconds * 1000)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def exists(self, key: str) -> bool:
        return self.get(key) is not None

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


class CacheService:
    """
    Envelope-based cache over Redis, falling back to an in-process store.

    The in-process store is used when no Redis URL is configured or the
    initial connection fails.
    """

    QUESTION_PREFIX = "question"
    USER_PREFIX = "user"

    def __init__(
        self,
        redis_url: Optional[str] = None,
        clock: Callable[[], int] = _now_ms,
    ):
        self._redis_url = redis_url
        self._redis: Optional[aioredis.Redis] = None
        self._memory = MemoryStore(clock=clock)
        self._clock = clock

    # =========================================================================
    # Connection management
    # =========================================================================

    async def connect(self) -> None:
        """Connect to Redis if configured. Never raises."""
        if not self._redis_url:
            logger.info("REDIS_URL not set - using in-memory cache")
            return

        try:
            client = aioredis.from_url(
                self._redis_url,
                decode_responses=True,
                socket_timeout=5,
                socket_connect_timeout=5,
            )
            await client.ping()
            self._redis = client
            logger.info("Redis cache connected successfully")
        except Exception as e:
            logger.warning(f"Redis connection failed, will use in-memory cache: {e}")
            self._redis = None

    async def disconnect(self) -> None:
        if self._redis is None:
            return
        try:
            await self._redis.aclose()
            logger.info("Redis client disconnected gracefully")
        except Exception as e:
            logger.error(f"Error disconnecting from Redis: {e}")
        finally:
            self._redis = None

    @property
    def backend(self) -> str:
        """Return current cache backend name."""
        return "redis" if self._redis is not None else "memory"

    @property
    def connected(self) -> bool:
        """True when Redis is connected. The memory store counts as degraded."""
        return self._redis is not None

    # =========================================================================
    # Key builders
    # =========================================================================

    @classmethod
    def question_key(cls, question_text: str) -> str:
        """Deterministic key for a question, ignoring case and surrounding whitespace."""
        normalized = question_text.strip().lower()
        digest = hashlib.sha256(normalized.encode("utf-8")).hexdigest()
        return f"{cls.QUESTION_PREFIX}:{digest}"

    @classmethod
    def history_key(cls, user_id: str, page: int = 1, limit: int = 10) -> str:
        return f"{cls.USER_PREFIX}:{user_id}:history:{page}:{limit}"

    # =========================================================================
    # Envelope helpers
    # =========================================================================

    def _wrap(self, value: Any, ttl_seconds: int) -> str:
        entry = {"data": value, "expires_at": self._clock() + ttl_seconds * 1000}
        return json.dumps(entry, default=str)

    def _unwrap(self, raw: Optional[str]) -> Tuple[Optional[Any], bool]:
        """Return (data, expired). Undecodable payloads count as expired."""
        if raw is None:
            return None, False
        try:
            entry = json.loads(raw)
            expires_at = entry["expires_at"]
            data = entry["data"]
        except (ValueError, TypeError, KeyError):
            return None, True
        if isinstance(expires_at, bool) or not isinstance(expires_at, (int, float)):
            return None, True
        if self._clock() > expires_at:
            return None, True
        return data, False

    # =========================================================================
    # Operations
    # =========================================================================

    async def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None on miss, expiry or error."""
        try:
            if self._redis is not None:
                raw = await self._redis.get(key)
            else:
                raw = self._memory.get(key)
        except Exception as e:
            logger.warning(f"Cache GET error for {key}: {e}")
            return None

        data, expired = self._unwrap(raw)
        if expired:
            await self.delete(key)
            return None
        return data

    async def set(self, key: str, value: Any, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> bool:
        """Store a value with a TTL. Returns False when the write did not happen."""
        ttl_seconds = max(1, int(ttl_seconds))
        try:
            payload = self._wrap(value, ttl_seconds)
            if self._redis is not None:
                await self._redis.set(key, payload, ex=ttl_seconds)
            else:
                self._memory.set(key, payload, ttl_seconds)
            return True
        except Exception as e:
            logger.warning(f"Cache SET error for {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        try:
            if self._redis is not None:
                await self._redis.delete(key)
                return True
            self._memory.delete(key)
            return True
        except Exception as e:
            logger.warning(f"Cache DELETE error for {key}: {e}")
            return False

    async def exists(self, key: str) -> bool:
        try:
            if self._redis is not None:
                return await self._redis.exists(key) == 1
            return self._memory.exists(key)
        except Exception as e:
            logger.warning(f"Cache EXISTS error for {key}: {e}")
            return False

    async def mget(self, keys: List[str]) -> List[Optional[Any]]:
        """Fetch several keys at once; misses and expired entries come back as None."""
        if not keys:
            return []
        try:
            if self._redis is not None:
                raws = await self._redis.mget(keys)
            else:
                raws = [self._memory.get(key) for key in keys]
        except Exception as e:
            logger.warning(f"Cache MGET error: {e}")
            return [None] * len(keys)

        results = []
        for key, raw in zip(keys, raws):
            data, expired = self._unwrap(raw)
            if expired:
                await self.delete(key)
            results.append(data)
        return results

    async def mset(self, entries: Iterable[Tuple[str, Any, Optional[int]]]) -> bool:
        """Store several `(key, value, ttl_seconds)` entries, pipelined on Redis."""
        entries = list(entries)
        if not entries:
            return False
        try:
            if self._redis is not None:
                pipe = self._redis.pipeline()
                for key, value, ttl in entries:
                    ttl = max(1, int(ttl or DEFAULT_TTL_SECONDS))
                    pipe.set(key, self._wrap(value, ttl), ex=ttl)
                await pipe.execute()
            else:
                for key, value, ttl in entries:
                    ttl = max(1, int(ttl or DEFAULT_TTL_SECONDS))
                    self._memory.set(key, self._wrap(value, ttl), ttl)
            return True
        except Exception as e:
            logger.warning(f"Cache MSET error: {e}")
            return False

    async def flush_all(self) -> bool:
        """Drop every entry in the current cache database. Use with caution."""
        try:
            if self._redis is not None:
                await self._redis.flushdb()
            else:
                self._memory.clear()
            logger.info("Cache cleared")
            return True
        except Exception as e:
            logger.warning(f"Cache FLUSH error: {e}")
            return False
