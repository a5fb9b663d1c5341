"""Cache stores for carrier catalog data.

This module provides the key/value stores the catalog provider reads
through:
- ``CacheService``: Redis-backed store shared by all worker processes
- ``MemoryCache``: in-process store for single-process deployments and tests

Both serialize values as JSON and expose the same ``get``/``set``/``delete``
coroutines. Store failures are logged and reported as a miss or a failed
write, never raised.
"""

import json
import logging
import time
from typing import TYPE_CHECKING, Any, Protocol, cast

import redis.asyncio as redis
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from redis.asyncio import Redis as AsyncRedis
else:
    AsyncRedis = Any


class CacheStore(Protocol):
    """Key/value store used by the catalog provider."""

    async def get(self, key: str) -> Any | None:
        ...

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        ...

    async def delete(self, key: str) -> bool:
        ...


class CacheConfig(BaseSettings):
    """Redis cache configuration."""

    model_config = SettingsConfigDict(env_prefix="RP_CACHE_")

    redis_url: str = Field(default="redis://localhost:6379", description="Redis server URL")
    key_prefix: str = Field(default="rp_shipping", description="Namespace for all keys")
    default_ttl: int | None = Field(default=None, description="TTL in seconds, None means no expiry")
    socket_timeout: float = Field(default=5.0, description="Redis socket timeout in seconds")
    enabled: bool = Field(default=True, description="Enable/disable caching")


class CacheService:
    """Redis-backed cache store.

    Keys are namespaced with ``config.key_prefix``. When Redis is not
    reachable every read is a miss and every write fails softly, so callers
    fall back to the external source.
    """

    def __init__(self, config: CacheConfig):
        """Initialize the cache service.

        Args:
            config: Redis connection configuration.
        """
        self.config = config
        self._redis: AsyncRedis | None = None
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    def _get_client(self) -> AsyncRedis | None:
        """Return active Redis client if connected."""
        if not self._connected or self._redis is None:
            return None
        return self._redis

    async def connect(self) -> bool:
        """Connect to the Redis server.

        Returns:
            True if the connection succeeded, False otherwise.
        """
        if not self.config.enabled:
            return False

        try:
            client = redis.from_url(
                self.config.redis_url,
                decode_responses=True,
                retry_on_timeout=True,
                health_check_interval=30,
                socket_connect_timeout=self.config.socket_timeout,
                socket_timeout=self.config.socket_timeout,
            )

            async_client = cast(AsyncRedis, client)
            await async_client.ping()
            self._redis = async_client
            self._connected = True
            logger.info("Connected to Redis")
            return True

        except Exception as e:
            logger.warning(f"Could not connect to Redis: {e}")
            self._connected = False
            return False

    def _generate_key(self, key: str) -> str:
        return f"{self.config.key_prefix}:{key}"

    async def get(self, key: str) -> Any | None:
        """Read a cached value.

        Args:
            key: Cache key without namespace.

        Returns:
            Decoded JSON value, or None on a miss or store error.
        """
        client = self._get_client()
        if client is None:
            return None

        try:
            cached = await client.get(self._generate_key(key))

            if cached is None:
                logger.debug(f"Cache miss: {key}")
                return None

            logger.debug(f"Cache hit: {key}")
            return json.loads(cached)

        except Exception as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Store a value as JSON.

        Args:
            key: Cache key without namespace.
            value: JSON-serializable value.
            ttl: Expiry in seconds, falls back to ``config.default_ttl``.

        Returns:
            True if the value was stored.
        """
        client = self._get_client()
        if client is None:
            return False

        ttl = ttl if ttl is not None else self.config.default_ttl

        try:
            payload = json.dumps(value, default=str, ensure_ascii=False)
            if ttl:
                await client.setex(self._generate_key(key), ttl, payload)
            else:
                await client.set(self._generate_key(key), payload)

            logger.debug(f"Cached {key} (ttl={ttl})")
            return True

        except Exception as e:
            logger.warning(f"Cache write failed for {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        """Remove one key.

        Returns:
            True if a key was removed.
        """
        client = self._get_client()
        if client is None:
            return False

        try:
            deleted = int(await client.delete(self._generate_key(key)))
            return deleted > 0

        except Exception as e:
            logger.warning(f"Cache delete failed for {key}: {e}")
            return False

    async def invalidate_pattern(self, pattern: str) -> int:
        """Remove keys matching a pattern.

        Args:
            pattern: Glob pattern without namespace (e.g. "russian_post_category:*").

        Returns:
            Number of removed keys.
        """
        client = self._get_client()
        if client is None:
            return 0

        try:
            keys = cast(list[str], await client.keys(self._generate_key(pattern)))
            if keys:
                deleted = int(await client.delete(*keys))
                logger.info(f"Removed {deleted} keys matching {pattern}")
                return deleted
            return 0

        except Exception as e:
            logger.warning(f"Pattern invalidation failed for {pattern}: {e}")
            return 0

    async def close(self) -> None:
        """Close the Redis connection."""
        client = self._get_client()
        if client:
            try:
                await client.aclose()
                logger.info("Redis connection closed")
            except Exception as e:
                logger.warning(f"Error closing Redis connection: {e}")
            finally:
                self._connected = False
                self._redis = None


class MemoryCache:
    """In-process cache store with optional per-key expiry."""

    def __init__(self, default_ttl: int | None = None) -> None:
        self.default_ttl = default_ttl
        self._data: dict[str, tuple[str, float | None]] = {}

    async def get(self, key: str) -> Any | None:
        entry = self._data.get(key)
        if entry is None:
            logger.debug(f"Cache miss: {key}")
            return None

        payload, expires_at = entry
        if expires_at is not None and expires_at <= time.monotonic():
            del self._data[key]
            logger.debug(f"Cache entry expired: {key}")
            return None

        logger.debug(f"Cache hit: {key}")
        return json.loads(payload)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        ttl = ttl if ttl is not None else self.default_ttl
        expires_at = time.monotonic() + ttl if ttl else None
        self._data[key] = (json.dumps(value, default=str, ensure_ascii=False), expires_at)
        return True

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)
