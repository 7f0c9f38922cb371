"""Key/value storage backends with per-key expiry.

Three implementations share one contract:
- RedisBackend: redis.asyncio over a REDIS_URL connection
- UpstashRestBackend: Upstash Redis REST API over httpx
- InMemoryBackend: process-local dict, used when nothing remote is configured

create_backend() picks one at startup from configuration.
"""

import asyncio
import contextlib
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable

import httpx
import redis.asyncio as aioredis
from redis.exceptions import RedisError

from lead_store.config import LeadStoreConfig
from lead_store.errors import BackendUnavailable

logger = logging.getLogger("lead-handoff-store")


class StorageBackend(ABC):
    """Key/value store where every value carries a TTL."""

    name: str = "abstract"

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store value under key, replacing any previous value."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the live value for key, or None if absent or expired."""

    async def aclose(self) -> None:
        """Release network resources."""
        return None


# =============================================================================
# Remote: Redis protocol
# =============================================================================


class RedisBackend(StorageBackend):
    """Redis backend. Expiry is enforced by the server via SET ... EX."""

    name = "redis"

    def __init__(
        self,
        url: str | None = None,
        *,
        timeout_seconds: float = 5.0,
        client: aioredis.Redis | None = None,
    ):
        if client is None:
            if not url:
                raise ValueError("RedisBackend needs a url or a client")
            client = aioredis.from_url(
                url,
                decode_responses=True,
                socket_timeout=timeout_seconds,
                socket_connect_timeout=timeout_seconds,
            )
        self._client = client

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self._client.set(key, value, ex=ttl_seconds)
        except (RedisError, OSError) as e:
            raise BackendUnavailable(f"Redis SET failed for {key}: {e!s}") from e

    async def get(self, key: str) -> str | None:
        try:
            value = await self._client.get(key)
        except (RedisError, OSError) as e:
            raise BackendUnavailable(f"Redis GET failed for {key}: {e!s}") from e
        if isinstance(value, (bytes, bytearray)):
            value = value.decode()
        return value

    async def aclose(self) -> None:
        await self._client.aclose()


# =============================================================================
# Remote: Upstash REST
# =============================================================================


class UpstashRestBackend(StorageBackend):
    """Upstash Redis over its REST API.

    Commands are POSTed as JSON arrays, e.g. ["SET", key, value, "EX", 60].
    Responses are {"result": ...} on success and {"error": "..."} on failure.
    """

    name = "upstash-rest"

    def __init__(
        self,
        url: str,
        token: str,
        *,
        timeout_seconds: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ):
        self._client = client or httpx.AsyncClient(
            base_url=url.rstrip("/"),
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout_seconds,
        )

    async def _command(self, *args: str | int) -> object:
        try:
            response = await self._client.post("/", json=list(args))
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise BackendUnavailable(f"Upstash {args[0]} failed: {e!s}") from e

        if not isinstance(data, dict):
            raise BackendUnavailable(f"Upstash {args[0]} returned an unexpected body")

        if response.status_code >= 400 or "error" in data:
            error = data.get("error", f"HTTP {response.status_code}")
            raise BackendUnavailable(f"Upstash {args[0]} failed: {error}")

        return data.get("result")

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._command("SET", key, value, "EX", ttl_seconds)

    async def get(self, key: str) -> str | None:
        result = await self._command("GET", key)
        return None if result is None else str(result)

    async def aclose(self) -> None:
        await self._client.aclose()


# =============================================================================
# In-process fallback
# =============================================================================


class InMemoryBackend(StorageBackend):
    """Process-local store with lazy expiry and an optional periodic sweep.

    All operations are protected by asyncio.Lock. Nothing survives a restart
    and nothing is shared between worker processes.
    """

    name = "memory"

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._entries: dict[str, tuple[str, float]] = {}
        self._clock = clock
        self._lock = asyncio.Lock()
        self._cleanup_task: asyncio.Task | None = None

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        async with self._lock:
            self._entries[key] = (value, self._clock() + ttl_seconds)

    async def get(self, key: str) -> str | None:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    async def count(self) -> int:
        """Count stored entries, including expired ones not yet swept."""
        async with self._lock:
            return len(self._entries)

    async def cleanup_expired(self) -> int:
        """Remove expired entries. Returns count of removed entries."""
        async with self._lock:
            now = self._clock()
            expired = [k for k, (_, exp) in self._entries.items() if now >= exp]
            for key in expired:
                del self._entries[key]
            return len(expired)

    async def start_cleanup_task(self, interval_seconds: int = 60) -> None:
        """Start background cleanup task."""
        if self._cleanup_task is None:
            self._cleanup_task = asyncio.create_task(
                self._periodic_cleanup(interval_seconds)
            )

    async def stop_cleanup_task(self) -> None:
        """Stop background cleanup task."""
        if self._cleanup_task:
            self._cleanup_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._cleanup_task
            self._cleanup_task = None

    async def _periodic_cleanup(self, interval_seconds: int) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            removed = await self.cleanup_expired()
            if removed > 0:
                logger.info(f"Removed {removed} expired lead entries")

    async def aclose(self) -> None:
        await self.stop_cleanup_task()


# =============================================================================
# Selection
# =============================================================================


def create_backend(config: LeadStoreConfig) -> StorageBackend:
    """Pick the backend once, based on which connection settings are present.

    Unusable remote settings are logged and skipped, never fatal.
    """
    if config.has_redis:
        try:
            backend = RedisBackend(config.redis_url, timeout_seconds=config.timeout_seconds)
        except ValueError as e:
            logger.error(f"Invalid REDIS_URL, not using Redis: {e}")
        else:
            logger.info("Lead store backend: Redis")
            return backend

    if config.has_upstash_rest:
        try:
            backend = UpstashRestBackend(
                config.upstash_rest_url,
                config.upstash_rest_token,
                timeout_seconds=config.timeout_seconds,
            )
        except (ValueError, httpx.InvalidURL) as e:
            logger.error(f"Invalid UPSTASH_REDIS_REST_URL, not using Upstash: {e}")
        else:
            logger.info("Lead store backend: Upstash REST")
            return backend

    logger.warning(
        "No usable REDIS_URL or UPSTASH_REDIS_REST_URL/TOKEN configured - "
        "using in-memory lead store (not persistent, single process only)"
    )
    return InMemoryBackend()
