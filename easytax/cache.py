"""
cache.py — key-value persistence for EasyTax.

The core only needs get(key) -> str | None and set(key, str); everything is
an opaque serialised blob, last write wins, no TTL, no cross-key atomicity.

Implementations:
  RedisKeyValueStore     — redis.asyncio client, pool created once in lifespan
  InMemoryKeyValueStore  — dict-backed, for local runs and tests

Key namespace (one key per session per blob):
  itr_data:{session_id}    → raw ITR wizard draft
  gst_data:{session_id}    → raw GST wizard draft
  itr_report:{session_id}  → last ITR report snapshot
  gst_report:{session_id}  → last GST report snapshot
  tax_plan:{session_id}    → last tax plan snapshot

Logs only keys (which carry session ids), never values.
"""
import logging
from typing import Optional, Protocol

import redis.asyncio as aioredis

from easytax.config import settings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Key prefix constants
# ---------------------------------------------------------------------------
ITR_DRAFT_PREFIX = "itr_data"
GST_DRAFT_PREFIX = "gst_data"
ITR_REPORT_PREFIX = "itr_report"
GST_REPORT_PREFIX = "gst_report"
TAX_PLAN_PREFIX = "tax_plan"


def make_key(prefix: str, session_id: str) -> str:
    """Build a namespaced key: {prefix}:{session_id}"""
    return f"{prefix}:{session_id}"


# ---------------------------------------------------------------------------
# Store protocol + implementations
# ---------------------------------------------------------------------------

class KeyValueStore(Protocol):
    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str) -> None: ...

    async def close(self) -> None: ...


class RedisKeyValueStore:
    def __init__(self, client: aioredis.Redis) -> None:
        self._client = client

    async def get(self, key: str) -> Optional[str]:
        return await self._client.get(key)

    async def set(self, key: str, value: str) -> None:
        await self._client.set(key, value)
        logger.info("Stored key=%s bytes=%d", key, len(value))

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("Redis connection pool closed")


class InMemoryKeyValueStore:
    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value
        logger.debug("Stored in-memory key=%s bytes=%d", key, len(value))

    async def close(self) -> None:
        self._data.clear()


# ---------------------------------------------------------------------------
# Factory: called once in lifespan
# ---------------------------------------------------------------------------

async def create_redis_pool() -> aioredis.Redis:
    """
    Create and return an async Redis connection pool.
    Verifies connectivity with PING before returning.
    """
    client = aioredis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=20,
    )
    await client.ping()
    logger.info("Redis connection pool established at %s", settings.redis_url)
    return client


async def create_store() -> KeyValueStore:
    """Build the store selected by settings.store_backend."""
    if settings.store_backend == "memory":
        logger.info("Using in-memory key-value store")
        return InMemoryKeyValueStore()
    return RedisKeyValueStore(await create_redis_pool())
