"""
Shared Redis client accessor.

The upcoming-contest cache and the health endpoint import the client from here
so the lifespan hook in main.py stays the only owner of the connection.
"""

import redis.asyncio as aioredis
from typing import Optional
import logging

logger = logging.getLogger(__name__)

_redis_client: Optional[aioredis.Redis] = None


async def init_redis(url: str) -> aioredis.Redis:
    """Connect and ping Redis. Leaves the shared client unset when the server is unreachable."""
    global _redis_client
    client = aioredis.from_url(url, encoding="utf-8", decode_responses=True)
    try:
        await client.ping()
    except Exception:
        await client.aclose()
        raise
    _redis_client = client
    return _redis_client


def get_redis_client() -> Optional[aioredis.Redis]:
    """Get the shared Redis client. Returns None if not initialized."""
    return _redis_client


def set_redis_client(client: Optional[aioredis.Redis]) -> None:
    """Swap the shared client (tests inject an in-memory double here)."""
    global _redis_client
    _redis_client = client


async def close_redis() -> None:
    """Close the shared Redis connection. Called during app lifespan shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None
