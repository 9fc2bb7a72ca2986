"""
Upcoming-contest cache.

A read-through accelerator only: every failure here degrades to a cache miss
and callers recompute from the store.
"""

from typing import Optional
import json
import logging

from contest_tracker.core.config import settings
from contest_tracker.core.redis import get_redis_client
from contest_tracker.models.contest import NormalizedContest
from contest_tracker.services.errors import CacheUnavailable

logger = logging.getLogger(__name__)


def _client():
    redis = get_redis_client()
    if redis is None:
        raise CacheUnavailable("Redis client is not initialized")
    return redis


async def cache_upcoming(contests: list[NormalizedContest]) -> bool:
    """Store the upcoming list sorted by start time. Returns False when the cache is unavailable."""
    ordered = sorted(contests, key=lambda c: c.start_time)
    payload = json.dumps([c.model_dump(mode="json") for c in ordered])
    try:
        await _client().set(settings.UPCOMING_CACHE_KEY, payload, ex=settings.CACHE_TTL_SECONDS)
    except Exception as e:
        logger.error(f"Error caching upcoming contests: {e}")
        return False
    logger.info(f"✅ {len(ordered)} upcoming contests cached")
    return True


async def get_cached() -> Optional[list[NormalizedContest]]:
    """Cached upcoming list, or None on a miss or any cache failure."""
    try:
        data = await _client().get(settings.UPCOMING_CACHE_KEY)
    except Exception as e:
        logger.warning(f"Upcoming contest cache unavailable: {e}")
        return None

    if not data:
        return None

    try:
        return [NormalizedContest.model_validate(item) for item in json.loads(data)]
    except (ValueError, TypeError) as e:
        logger.warning(f"Discarding unreadable upcoming contest cache: {e}")
        return None


async def clear_cache() -> None:
    try:
        await _client().delete(settings.UPCOMING_CACHE_KEY)
        logger.info("Upcoming contests cache cleared")
    except Exception as e:
        logger.error(f"Error clearing upcoming contest cache: {e}")
