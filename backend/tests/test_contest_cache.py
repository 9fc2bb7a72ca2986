import json
from datetime import timedelta

import pytest

from contest_tracker.core.config import settings
from contest_tracker.models.contest import Platform, utc_now
from contest_tracker.services.contest_cache import cache_upcoming, clear_cache, get_cached

from conftest import make_contest


def three_contests():
    now = utc_now()
    return [
        make_contest(contest_id="c", original_id="3", start_time=now + timedelta(days=3)),
        make_contest(contest_id="a", original_id="1", start_time=now + timedelta(days=1)),
        make_contest(contest_id="weekly-contest-402", original_id=None, platform=Platform.LEETCODE,
                     start_time=now + timedelta(days=2)),
    ]


@pytest.mark.asyncio
async def test_cache_is_sorted_by_start_time(fake_redis):
    assert await cache_upcoming(three_contests())

    cached = await get_cached()

    assert [c.contest_id for c in cached] == ["a", "weekly-contest-402", "c"]
    assert cached[1].platform == Platform.LEETCODE
    assert fake_redis.expiry[settings.UPCOMING_CACHE_KEY] == settings.CACHE_TTL_SECONDS


@pytest.mark.asyncio
async def test_cached_payload_is_plain_json(fake_redis):
    await cache_upcoming(three_contests())

    payload = json.loads(fake_redis.data[settings.UPCOMING_CACHE_KEY])

    assert payload[0]["contest_id"] == "a"
    assert payload[0]["platform"] == "Codeforces"
    assert payload[0]["status"] == "upcoming"


@pytest.mark.asyncio
async def test_miss_returns_none(fake_redis):
    assert await get_cached() is None


@pytest.mark.asyncio
async def test_unreadable_entry_is_a_miss(fake_redis):
    fake_redis.data[settings.UPCOMING_CACHE_KEY] = "{not json"
    assert await get_cached() is None

    fake_redis.data[settings.UPCOMING_CACHE_KEY] = json.dumps([{"contest_id": "x"}])
    assert await get_cached() is None


@pytest.mark.asyncio
async def test_redis_failure_is_a_miss(fake_redis):
    fake_redis.fail = True

    assert await cache_upcoming(three_contests()) is False
    assert await get_cached() is None
    await clear_cache()


@pytest.mark.asyncio
async def test_no_client_is_a_miss(no_redis):
    assert await cache_upcoming(three_contests()) is False
    assert await get_cached() is None


@pytest.mark.asyncio
async def test_clear_cache(fake_redis):
    await cache_upcoming(three_contests())
    await clear_cache()
    assert await get_cached() is None
