"""Shared fixtures: file-backed SQLite store, in-memory Redis double, httpx mock clients."""

from datetime import timedelta
from typing import Any, Callable, Optional

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import select

from contest_tracker.core.database import create_engine, create_session_factory, create_tables
from contest_tracker.core.redis import set_redis_client
from contest_tracker.models.contest import Contest, ContestStatus, NormalizedContest, Platform, utc_now
from contest_tracker.services.contest_store import ContestStore


class FakeRedis:
    """Just the redis.asyncio surface the cache module uses"""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.expiry: dict[str, Optional[int]] = {}
        self.fail = False

    def _check(self):
        if self.fail:
            raise ConnectionError("redis is down")

    async def get(self, key: str) -> Optional[str]:
        self._check()
        return self.data.get(key)

    async def set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        self._check()
        self.data[key] = value
        self.expiry[key] = ex
        return True

    async def delete(self, key: str) -> int:
        self._check()
        return 1 if self.data.pop(key, None) is not None else 0

    async def ping(self) -> bool:
        self._check()
        return True

    async def aclose(self) -> None:
        pass


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'contests.db'}")
    await create_tables(engine)
    yield create_session_factory(engine)
    await engine.dispose()


@pytest.fixture
def store(session_factory) -> ContestStore:
    return ContestStore(session_factory)


@pytest.fixture
def fake_redis():
    redis = FakeRedis()
    set_redis_client(redis)
    yield redis
    set_redis_client(None)


@pytest.fixture
def no_redis():
    set_redis_client(None)
    yield
    set_redis_client(None)


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def make_contest(**overrides: Any) -> NormalizedContest:
    start = overrides.pop("start_time", utc_now() + timedelta(days=1))
    duration = overrides.pop("duration", 7200)
    fields = {
        "contest_id": "codeforces-round-950-div-2",
        "original_id": "1980",
        "name": "Codeforces Round 950 (Div. 2)",
        "platform": Platform.CODEFORCES,
        "start_time": start,
        "end_time": start + timedelta(seconds=duration),
        "duration": duration,
        "url": "https://codeforces.com/contest/1980",
        "status": ContestStatus.UPCOMING,
    }
    fields.update(overrides)
    return NormalizedContest(**fields)


async def all_contests(session_factory) -> list[Contest]:
    async with session_factory() as session:
        result = await session.execute(select(Contest).order_by(Contest.start_time))
        return list(result.scalars().all())
