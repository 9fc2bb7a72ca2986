"""HTTP API: upcoming contests (cache and database paths), lookups and votes."""

from datetime import timedelta
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from contest_tracker.core.database import get_session
from contest_tracker.main import app
from contest_tracker.models.contest import Contest, ContestStatus, Platform, utc_now
from contest_tracker.models.solution import VideoLink
from contest_tracker.services.contest_cache import cache_upcoming

from conftest import make_contest


@pytest_asyncio.fixture
async def api(session_factory, fake_redis):
    async def override_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.pop(get_session, None)


async def seed(store):
    now = utc_now()
    await store.reconcile(make_contest(start_time=now + timedelta(days=2)))
    await store.reconcile(make_contest(
        contest_id="weekly-contest-402", original_id=None, platform=Platform.LEETCODE,
        name="Weekly Contest 402", start_time=now + timedelta(days=1),
    ))
    await store.reconcile(make_contest(
        contest_id="codeforces-round-949-div-1", original_id="1979", name="Codeforces Round 949 (Div. 1)",
        start_time=now - timedelta(days=7), status=ContestStatus.PAST,
    ))
    return await store.find_one(Contest.contest_id == "codeforces-round-950-div-2")


@pytest.mark.asyncio
async def test_health(api):
    response = await api.get("/health")
    assert response.status_code == 200
    assert response.json()["services"]["redis"] == "up"
    assert response.json()["services"]["scheduler"] == "down"


@pytest.mark.asyncio
async def test_root_lists_platforms_and_jobs(api):
    response = await api.get("/")

    body = response.json()
    assert response.status_code == 200
    assert body["platforms"] == ["Codeforces", "CodeChef", "LeetCode"]
    assert body["jobs"] == []


@pytest.mark.asyncio
async def test_upcoming_falls_back_to_database(api, store):
    await seed(store)

    response = await api.get("/api/contests/upcoming")

    body = response.json()
    assert response.status_code == 200
    assert body["success"] is True
    assert [c["contest_id"] for c in body["data"]] == ["weekly-contest-402", "codeforces-round-950-div-2"]


@pytest.mark.asyncio
async def test_upcoming_served_from_cache(api, store):
    now = utc_now()
    await cache_upcoming([
        make_contest(contest_id="cached-only", start_time=now + timedelta(hours=5)),
        make_contest(contest_id="170", original_id="START170", platform=Platform.CODECHEF,
                     start_time=now + timedelta(hours=3)),
    ])

    response = await api.get("/api/contests/upcoming", params={"platform": "codechef,LeetCode"})

    assert [c["contest_id"] for c in response.json()["data"]] == ["170"]


@pytest.mark.asyncio
async def test_upcoming_search_and_pagination(api, store):
    await seed(store)

    first = (await api.get("/api/contests/upcoming", params={"limit": 1})).json()
    searched = (await api.get("/api/contests/upcoming", params={"search": "WEEKLY"})).json()

    assert first["count"] == 1
    assert first["pagination"] == {"next": {"page": 2, "limit": 1}}
    assert [c["contest_id"] for c in searched["data"]] == ["weekly-contest-402"]


@pytest.mark.asyncio
async def test_unknown_platform_is_rejected(api):
    response = await api.get("/api/contests/upcoming", params={"platform": "atcoder"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_contests_filters(api, store):
    await seed(store)

    past = (await api.get("/api/contests", params={"status": "past"})).json()
    codeforces = (await api.get("/api/contests", params={"platform": "Codeforces"})).json()

    assert [c["contest_id"] for c in past["data"]] == ["codeforces-round-949-div-1"]
    assert [c["contest_id"] for c in codeforces["data"]] == [
        "codeforces-round-950-div-2", "codeforces-round-949-div-1",
    ]
    assert codeforces["total"] == 2


@pytest.mark.asyncio
async def test_contest_by_contest_id(api, store):
    await seed(store)

    found = await api.get("/api/contests/contest-id", params={"contest_id": "codeforces-round-949-div-1"})
    missing = await api.get("/api/contests/contest-id", params={"contest_id": "nope"})

    assert found.json()["data"]["status"] == "past"
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_contest_with_solutions(api, store):
    contest = await seed(store)
    link = VideoLink(url="https://www.youtube.com/watch?v=abc", title="Editorial", thumbnail="https://i.ytimg.com/t.jpg")
    await store.attach_video(contest.id, link)

    response = await api.get(f"/api/contests/{contest.id}")
    solutions = await api.get(f"/api/contests/{contest.id}/solutions")

    data = response.json()["data"]
    assert data["contest"]["contest_id"] == "codeforces-round-950-div-2"
    assert data["solutions"][0]["youtube_links"][0]["url"] == link.url
    assert solutions.json()["count"] == 1


@pytest.mark.asyncio
async def test_missing_contest(api):
    assert (await api.get(f"/api/contests/{uuid4()}")).status_code == 404


@pytest.mark.asyncio
async def test_vote_increments(api, store):
    contest = await seed(store)
    link = VideoLink(url="https://www.youtube.com/watch?v=abc", title="Editorial", thumbnail="https://i.ytimg.com/t.jpg")
    solution = await store.attach_video(contest.id, link)

    await api.put(f"/api/solutions/{solution.id}/vote", json={"vote_type": "upvote"})
    await api.put(f"/api/solutions/{solution.id}/vote", json={"vote_type": "upvote"})
    response = await api.put(f"/api/solutions/{solution.id}/vote", json={"vote_type": "downvote"})

    assert response.status_code == 200
    assert response.json()["data"]["votes"] == {"upvotes": 2, "downvotes": 1}

    by_contest = await api.get("/api/solutions/contest-id/codeforces-round-950-div-2")
    assert by_contest.json()["data"]["id"] == str(solution.id)

    listed = await api.get("/api/solutions", params={"sort": "top"})
    assert listed.json()["count"] == 1


@pytest.mark.asyncio
async def test_vote_errors(api):
    missing = await api.put(f"/api/solutions/{uuid4()}/vote", json={"vote_type": "upvote"})
    invalid = await api.put(f"/api/solutions/{uuid4()}/vote", json={"vote_type": "meh"})

    assert missing.status_code == 404
    assert invalid.status_code == 422
