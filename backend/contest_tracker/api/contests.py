"""
Contest API routes
Upcoming contests (cache first), contest listing and lookups with solutions.
"""

from typing import Optional
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from contest_tracker.api.pagination import page_bounds, pagination_links
from contest_tracker.core.config import settings
from contest_tracker.core.database import get_session
from contest_tracker.core.security import limiter
from contest_tracker.models.contest import (
    Contest, ContestResponse, ContestStatus, NormalizedContest, Platform, utc_now,
)
from contest_tracker.models.solution import Solution, SolutionResponse
from contest_tracker.services.contest_cache import get_cached

logger = logging.getLogger(__name__)

router = APIRouter()

_PLATFORMS = {p.value.lower(): p for p in Platform}


def parse_platforms(raw: Optional[str]) -> set[Platform]:
    """Comma separated platform names, case-insensitive. Empty means all."""
    if not raw:
        return set()
    platforms = set()
    for name in raw.split(","):
        name = name.strip().lower()
        if not name:
            continue
        if name not in _PLATFORMS:
            raise HTTPException(status_code=400, detail=f"Unknown platform: {name}")
        platforms.add(_PLATFORMS[name])
    return platforms


async def load_upcoming(session: AsyncSession) -> list[NormalizedContest]:
    """Upcoming contests from the cache, or from the store on a miss."""
    now = utc_now()
    cached = await get_cached()
    if cached:
        return [c for c in cached if c.start_time >= now]

    logger.info("Upcoming contest cache miss, reading from database")
    result = await session.execute(
        select(Contest)
        .where(Contest.status == ContestStatus.UPCOMING, Contest.start_time >= now)
        .order_by(Contest.start_time.asc())
    )
    return [c.to_normalized() for c in result.scalars().all()]


async def upcoming_page(
    session: AsyncSession,
    platforms: set[Platform],
    search: Optional[str],
    page: int,
    limit: int,
) -> dict:
    contests = await load_upcoming(session)
    if platforms:
        contests = [c for c in contests if c.platform in platforms]
    if search:
        needle = search.lower()
        contests = [c for c in contests if needle in c.name.lower()]

    start, end = page_bounds(page, limit)
    data = contests[start:end]
    return {
        "success": True,
        "count": len(data),
        "total": len(contests),
        "pagination": pagination_links(page, limit, len(contests)),
        "data": data,
    }


async def _solutions_for(session: AsyncSession, contest_pk: UUID) -> list[SolutionResponse]:
    result = await session.execute(
        select(Solution).where(Solution.contest_id == contest_pk).order_by(Solution.created_at.desc())
    )
    return [SolutionResponse.from_solution(s) for s in result.scalars().all()]


# ============================================================================
# LISTING
# ============================================================================

@router.get("")
@limiter.limit(settings.RATE_LIMIT_READ)
async def list_contests(
    request: Request,
    platform: Optional[str] = None,
    status: Optional[ContestStatus] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
):
    """All tracked contests, newest first."""
    platforms = parse_platforms(platform)
    if status == ContestStatus.UPCOMING:
        return await upcoming_page(session, platforms, search, page, limit)

    filters = []
    if platforms:
        filters.append(Contest.platform.in_(list(platforms)))
    if status is not None:
        filters.append(Contest.status == status)
    if search:
        filters.append(func.lower(Contest.name).contains(search.lower(), autoescape=True))

    total = (await session.execute(
        select(func.count()).select_from(Contest).where(*filters)
    )).scalar_one()

    start, _ = page_bounds(page, limit)
    result = await session.execute(
        select(Contest)
        .where(*filters)
        .order_by(Contest.start_time.desc())
        .offset(start)
        .limit(limit)
    )
    data = [ContestResponse.model_validate(c, from_attributes=True) for c in result.scalars().all()]

    return {
        "success": True,
        "count": len(data),
        "total": total,
        "pagination": pagination_links(page, limit, total),
        "data": data,
    }


@router.get("/upcoming")
@limiter.limit(settings.RATE_LIMIT_READ)
async def get_upcoming_contests(
    request: Request,
    platform: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
):
    """Contests that have not started yet, soonest first."""
    return await upcoming_page(session, parse_platforms(platform), search, page, limit)


# ============================================================================
# LOOKUPS
# ============================================================================

@router.get("/contest-id")
@limiter.limit(settings.RATE_LIMIT_READ)
async def get_contest_by_contest_id(
    request: Request,
    contest_id: str = Query(..., min_length=1),
    session: AsyncSession = Depends(get_session),
):
    """Look a contest up by canonical id: cached upcoming list first, then the database."""
    cached = await get_cached() or []
    for contest in cached:
        if contest.contest_id == contest_id:
            return {"success": True, "data": contest}

    result = await session.execute(select(Contest).where(Contest.contest_id == contest_id))
    contest = result.scalars().first()
    if contest is None:
        raise HTTPException(status_code=404, detail="Contest not found")

    return {"success": True, "data": ContestResponse.model_validate(contest, from_attributes=True)}


@router.get("/{contest_pk}")
@limiter.limit(settings.RATE_LIMIT_READ)
async def get_contest(
    request: Request,
    contest_pk: UUID,
    session: AsyncSession = Depends(get_session),
):
    contest = await session.get(Contest, contest_pk)
    if contest is None:
        raise HTTPException(status_code=404, detail="Contest not found")

    return {
        "success": True,
        "data": {
            "contest": ContestResponse.model_validate(contest, from_attributes=True),
            "solutions": await _solutions_for(session, contest.id),
        },
    }


@router.get("/{contest_pk}/solutions")
@limiter.limit(settings.RATE_LIMIT_READ)
async def get_contest_solutions(
    request: Request,
    contest_pk: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
):
    """Solutions for one contest, newest first."""
    if await session.get(Contest, contest_pk) is None:
        raise HTTPException(status_code=404, detail="Contest not found")

    solutions = await _solutions_for(session, contest_pk)
    start, end = page_bounds(page, limit)
    data = solutions[start:end]
    return {
        "success": True,
        "count": len(data),
        "total": len(solutions),
        "pagination": pagination_links(page, limit, len(solutions)),
        "data": data,
    }
