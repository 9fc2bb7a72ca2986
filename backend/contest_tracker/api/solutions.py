"""
Solution API routes
Solution listing, lookups by contest and voting.
"""

from typing import Literal
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from contest_tracker.api.pagination import page_bounds, pagination_links
from contest_tracker.core.config import settings
from contest_tracker.core.database import get_session
from contest_tracker.core.security import limiter
from contest_tracker.models.contest import Contest, utc_now
from contest_tracker.models.solution import Solution, SolutionResponse, VoteRequest, VoteType

logger = logging.getLogger(__name__)

router = APIRouter()

SORT_ORDERS = {
    "newest": Solution.created_at.desc(),
    "oldest": Solution.created_at.asc(),
    "top": Solution.upvotes.desc(),
}


@router.get("")
@limiter.limit(settings.RATE_LIMIT_READ)
async def list_solutions(
    request: Request,
    sort: Literal["newest", "oldest", "top"] = "newest",
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
):
    total = (await session.execute(select(func.count()).select_from(Solution))).scalar_one()

    start, _ = page_bounds(page, limit)
    result = await session.execute(
        select(Solution).order_by(SORT_ORDERS[sort]).offset(start).limit(limit)
    )
    data = [SolutionResponse.from_solution(s) for s in result.scalars().all()]

    return {
        "success": True,
        "count": len(data),
        "total": total,
        "pagination": pagination_links(page, limit, total),
        "data": data,
    }


@router.get("/contest-id/{contest_id}")
@limiter.limit(settings.RATE_LIMIT_READ)
async def get_solution_by_contest_id(
    request: Request,
    contest_id: str,
    session: AsyncSession = Depends(get_session),
):
    """Solution for a contest given its canonical id."""
    result = await session.execute(
        select(Solution)
        .join(Contest, Solution.contest_id == Contest.id)
        .where(Contest.contest_id == contest_id)
        .order_by(Contest.start_time.desc())
    )
    solution = result.scalars().first()
    if solution is None:
        raise HTTPException(status_code=404, detail="No solution found for this contest")

    return {"success": True, "data": SolutionResponse.from_solution(solution)}


@router.get("/{solution_id}")
@limiter.limit(settings.RATE_LIMIT_READ)
async def get_solution(
    request: Request,
    solution_id: UUID,
    session: AsyncSession = Depends(get_session),
):
    solution = await session.get(Solution, solution_id)
    if solution is None:
        raise HTTPException(status_code=404, detail="Solution not found")

    return {"success": True, "data": SolutionResponse.from_solution(solution)}


@router.put("/{solution_id}/vote")
@limiter.limit(settings.RATE_LIMIT_VOTE)
async def vote_solution(
    request: Request,
    solution_id: UUID,
    vote: VoteRequest,
    session: AsyncSession = Depends(get_session),
):
    """Count one up or down vote with a single UPDATE."""
    column = Solution.upvotes if vote.vote_type == VoteType.UPVOTE else Solution.downvotes
    result = await session.execute(
        update(Solution)
        .where(Solution.id == solution_id)
        .values({column.key: column + 1, "updated_at": utc_now()})
    )
    if result.rowcount == 0:
        await session.rollback()
        raise HTTPException(status_code=404, detail="Solution not found")
    await session.commit()

    solution = await session.get(Solution, solution_id, populate_existing=True)
    logger.info(f"Recorded {vote.vote_type.value} on solution {solution_id}")
    return {"success": True, "data": SolutionResponse.from_solution(solution)}
