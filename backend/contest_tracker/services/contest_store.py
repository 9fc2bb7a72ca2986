"""
Contest Store
Persistence and reconciliation for contests and their solution videos.

Every source adapter writes through ContestStore.reconcile, which checks for
an existing row by the most specific upstream identity before inserting and
only ever moves a contest's status forward. The unique constraints on the
contests table are the backstop when two refresh cycles race.
"""

from enum import Enum
from typing import Any, Optional
from uuid import UUID
import logging

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from contest_tracker.models.contest import (
    Contest,
    ContestStatus,
    NormalizedContest,
    Platform,
    utc_now,
)
from contest_tracker.models.solution import Solution, VideoLink
from contest_tracker.services.errors import ReconciliationConflict

logger = logging.getLogger(__name__)


class ReconcileOutcome(str, Enum):
    INSERTED = "inserted"
    TRANSITIONED = "transitioned"
    UNCHANGED = "unchanged"
    CONFLICT = "conflict"


class ContestStore:
    """
    Narrow store interface used by the pipeline.

    Each call opens its own short-lived session so concurrent adapters never
    share one AsyncSession.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._sessions = session_factory

    # ==================== GENERIC OPERATIONS ====================

    async def find_one(self, *where: Any) -> Optional[Contest]:
        async with self._sessions() as session:
            result = await session.execute(select(Contest).where(*where).limit(1))
            return result.scalars().first()

    async def insert(self, contest: Contest) -> Contest:
        """Insert a contest; raises ReconciliationConflict on a uniqueness violation."""
        async with self._sessions() as session:
            session.add(contest)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise ReconciliationConflict(contest.platform.value, contest.original_id or contest.contest_id) from e
            await session.refresh(contest)
            return contest

    async def update_many(self, *where: Any, values: dict[str, Any]) -> int:
        async with self._sessions() as session:
            result = await session.execute(
                update(Contest).where(*where).values(**values, updated_at=utc_now())
            )
            await session.commit()
            return result.rowcount or 0

    async def update_one(self, contest_pk: UUID, **values: Any) -> Optional[Contest]:
        async with self._sessions() as session:
            contest = await session.get(Contest, contest_pk)
            if contest is None:
                return None
            for field, value in values.items():
                setattr(contest, field, value)
            contest.updated_at = utc_now()
            await session.commit()
            await session.refresh(contest)
            return contest

    async def has_records(self, platform: Platform) -> bool:
        return await self.find_one(Contest.platform == platform) is not None

    # ==================== RECONCILIATION ====================

    async def find_by_identity(self, contest: NormalizedContest) -> Optional[Contest]:
        """Look up a contest by native id when present, otherwise by canonical id."""
        field, value = contest.identity
        return await self.find_one(
            Contest.platform == contest.platform,
            getattr(Contest, field) == value,
        )

    async def reconcile(self, contest: NormalizedContest) -> ReconcileOutcome:
        """Insert the contest if unseen, otherwise advance its status (never regress)."""
        existing = await self.find_by_identity(contest)

        if existing is None:
            try:
                await self.insert(Contest.from_normalized(contest))
            except ReconciliationConflict as e:
                logger.warning(f"Skipping duplicate contest: {e}")
                return ReconcileOutcome.CONFLICT
            logger.debug(f"Inserted {contest.platform.value} contest {contest.contest_id} ({contest.status.value})")
            return ReconcileOutcome.INSERTED

        if existing.status.can_advance_to(contest.status):
            # Conditional on the stored status so a concurrent writer cannot be regressed
            moved = await self.update_many(
                Contest.id == existing.id,
                Contest.status == existing.status,
                values={"status": contest.status},
            )
            if moved:
                logger.info(
                    f"{contest.platform.value} contest {existing.contest_id}: "
                    f"{existing.status.value} -> {contest.status.value}"
                )
                return ReconcileOutcome.TRANSITIONED

        return ReconcileOutcome.UNCHANGED

    async def close_ongoing(self, platform: Platform) -> int:
        """Move every ongoing contest of a platform to past."""
        return await self.update_many(
            Contest.platform == platform,
            Contest.status == ContestStatus.ONGOING,
            values={"status": ContestStatus.PAST},
        )

    async def expire_upcoming(self, platform: Platform) -> int:
        """Move upcoming contests whose end time has passed straight to past."""
        return await self.update_many(
            Contest.platform == platform,
            Contest.status == ContestStatus.UPCOMING,
            Contest.end_time <= utc_now(),
            values={"status": ContestStatus.PAST},
        )

    # ==================== QUERIES ====================

    async def find_for_video(self, identifier: str) -> Optional[Contest]:
        """
        Contest whose canonical (or native) id contains the identifier, case-insensitively.
        An exact match on either id wins; otherwise the most recent partial match.
        """
        needle = identifier.lower()
        async with self._sessions() as session:
            exact = await session.execute(
                select(Contest)
                .where(
                    (func.lower(Contest.contest_id) == needle)
                    | (func.lower(Contest.original_id) == needle)
                )
                .order_by(Contest.start_time.desc())
                .limit(1)
            )
            contest = exact.scalars().first()
            if contest is not None:
                return contest

            partial = await session.execute(
                select(Contest)
                .where(
                    func.lower(Contest.contest_id).contains(needle, autoescape=True)
                    | func.lower(func.coalesce(Contest.original_id, "")).contains(needle, autoescape=True)
                )
                .order_by(Contest.start_time.desc())
                .limit(1)
            )
            return partial.scalars().first()

    # ==================== SOLUTION VIDEOS ====================

    async def add_solution_link(self, contest_pk: UUID, url: str) -> bool:
        """Append a video URL to the contest; returns False when it is already there."""
        async with self._sessions() as session:
            contest = await session.get(Contest, contest_pk, with_for_update=True)
            if contest is None or url in contest.solution_links:
                return False
            contest.solution_links = [*contest.solution_links, url]
            contest.updated_at = utc_now()
            await session.commit()
            return True

    async def attach_video(self, contest_pk: UUID, video: VideoLink) -> Solution:
        """Create the contest's solution from this video, or add the video to the existing one."""
        async with self._sessions() as session:
            result = await session.execute(
                select(Solution).where(Solution.contest_id == contest_pk).with_for_update()
            )
            solution = result.scalar_one_or_none()

            if solution is None:
                solution = Solution(contest_id=contest_pk, youtube_links=[video.model_dump()])
                session.add(solution)
            elif not solution.has_video(video.url):
                solution.youtube_links = [*solution.youtube_links, video.model_dump()]
                solution.updated_at = utc_now()
            else:
                return solution

            await session.commit()
            await session.refresh(solution)
            return solution
