"""
Source adapter base class.

An adapter reads one platform's contest listing, keeps the in-scope contests,
splits them by upstream phase and writes them through ContestStore. Only the
upcoming contests are returned; they feed the upcoming-contest cache.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Any, AsyncIterator, Optional
import json
import logging

import httpx
from pydantic import ValidationError
from sqlmodel import SQLModel

from contest_tracker.core.config import settings
from contest_tracker.models.contest import ContestStatus, NormalizedContest, Platform
from contest_tracker.services.contest_store import ContestStore, ReconcileOutcome
from contest_tracker.services.errors import UpstreamFetchError

logger = logging.getLogger(__name__)

PAYLOAD_EXCERPT_LENGTH = 200


def from_timestamp(seconds: int) -> datetime:
    """Unix seconds -> UTC datetime."""
    return datetime.fromtimestamp(seconds, UTC)


def excerpt(payload: Any) -> str:
    text = payload if isinstance(payload, str) else json.dumps(payload, default=str)
    return text[:PAYLOAD_EXCERPT_LENGTH]


@dataclass
class ContestPhases:
    """One platform listing split by upstream phase"""
    upcoming: list[NormalizedContest] = field(default_factory=list)
    ongoing: list[NormalizedContest] = field(default_factory=list)
    finished: list[NormalizedContest] = field(default_factory=list)


class SourceAdapter(ABC):
    """
    Base class for the per-platform contest sources.

    Subclasses provide the raw record model, the listing fetch and the
    record -> NormalizedContest mapping; fetch_upcoming and
    fetch_past_contests are shared.
    """

    platform: Platform
    raw_model: type[SQLModel]

    def __init__(
        self,
        client: httpx.AsyncClient,
        store: ContestStore,
        backfill_stop_after: Optional[int] = None,
    ):
        self.client = client
        self.store = store
        self.backfill_stop_after = backfill_stop_after or settings.BACKFILL_STOP_AFTER

    @property
    def name(self) -> str:
        return self.platform.value

    # ==================== UPSTREAM ====================

    async def _request_json(self, method: str, url: str, **kwargs: Any) -> Any:
        """Perform one upstream request; any transport, status or decode failure becomes UpstreamFetchError."""
        try:
            response = await self.client.request(method, url, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise UpstreamFetchError(self.name, f"HTTP {e.response.status_code} from {url}") from e
        except httpx.RequestError as e:
            raise UpstreamFetchError(self.name, f"request to {url} failed: {e!r}") from e
        except ValueError as e:
            raise UpstreamFetchError(self.name, f"invalid JSON from {url}: {e}") from e

    @abstractmethod
    async def fetch_phases(self) -> ContestPhases:
        """Fetch the listing and split in-scope contests by phase."""

    async def iter_finished_pages(self) -> AsyncIterator[list[NormalizedContest]]:
        """Finished contests, page by page. Single-page platforms reuse the main listing."""
        phases = await self.fetch_phases()
        yield phases.finished

    # ==================== NORMALIZATION ====================

    @abstractmethod
    def to_contest(self, record: Any, status: ContestStatus) -> NormalizedContest:
        """Map a validated raw record to the shared contest shape."""

    def normalize(self, raw: Any, status: ContestStatus) -> Optional[NormalizedContest]:
        """Validate one raw record; a bad record is logged and dropped, never the batch."""
        try:
            record = self.raw_model.model_validate(raw)
            return self.to_contest(record, status)
        except (ValidationError, ValueError) as e:
            logger.warning(f"{self.name}: skipping malformed contest record {excerpt(raw)}: {e}")
            return None

    def normalize_all(self, raws: list[Any], status: ContestStatus) -> list[NormalizedContest]:
        contests = []
        for raw in raws:
            contest = self.normalize(raw, status)
            if contest is not None:
                contests.append(contest)
        return contests

    # ==================== RECONCILIATION ====================

    async def _reconcile(self, contest: NormalizedContest) -> Optional[ReconcileOutcome]:
        try:
            return await self.store.reconcile(contest)
        except Exception as e:
            logger.error(f"{self.name}: failed to store contest {contest.contest_id}: {e}", exc_info=True)
            return None

    async def fetch_upcoming(self) -> list[NormalizedContest]:
        """
        Refresh this platform: store new upcoming and ongoing contests, close
        contests that are no longer running, and return the upcoming ones.
        Raises UpstreamFetchError when the listing cannot be read.
        """
        phases = await self.fetch_phases()

        for contest in phases.upcoming:
            await self._reconcile(contest)

        if not phases.ongoing:
            closed = await self.store.close_ongoing(self.platform)
            if closed:
                logger.info(f"{self.name}: {closed} ongoing contest(s) moved to past")
        else:
            for contest in phases.ongoing:
                await self._reconcile(contest)

        expired = await self.store.expire_upcoming(self.platform)
        if expired:
            logger.info(f"{self.name}: {expired} stale upcoming contest(s) moved to past")

        logger.info(
            f"{self.name}: {len(phases.upcoming)} upcoming, {len(phases.ongoing)} ongoing contests"
        )
        return phases.upcoming

    async def fetch_past_contests(self) -> int:
        """
        Backfill finished contests. Stops once `backfill_stop_after` contests
        already present in the store have been seen; finished feeds are
        mostly append-only so the rest of the history is assumed stored.
        Returns the number of contests inserted.
        """
        inserted = 0
        existing = 0

        async for page in self.iter_finished_pages():
            for contest in page:
                outcome = await self._reconcile(contest)
                if outcome == ReconcileOutcome.INSERTED:
                    inserted += 1
                elif outcome in (ReconcileOutcome.UNCHANGED, ReconcileOutcome.TRANSITIONED):
                    existing += 1
                    if existing >= self.backfill_stop_after:
                        logger.info(f"{self.name}: backfill reached stored history, {inserted} inserted")
                        return inserted

        logger.info(f"{self.name}: past contests backfilled, {inserted} inserted")
        return inserted
