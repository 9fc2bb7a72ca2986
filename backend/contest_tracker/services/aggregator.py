"""
Contest Aggregator
Runs every platform source concurrently and merges their upcoming contests.
"""

import asyncio
import logging

from contest_tracker.models.contest import NormalizedContest
from contest_tracker.services.contest_store import ContestStore
from contest_tracker.services.errors import UpstreamFetchError
from contest_tracker.services.sources import SourceAdapter

logger = logging.getLogger(__name__)


class ContestAggregator:
    """
    One refresh cycle across all sources.

    A failing or slow source never fails the others: its error is logged and
    it contributes nothing this cycle. Platforms with no stored contests at
    the start of the cycle get a one-time backfill of finished contests.
    """

    def __init__(self, sources: list[SourceAdapter], store: ContestStore):
        self.sources = sources
        self.store = store

    async def _fetch(self, source: SourceAdapter) -> list[NormalizedContest]:
        try:
            return await source.fetch_upcoming()
        except UpstreamFetchError as e:
            logger.error(f"Upstream fetch failed: {e}")
        except Exception as e:
            logger.error(f"{source.name}: contest refresh failed: {e}", exc_info=True)
        return []

    async def _backfill(self, source: SourceAdapter) -> None:
        logger.info(f"{source.name}: no stored contests, backfilling past contests")
        try:
            await source.fetch_past_contests()
        except UpstreamFetchError as e:
            logger.error(f"Backfill fetch failed: {e}")
        except Exception as e:
            logger.error(f"{source.name}: backfill failed: {e}", exc_info=True)

    async def refresh_all(self) -> list[NormalizedContest]:
        """Upcoming contests from every source, in fetch-completion order."""
        # Decided before fetching: the refresh itself stores upcoming contests
        needs_backfill = [
            source for source in self.sources
            if not await self.store.has_records(source.platform)
        ]

        upcoming: list[NormalizedContest] = []
        for finished in asyncio.as_completed([self._fetch(source) for source in self.sources]):
            upcoming.extend(await finished)

        if needs_backfill:
            await asyncio.gather(*(self._backfill(source) for source in needs_backfill))

        return upcoming
