"""
CodeChef contest source
Current listing: /api/list/contests/all (future + present + recent past)
History: /api/list/contests/past, paginated by page number (the "offset" parameter)
"""

from datetime import datetime
from typing import AsyncIterator

from sqlmodel import SQLModel

from contest_tracker.core.config import settings
from contest_tracker.models.contest import ContestStatus, NormalizedContest, Platform, as_utc, utc_now
from contest_tracker.services.errors import UpstreamFetchError
from contest_tracker.services.sources.base import ContestPhases, SourceAdapter, excerpt
from contest_tracker.services.title_parser import parse_canonical_id


class CodeChefContest(SQLModel):
    """Raw contest entry from the CodeChef list API"""
    contest_code: str
    contest_name: str
    contest_start_date_iso: datetime
    contest_end_date_iso: datetime


class CodeChefSource(SourceAdapter):
    platform = Platform.CODECHEF
    raw_model = CodeChefContest

    def to_contest(self, record: CodeChefContest, status: ContestStatus) -> NormalizedContest:
        start = as_utc(record.contest_start_date_iso)
        end = as_utc(record.contest_end_date_iso)
        return NormalizedContest(
            contest_id=parse_canonical_id(record.contest_code, Platform.CODECHEF),
            original_id=record.contest_code,
            name=record.contest_name,
            platform=Platform.CODECHEF,
            start_time=start,
            end_time=end,
            duration=int((end - start).total_seconds()),
            url=f"https://www.codechef.com/{record.contest_code}",
            status=status,
        )

    async def _fetch_listing(self) -> dict:
        payload = await self._request_json("GET", settings.CODECHEF_API_URL)
        if not isinstance(payload, dict):
            raise UpstreamFetchError(self.name, f"unexpected contest list response {excerpt(payload)}")
        return payload

    async def fetch_phases(self) -> ContestPhases:
        payload = await self._fetch_listing()
        now = utc_now()

        upcoming = [
            contest
            for contest in self.normalize_all(payload.get("future_contests") or [], ContestStatus.UPCOMING)
            if contest.end_time > now
        ]
        return ContestPhases(
            upcoming=upcoming,
            ongoing=self.normalize_all(payload.get("present_contests") or [], ContestStatus.ONGOING),
            finished=self.normalize_all(payload.get("past_contests") or [], ContestStatus.PAST),
        )

    async def iter_finished_pages(self) -> AsyncIterator[list[NormalizedContest]]:
        page_size = settings.CODECHEF_PAGE_SIZE
        page = 0
        while True:
            payload = await self._request_json(
                "GET",
                settings.CODECHEF_PAST_API_URL,
                params={
                    "sort_by": "START",
                    "sorting_order": "desc",
                    "offset": page,
                    "mode": "all",
                },
            )
            raws = payload.get("contests") if isinstance(payload, dict) else None
            if not raws:
                return
            yield self.normalize_all(raws, ContestStatus.PAST)
            if len(raws) < page_size:
                return
            page += 1
