"""
Codeforces contest source
Reads https://codeforces.com/api/contest.list (every contest, all phases, one request).
"""

from typing import Any, Optional

from sqlmodel import SQLModel

from contest_tracker.core.config import settings
from contest_tracker.models.contest import ContestStatus, NormalizedContest, Platform
from contest_tracker.services.errors import UpstreamFetchError
from contest_tracker.services.sources.base import ContestPhases, SourceAdapter, excerpt, from_timestamp
from contest_tracker.services.title_parser import parse_canonical_id


PHASE_STATUS = {
    "BEFORE": ContestStatus.UPCOMING,
    "CODING": ContestStatus.ONGOING,
    "FINISHED": ContestStatus.PAST,
}


class CodeforcesContest(SQLModel):
    """Raw contest.list entry"""
    id: int
    name: str
    type: str
    phase: str
    durationSeconds: int
    startTimeSeconds: Optional[int] = None


def is_tracked(raw: dict[str, Any]) -> bool:
    """Standard and Educational rounds only; IOI-style and olympiad mirrors are skipped."""
    name = str(raw.get("name", ""))
    if raw.get("type") == "IOI":
        return False
    if "Olympiad" in name:
        return False
    return "Codeforces Round" in name or "Educational Codeforces Round" in name


class CodeforcesSource(SourceAdapter):
    platform = Platform.CODEFORCES
    raw_model = CodeforcesContest

    def to_contest(self, record: CodeforcesContest, status: ContestStatus) -> NormalizedContest:
        if record.startTimeSeconds is None:
            raise ValueError("startTimeSeconds is required")
        start = record.startTimeSeconds
        return NormalizedContest(
            contest_id=parse_canonical_id(record.name, Platform.CODEFORCES),
            original_id=str(record.id),
            name=record.name,
            platform=Platform.CODEFORCES,
            start_time=from_timestamp(start),
            end_time=from_timestamp(start + record.durationSeconds),
            duration=record.durationSeconds,
            url=f"https://codeforces.com/contest/{record.id}",
            status=status,
        )

    async def fetch_phases(self) -> ContestPhases:
        payload = await self._request_json("GET", settings.CODEFORCES_API_URL)
        if not isinstance(payload, dict) or payload.get("status") != "OK":
            raise UpstreamFetchError(self.name, f"unexpected contest.list response {excerpt(payload)}")

        phases = ContestPhases()
        buckets = {
            ContestStatus.UPCOMING: phases.upcoming,
            ContestStatus.ONGOING: phases.ongoing,
            ContestStatus.PAST: phases.finished,
        }
        for raw in payload.get("result") or []:
            if not isinstance(raw, dict) or not is_tracked(raw):
                continue
            status = PHASE_STATUS.get(raw.get("phase"))
            if status is None:
                # PENDING_SYSTEM_TEST / SYSTEM_TEST: neither running nor final yet
                continue
            contest = self.normalize(raw, status)
            if contest is not None:
                buckets[status].append(contest)
        return phases
