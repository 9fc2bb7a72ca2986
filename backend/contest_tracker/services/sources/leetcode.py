"""
LeetCode contest source
One GraphQL query returns every contest; the phase is derived from start time and duration.
"""

from sqlmodel import SQLModel

from contest_tracker.core.config import settings
from contest_tracker.models.contest import ContestStatus, NormalizedContest, Platform, utc_now
from contest_tracker.services.errors import UpstreamFetchError
from contest_tracker.services.sources.base import ContestPhases, SourceAdapter, excerpt, from_timestamp
from contest_tracker.services.title_parser import parse_canonical_id

CONTEST_LIST_QUERY = """
query getContestList {
  allContests {
    title
    titleSlug
    startTime
    duration
  }
}
"""


class LeetCodeContest(SQLModel):
    """Raw allContests entry"""
    title: str
    titleSlug: str
    startTime: int
    duration: int


class LeetCodeSource(SourceAdapter):
    platform = Platform.LEETCODE
    raw_model = LeetCodeContest

    def to_contest(self, record: LeetCodeContest, status: ContestStatus) -> NormalizedContest:
        return NormalizedContest(
            contest_id=parse_canonical_id(record.titleSlug, Platform.LEETCODE),
            name=record.title,
            platform=Platform.LEETCODE,
            start_time=from_timestamp(record.startTime),
            end_time=from_timestamp(record.startTime + record.duration),
            duration=record.duration,
            url=f"https://leetcode.com/contest/{record.titleSlug}",
            status=status,
        )

    async def fetch_phases(self) -> ContestPhases:
        payload = await self._request_json(
            "POST",
            settings.LEETCODE_GRAPHQL_URL,
            json={"query": CONTEST_LIST_QUERY},
            headers={"Content-Type": "application/json"},
        )
        try:
            raws = payload["data"]["allContests"]
        except (KeyError, TypeError) as e:
            raise UpstreamFetchError(self.name, f"unexpected GraphQL response {excerpt(payload)}") from e

        phases = ContestPhases()
        now = utc_now()
        for raw in raws or []:
            contest = self.normalize(raw, ContestStatus.UPCOMING)
            if contest is None:
                continue
            if contest.start_time > now:
                phases.upcoming.append(contest)
            elif contest.end_time > now:
                phases.ongoing.append(contest.model_copy(update={"status": ContestStatus.ONGOING}))
            else:
                phases.finished.append(contest.model_copy(update={"status": ContestStatus.PAST}))
        return phases
