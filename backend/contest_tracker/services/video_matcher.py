"""
Video Matcher
Attaches solution videos to the contest their title refers to.
"""

from enum import Enum
import logging

from contest_tracker.models.solution import MAX_DESCRIPTION_LENGTH, MAX_TITLE_LENGTH, VideoLink
from contest_tracker.services.contest_store import ContestStore
from contest_tracker.services.title_parser import parse_video_title
from contest_tracker.services.youtube import Video

logger = logging.getLogger(__name__)


class MatchResult(str, Enum):
    ATTACHED = "attached"
    NO_MATCH = "no_match"


class VideoMatcher:
    """
    A contest matches when its canonical or native id contains the identifier
    derived from the video title. Re-attaching a video is a no-op.
    """

    def __init__(self, store: ContestStore):
        self.store = store

    @staticmethod
    def to_video_link(video: Video) -> VideoLink:
        return VideoLink(
            url=video.url,
            title=video.title[:MAX_TITLE_LENGTH],
            description=video.description[:MAX_DESCRIPTION_LENGTH] or None,
            thumbnail=video.thumbnail,
        )

    async def match_and_attach(self, video: Video) -> MatchResult:
        identifier = parse_video_title(video.title)
        if not identifier:
            logger.info(f"No contest identifier in video title: {video.title!r}")
            return MatchResult.NO_MATCH

        contest = await self.store.find_for_video(identifier)
        if contest is None:
            logger.info(f"No contest found for video {video.url} ({identifier})")
            return MatchResult.NO_MATCH

        if await self.store.add_solution_link(contest.id, video.url):
            logger.info(f"Linked video {video.url} to {contest.platform.value} contest {contest.contest_id}")

        await self.store.attach_video(contest.id, self.to_video_link(video))
        return MatchResult.ATTACHED
