"""
Background jobs: contest refresh and solution video sync.

The run_* entry points build their own HTTP client and store and are what the
scheduler calls; the underlying functions take those as arguments so tests
can drive one cycle directly.
"""

from collections import Counter
from typing import Optional
import asyncio
import logging

import httpx

from contest_tracker.core.config import settings
from contest_tracker.core.database import get_session_factory
from contest_tracker.models.contest import NormalizedContest, utc_now
from contest_tracker.services.aggregator import ContestAggregator
from contest_tracker.services.contest_cache import cache_upcoming
from contest_tracker.services.contest_store import ContestStore
from contest_tracker.services.errors import UpstreamFetchError
from contest_tracker.services.sources import build_sources
from contest_tracker.services.video_matcher import MatchResult, VideoMatcher
from contest_tracker.services.youtube import YouTubeClient

logger = logging.getLogger(__name__)


def http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=settings.HTTP_TIMEOUT_SECONDS,
        headers={"User-Agent": "contest-tracker/1.0"},
        follow_redirects=True,
    )


# ============================================================================
# CONTEST REFRESH
# ============================================================================

async def refresh_contests(store: ContestStore, client: httpx.AsyncClient) -> list[NormalizedContest]:
    """One aggregation cycle; caches and returns the contests that have not started yet."""
    logger.info("🔄 Fetching contest data from all platforms")
    aggregator = ContestAggregator(build_sources(client, store), store)
    contests = await aggregator.refresh_all()

    now = utc_now()
    upcoming = [c for c in contests if c.start_time > now]
    await cache_upcoming(upcoming)
    logger.info(f"✅ Contests updated ({len(upcoming)} upcoming)")
    return upcoming


async def run_contest_refresh() -> None:
    store = ContestStore(get_session_factory())
    async with http_client() as client:
        await refresh_contests(store, client)


# ============================================================================
# SOLUTION SYNC
# ============================================================================

async def _sync_playlist(youtube: YouTubeClient, matcher: VideoMatcher, playlist_id: str) -> Counter:
    results: Counter = Counter()
    try:
        videos = await youtube.get_playlist_videos(playlist_id)
    except UpstreamFetchError as e:
        logger.error(f"Playlist fetch failed: {e}")
        return results

    for video in videos:
        try:
            results[await matcher.match_and_attach(video)] += 1
        except Exception as e:
            logger.error(f"Failed to attach video {video.url}: {e}", exc_info=True)
            results["failed"] += 1
    return results


async def sync_solutions(
    store: ContestStore,
    client: httpx.AsyncClient,
    playlist_ids: Optional[list[str]] = None,
    api_key: Optional[str] = None,
) -> Counter:
    """Match every playlist video to a contest; playlists are processed concurrently."""
    youtube = YouTubeClient(client, api_key=api_key)
    matcher = VideoMatcher(store)
    playlists = settings.YOUTUBE_PLAYLIST_IDS if playlist_ids is None else playlist_ids

    totals: Counter = Counter()
    for results in await asyncio.gather(*(_sync_playlist(youtube, matcher, p) for p in playlists)):
        totals.update(results)

    logger.info(
        f"✅ Solutions updated: {totals[MatchResult.ATTACHED]} attached, "
        f"{totals[MatchResult.NO_MATCH]} unmatched, {totals['failed']} failed"
    )
    return totals


async def run_solution_sync() -> None:
    if not settings.YOUTUBE_API_KEY:
        logger.warning("YOUTUBE_API_KEY not set, skipping solution sync")
        return
    store = ContestStore(get_session_factory())
    async with http_client() as client:
        await sync_solutions(store, client)
