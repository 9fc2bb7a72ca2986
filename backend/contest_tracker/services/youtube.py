"""
YouTube playlist reader (Data API v3, playlistItems.list).
"""

from typing import Any, Optional
import logging

import httpx
from sqlmodel import SQLModel

from contest_tracker.core.config import settings
from contest_tracker.services.errors import UpstreamFetchError

logger = logging.getLogger(__name__)

SOURCE_NAME = "YouTube"
PAGE_SIZE = 50
THUMBNAIL_PREFERENCE = ("standard", "high", "medium", "default")


class Video(SQLModel):
    """Playlist entry reduced to what the video matcher needs"""
    title: str
    url: str
    thumbnail: str
    description: str = ""


def _thumbnail(snippet: dict[str, Any], video_id: str) -> str:
    thumbnails = snippet.get("thumbnails") or {}
    for size in THUMBNAIL_PREFERENCE:
        url = (thumbnails.get(size) or {}).get("url")
        if url:
            return url
    return f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"


def parse_playlist_item(item: dict[str, Any]) -> Optional[Video]:
    """Public videos only; deleted/private entries and non-video resources are skipped."""
    snippet = item.get("snippet") or {}
    resource = snippet.get("resourceId") or {}
    title = snippet.get("title") or ""
    if resource.get("kind") != "youtube#video" or not resource.get("videoId"):
        return None
    if not title or title in ("Private video", "Deleted video"):
        return None

    description = (snippet.get("description") or "").split("\n")[0].strip()
    return Video(
        title=title,
        url=f"https://www.youtube.com/watch?v={resource['videoId']}",
        thumbnail=_thumbnail(snippet, resource["videoId"]),
        description=description,
    )


class YouTubeClient:
    def __init__(self, client: httpx.AsyncClient, api_key: Optional[str] = None):
        self.client = client
        self.api_key = api_key if api_key is not None else settings.YOUTUBE_API_KEY

    async def get_playlist_videos(self, playlist_id: str) -> list[Video]:
        """Every video of a playlist, following nextPageToken until exhausted."""
        if not self.api_key:
            raise UpstreamFetchError(SOURCE_NAME, "YOUTUBE_API_KEY is not configured")

        videos: list[Video] = []
        page_token = ""
        while True:
            params = {
                "part": "snippet",
                "maxResults": PAGE_SIZE,
                "playlistId": playlist_id,
                "key": self.api_key,
            }
            if page_token:
                params["pageToken"] = page_token

            try:
                response = await self.client.get(settings.YOUTUBE_API_URL, params=params)
                response.raise_for_status()
                payload = response.json()
            except httpx.HTTPStatusError as e:
                raise UpstreamFetchError(
                    SOURCE_NAME, f"HTTP {e.response.status_code} for playlist {playlist_id}"
                ) from e
            except httpx.RequestError as e:
                raise UpstreamFetchError(SOURCE_NAME, f"playlist {playlist_id} request failed: {e!r}") from e
            except ValueError as e:
                raise UpstreamFetchError(SOURCE_NAME, f"invalid JSON for playlist {playlist_id}: {e}") from e

            for item in payload.get("items") or []:
                video = parse_playlist_item(item)
                if video is not None:
                    videos.append(video)

            page_token = payload.get("nextPageToken") or ""
            if not page_token:
                break

        logger.debug(f"Playlist {playlist_id}: {len(videos)} videos")
        return videos
