import httpx
import pytest

from contest_tracker.services.errors import UpstreamFetchError
from contest_tracker.services.youtube import YouTubeClient, parse_playlist_item

from conftest import mock_client


def item(video_id: str, title: str, kind: str = "youtube#video", thumbnails=None, description: str = "") -> dict:
    return {
        "snippet": {
            "title": title,
            "description": description,
            "thumbnails": thumbnails if thumbnails is not None else {
                "default": {"url": f"https://i.ytimg.com/vi/{video_id}/default.jpg"},
                "high": {"url": f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"},
            },
            "resourceId": {"kind": kind, "videoId": video_id},
        }
    }


def test_parse_item_prefers_best_thumbnail():
    video = parse_playlist_item(item("v1", "Codeforces Round 950", description="A-E\nTimestamps:\n0:00"))

    assert video.url == "https://www.youtube.com/watch?v=v1"
    assert video.thumbnail == "https://i.ytimg.com/vi/v1/hqdefault.jpg"
    assert video.description == "A-E"


def test_parse_item_falls_back_to_generated_thumbnail():
    video = parse_playlist_item(item("v2", "Starters 170", thumbnails={}))
    assert video.thumbnail == "https://i.ytimg.com/vi/v2/hqdefault.jpg"


@pytest.mark.parametrize("title, kind", [
    ("Private video", "youtube#video"),
    ("Deleted video", "youtube#video"),
    ("A playlist", "youtube#playlist"),
    ("", "youtube#video"),
])
def test_parse_item_skips_unusable_entries(title, kind):
    assert parse_playlist_item(item("v3", title, kind=kind)) is None


@pytest.mark.asyncio
async def test_pagination_follows_next_page_token():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        params = request.url.params
        seen.append(params.get("pageToken"))
        assert params["playlistId"] == "PL123"
        assert params["key"] == "secret"
        assert params["maxResults"] == "50"
        if params.get("pageToken") == "page-2":
            return httpx.Response(200, json={"items": [item("v3", "LeetCode Weekly Contest 402")]})
        return httpx.Response(200, json={
            "items": [item("v1", "Codeforces Round 950"), item("v2", "Private video")],
            "nextPageToken": "page-2",
        })

    async with mock_client(handler) as client:
        videos = await YouTubeClient(client, api_key="secret").get_playlist_videos("PL123")

    assert seen == [None, "page-2"]
    assert [v.title for v in videos] == ["Codeforces Round 950", "LeetCode Weekly Contest 402"]


@pytest.mark.asyncio
async def test_missing_api_key():
    async with mock_client(lambda request: httpx.Response(200, json={})) as client:
        with pytest.raises(UpstreamFetchError):
            await YouTubeClient(client, api_key="").get_playlist_videos("PL123")


@pytest.mark.asyncio
async def test_http_error():
    async with mock_client(lambda request: httpx.Response(403, json={"error": {"code": 403}})) as client:
        with pytest.raises(UpstreamFetchError) as exc_info:
            await YouTubeClient(client, api_key="secret").get_playlist_videos("PL123")
    assert exc_info.value.source == "YouTube"
