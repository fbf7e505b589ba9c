"""
CodeVault Backend — YouTube Video Search Service
=================================================

What:  Proxies the YouTube Data API so the API key never reaches the browser.
How:   Two calls per search: `search` for video ids, then `videos` for
       duration and statistics. Results are flattened into Video cards with
       display-ready strings.
Who:   Called by GET /api/youtube/search.

Query shaping:
    The user's text is suffixed with " course tutorial" and results are
    ordered by view count, so the learning zone favours long-form teaching
    content over shorts and music videos.

No caching between requests and no retries.
"""

import logging
import re
from typing import Any, Dict, List, Optional

import httpx

from codevault.config import FEATURE_REQUIREMENTS, PLACEHOLDER_VALUES, settings
from codevault.exceptions import ConfigurationError, UpstreamServiceError
from codevault.schemas.video import Video

logger = logging.getLogger(__name__)

MAX_QUERY_LENGTH = 200
MAX_RESULTS = 12

_DURATION_RE = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?")


def format_duration(iso_duration: Optional[str]) -> str:
    """
    ISO 8601 duration → clock string.

    Examples:
        PT1H2M5S → 1:02:05
        PT4M3S   → 4:03
        PT45S    → 0:45
        None     → 0:00
    """
    match = _DURATION_RE.match(iso_duration or "PT0S")
    if not match:
        return "0:00"
    hours, minutes, seconds = (int(group) if group else 0 for group in match.groups())
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def format_count(value: Any) -> str:
    """1500000 → "1.5M", 12345 → "12.3K", 999 → "999". Unparseable input counts as 0."""
    try:
        count = int(value or 0)
    except (TypeError, ValueError):
        count = 0
    if count >= 1_000_000:
        return f"{count / 1_000_000:.1f}M"
    if count >= 1_000:
        return f"{count / 1_000:.1f}K"
    return str(count)


def _best_thumbnail(thumbnails: Dict[str, Any]) -> Optional[str]:
    for size in ("maxres", "high", "default"):
        url = (thumbnails.get(size) or {}).get("url")
        if url:
            return url
    return None


def to_video(item: Dict[str, Any]) -> Video:
    """Flatten one `videos` API item."""
    snippet = item.get("snippet") or {}
    statistics = item.get("statistics") or {}
    return Video(
        id=item.get("id", ""),
        title=snippet.get("title") or "",
        thumbnail=_best_thumbnail(snippet.get("thumbnails") or {}),
        channel=snippet.get("channelTitle"),
        duration=format_duration((item.get("contentDetails") or {}).get("duration")),
        views=format_count(statistics.get("viewCount")),
        likes=format_count(statistics.get("likeCount")),
        description=snippet.get("description"),
        category="YouTube",
    )


class YouTubeService:
    """
    Args:
        transport: Optional httpx transport; tests pass an httpx.MockTransport.
    """

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._transport = transport

    def _api_key(self) -> str:
        key = (settings.youtube_api_key or "").strip()
        if key in PLACEHOLDER_VALUES:
            raise ConfigurationError(
                message="YouTube API key is not configured in backend .env",
                remediation=FEATURE_REQUIREMENTS["youtube"]["youtube_api_key"],
            )
        return key

    @staticmethod
    def _payload(response: httpx.Response) -> Dict[str, Any]:
        """Decode a YouTube response, raising the API's own error when it reports one."""
        try:
            data = response.json()
        except ValueError:
            raise UpstreamServiceError(
                message="Failed to fetch videos from YouTube",
                details=f"Unexpected response ({response.status_code})",
            )
        error = data.get("error") if isinstance(data, dict) else None
        if isinstance(error, dict):
            raise UpstreamServiceError(
                message=error.get("message") or "Failed to fetch videos from YouTube",
                status_code=error.get("code") or 500,
            )
        if error:
            raise UpstreamServiceError(message=str(error))
        return data if isinstance(data, dict) else {}

    async def search(self, query: str) -> List[Video]:
        """
        Search educational videos.

        Flow:
            1. GET /search?part=snippet&maxResults=12&q="{q} course tutorial"&type=video&order=viewCount
            2. No ids → [] (the details call is skipped)
            3. GET /videos?part=snippet,contentDetails,statistics&id=a,b,c
        """
        key = self._api_key()
        base_url = settings.youtube_api_url.rstrip("/")

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=15.0) as client:
                search_response = await client.get(
                    f"{base_url}/search",
                    params={
                        "part": "snippet",
                        "maxResults": MAX_RESULTS,
                        "q": f"{query} course tutorial",
                        "type": "video",
                        "order": "viewCount",
                        "key": key,
                    },
                )
                search_data = self._payload(search_response)

                video_ids = [
                    (item.get("id") or {}).get("videoId")
                    for item in search_data.get("items") or []
                ]
                video_ids = [video_id for video_id in video_ids if video_id]
                if not video_ids:
                    return []

                details_response = await client.get(
                    f"{base_url}/videos",
                    params={
                        "part": "snippet,contentDetails,statistics",
                        "id": ",".join(video_ids),
                        "key": key,
                    },
                )
                details_data = self._payload(details_response)
        except httpx.HTTPError as e:
            logger.error("YouTube request failed: %s", e)
            raise UpstreamServiceError(message="Failed to fetch videos from YouTube", details=str(e))

        videos = [to_video(item) for item in details_data.get("items") or []]
        logger.info("YouTube search '%s' returned %d video(s)", query, len(videos))
        return videos


# ── Singleton Instance ────────────────────────────────────────────────────
youtube_service = YouTubeService()


def get_youtube_service() -> YouTubeService:
    return youtube_service
