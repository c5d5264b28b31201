import re
import httpx
import logging
from datetime import datetime
from typing import Annotated, Optional
from fastapi import Depends, Request
from pydantic import TypeAdapter, ValidationError
from .models import SearchCandidate, VideoDetail
from ..config import Settings, YouTubeSettings, get_settings
from ..exceptions import YouTubeNotConnectedError


logger = logging.getLogger("youtube.api")

# videos.list accepts at most 50 ids per call
MAX_IDS_PER_REQUEST = 50
SUBSCRIPTIONS_PAGE_SIZE = 50

_DURATION_RE = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?")
_DATETIME_ADAPTER = TypeAdapter(datetime)


def parse_duration(duration: Optional[str]) -> int:
    """
    Convert a YouTube duration such as PT1H2M10S to whole seconds.

    Every component is optional. Anything that does not match, including
    empty input, is treated as 0 rather than an error.
    """
    if not duration:
        return 0
    match = _DURATION_RE.search(duration)
    if not match:
        return 0

    hours, minutes, seconds = (int(part or 0) for part in match.groups())
    return hours * 3600 + minutes * 60 + seconds


def _to_int(value) -> int:
    # Statistics arrive as strings and may be missing entirely
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


def _pick_thumbnail(thumbnails: Optional[dict]) -> str:
    thumbnails = thumbnails or {}
    for size in ("high", "medium", "default"):
        url = (thumbnails.get(size) or {}).get("url")
        if url:
            return url
    return ""


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return _DATETIME_ADAPTER.validate_python(value)
    except ValidationError:
        logger.debug(f"Unparseable publishedAt value: {value!r}")
        return None


def video_detail_from_item(item: dict) -> Optional[VideoDetail]:
    """Build a VideoDetail from a raw videos.list item, or None if it has no id"""
    video_id = item.get("id")
    if not video_id:
        return None

    snippet = item.get("snippet") or {}
    content_details = item.get("contentDetails") or {}
    statistics = item.get("statistics") or {}

    return VideoDetail(
        video_id=video_id,
        title=snippet.get("title", ""),
        description=snippet.get("description", ""),
        thumbnail_url=_pick_thumbnail(snippet.get("thumbnails")),
        channel_id=snippet.get("channelId", ""),
        channel_title=snippet.get("channelTitle", ""),
        published_at=_parse_timestamp(snippet.get("publishedAt")),
        duration_seconds=parse_duration(content_details.get("duration")),
        view_count=_to_int(statistics.get("viewCount")),
        like_count=_to_int(statistics.get("likeCount"))
    )


class YouTubeClient:
    """
    Thin async client for the YouTube Data API v3.

    Calls authenticate with the user's Google access token when one is given,
    otherwise with the server API key. A non-success status or a body that is
    not a JSON object is logged and turned into an empty result; transport
    errors and timeouts propagate.
    """

    def __init__(
        self,
        access_token: Optional[str] = None,
        api_key: Optional[str] = None,
        base_url: str = "https://www.googleapis.com/youtube/v3",
        timeout: float = 10.0,
        relevance_language: str = "en",
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        if not access_token and not api_key:
            raise YouTubeNotConnectedError()

        self.access_token = access_token
        self.api_key = api_key
        self.relevance_language = relevance_language
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    @classmethod
    def from_settings(
        cls,
        settings: YouTubeSettings,
        access_token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "YouTubeClient":
        return cls(
            access_token=access_token,
            api_key=settings.api_key,
            base_url=settings.base_url,
            timeout=settings.request_timeout,
            relevance_language=settings.relevance_language,
            transport=transport
        )

    @property
    def has_user_token(self) -> bool:
        return bool(self.access_token)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "YouTubeClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _get(self, path: str, params: dict) -> Optional[dict]:
        headers = {}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        else:
            params = {**params, "key": self.api_key}

        response = await self._client.get(path, params=params, headers=headers)
        if response.status_code != 200:
            logger.warning(f"YouTube API {path} returned {response.status_code}: {response.text[:200]}")
            return None

        try:
            data = response.json()
        except ValueError:
            logger.warning(f"YouTube API {path} returned a non-JSON body: {response.text[:200]}")
            return None
        if not isinstance(data, dict):
            logger.warning(f"YouTube API {path} returned {type(data).__name__} instead of an object")
            return None
        return data

    async def search_videos(self, query: str, max_results: int = 15) -> list[SearchCandidate]:
        """Search embeddable videos for a single keyword"""
        params = {
            "part": "snippet",
            "q": query,
            "type": "video",
            "videoEmbeddable": "true",
            "relevanceLanguage": self.relevance_language,
            "maxResults": min(max_results, 50)
        }
        data = await self._get("/search", params)
        if data is None:
            return []

        candidates = []
        for item in data.get("items", []):
            video_id = (item.get("id") or {}).get("videoId")
            if video_id:
                candidates.append(SearchCandidate(video_id=video_id, keyword=query))

        logger.debug(f"Search '{query}' returned {len(candidates)} videos")
        return candidates

    async def fetch_video_details(self, video_ids: list[str]) -> list[VideoDetail]:
        """Fetch snippet, duration and statistics for up to 50 videos"""
        if not video_ids:
            return []
        if len(video_ids) > MAX_IDS_PER_REQUEST:
            raise ValueError(
                f"videos.list accepts at most {MAX_IDS_PER_REQUEST} ids, got {len(video_ids)}"
            )

        params = {
            "part": "snippet,contentDetails,statistics",
            "id": ",".join(video_ids),
            "maxResults": len(video_ids)
        }
        data = await self._get("/videos", params)
        if data is None:
            return []

        details = []
        for item in data.get("items", []):
            detail = video_detail_from_item(item)
            if detail is not None:
                details.append(detail)
        return details

    async def get_video(self, video_id: str) -> Optional[VideoDetail]:
        details = await self.fetch_video_details([video_id])
        return details[0] if details else None

    async def list_subscribed_channel_ids(self, max_pages: int = 10) -> list[str]:
        """
        Read the channel ids the signed-in user subscribes to.

        Needs a user access token (mine=true is not available to API keys).
        A failed page ends the listing with whatever was read so far.
        """
        if not self.access_token:
            raise YouTubeNotConnectedError("Listing subscriptions requires a Google access token")

        channel_ids: list[str] = []
        page_token = None
        for _ in range(max_pages):
            params = {
                "part": "snippet",
                "mine": "true",
                "maxResults": SUBSCRIPTIONS_PAGE_SIZE
            }
            if page_token:
                params["pageToken"] = page_token

            data = await self._get("/subscriptions", params)
            if data is None:
                break

            for item in data.get("items", []):
                resource = (item.get("snippet") or {}).get("resourceId") or {}
                channel_id = resource.get("channelId")
                if channel_id and channel_id not in channel_ids:
                    channel_ids.append(channel_id)

            page_token = data.get("nextPageToken")
            if not page_token:
                break

        logger.info(f"Loaded {len(channel_ids)} subscribed channels")
        return channel_ids


def _bearer_token(request: Request) -> Optional[str]:
    authorization = request.headers.get("authorization", "")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return None


async def get_youtube_client(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)]
):
    """Per-request client using the caller's Google token, or the server API key"""
    client = YouTubeClient.from_settings(settings.youtube, access_token=_bearer_token(request))
    try:
        yield client
    finally:
        await client.aclose()

YouTubeClientDep = Annotated[YouTubeClient, Depends(get_youtube_client)]
