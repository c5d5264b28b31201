from fastapi import APIRouter, HTTPException, Request
import httpx
from .models import VideoDetail
from .service import YouTubeClientDep
from ..rate_limiter import limiter, RATE_LIMITS

router = APIRouter(
    prefix="/youtube",
    tags=["youtube"]
)


@router.get("/video/{video_id}", response_model=VideoDetail)
@limiter.limit(RATE_LIMITS["youtube_video"])
async def video_details(request: Request, video_id: str, youtube: YouTubeClientDep):
    """
    Get duration, statistics and channel details for one video.

    Raises:
        404: Video not found or not visible to the caller
        503: YouTube API unreachable
    """
    try:
        video = await youtube.get_video(video_id)
    except httpx.HTTPError as e:
        raise HTTPException(
            status_code=503,
            detail=f"Failed to connect to YouTube API: {str(e)}"
        )

    if video is None:
        raise HTTPException(status_code=404, detail="Video not found")
    return video
