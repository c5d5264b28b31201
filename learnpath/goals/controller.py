from fastapi import APIRouter, Depends, Request
from typing import Annotated
import asyncio
import logging
import httpx
from .models import GeneratePathRequest, GeneratePathResponse
from .service import PathGenerator, normalize_keywords
from ..exceptions import InvalidInputError
from ..youtube.service import YouTubeClient, YouTubeClientDep
from ..config import get_settings, Settings
from ..rate_limiter import limiter, RATE_LIMITS

logger = logging.getLogger("goals")

router = APIRouter(
    prefix="/goals",
    tags=["goals"]
)


def build_path_generator(youtube: YouTubeClient, settings: Settings) -> PathGenerator:
    path_settings = settings.path
    return PathGenerator(
        search_fn=youtube.search_videos,
        detail_fetch_fn=youtube.fetch_video_details,
        weights=path_settings.weights,
        results_per_keyword=path_settings.results_per_keyword,
        batch_size=path_settings.details_batch_size,
        path_size=path_settings.path_size,
        call_timeout=settings.youtube.request_timeout
    )


async def load_subscribed_channel_ids(youtube: YouTubeClient, settings: Settings) -> list[str]:
    """Subscriptions of the signed-in user; empty for API-key access, on failure or past the time budget"""
    if not youtube.has_user_token:
        return []
    youtube_settings = settings.youtube
    try:
        return await asyncio.wait_for(
            youtube.list_subscribed_channel_ids(youtube_settings.max_subscription_pages),
            timeout=youtube_settings.subscriptions_timeout
        )
    except asyncio.TimeoutError:
        logger.warning(
            f"Subscriptions not loaded within {youtube_settings.subscriptions_timeout}s, scoring without them"
        )
        return []
    except httpx.HTTPError as e:
        logger.warning(f"Could not load subscriptions, scoring without them: {e!r}")
        return []


def validated_path_request(
    body: GeneratePathRequest,
    settings: Annotated[Settings, Depends(get_settings)]
) -> GeneratePathRequest:
    """
    Check the keywords of a generate request.

    Declared ahead of the YouTube client so bad input is rejected before
    credentials are looked at or any quota is spent.
    """
    keywords = normalize_keywords(body.keywords)
    max_keywords = settings.path.max_keywords
    if len(keywords) > max_keywords:
        raise InvalidInputError(f"At most {max_keywords} keywords per request")
    return body


@router.post("/generate", response_model=GeneratePathResponse)
@limiter.limit(RATE_LIMITS["goals_generate"])
async def generate_learning_path(
    request: Request,
    body: Annotated[GeneratePathRequest, Depends(validated_path_request)],
    youtube: YouTubeClientDep,
    settings: Annotated[Settings, Depends(get_settings)]
):
    """
    Generate a ranked learning path from comma-separated keywords.

    Uses the caller's Google access token (Authorization: Bearer ...) when
    present, so subscribed channels count towards channel trust. Falls back
    to the server API key otherwise.

    Raises:
        400: No usable keywords, or more than MAX_KEYWORDS_PER_REQUEST
        401: No Google token and no server API key
    """
    subscribed_channel_ids = await load_subscribed_channel_ids(youtube, settings)
    generator = build_path_generator(youtube, settings)
    videos = await generator.generate(
        body.keywords,
        trusted_channel_ids=body.trusted_channel_ids,
        subscribed_channel_ids=subscribed_channel_ids
    )
    return GeneratePathResponse(videos=videos)
