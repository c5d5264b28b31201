"""
Scoring for learning path candidates.

Every sub-score is clamped to [0, 100] and the composite is their weighted
sum, so with weights summing to 1 the composite also stays in [0, 100].
"""
import math
from collections import Counter
from datetime import datetime, timezone
from typing import Iterable, Optional

from ..youtube.models import VideoDetail
from .models import ScoringContext, ScoringWeights

DEFAULT_WEIGHTS = ScoringWeights()

# Hard filters: shorts/trailers and videos nobody has watched
MIN_DURATION_SECONDS = 60
MIN_VIEW_COUNT = 200

DAYS_PER_MONTH = 30.44

# (upper bound in minutes, score); the first bound the value is below wins
DURATION_BANDS = [
    (3, 0.0),
    (5, 40.0),
    (8, 70.0),
    (20, 100.0),  # learning sweet spot
    (35, 80.0),
    (60, 60.0),
]
DURATION_SCORE_LONG = 40.0

# (upper bound in months, score)
RECENCY_BANDS = [
    (6, 100.0),
    (12, 85.0),
    (24, 65.0),
    (48, 45.0),
]
RECENCY_SCORE_OLD = 25.0

TRUSTED_CHANNEL_SCORE = 100.0
SUBSCRIBED_CHANNEL_SCORE = 60.0


def _clamp(value: float) -> float:
    return max(0.0, min(value, 100.0))


def channel_frequency(videos: Iterable[VideoDetail]) -> dict[str, int]:
    """Count how often each channel appears in the current batch"""
    return dict(Counter(video.channel_id for video in videos))


def quality_score(video: VideoDetail) -> float:
    """
    Like ratio when likes are available, otherwise a log scale of views.

    Like counts are hidden or zero for most videos, so a missing like count
    falls back to views instead of scoring zero.
    """
    if video.like_count > 0 and video.view_count > 0:
        return _clamp(video.like_count / video.view_count * 1000)
    return _clamp(math.log10(video.view_count + 1) * 18)


def trust_score(channel_id: str, context: ScoringContext) -> float:
    if channel_id in context.trusted_channel_ids:
        base = TRUSTED_CHANNEL_SCORE
    elif channel_id in context.subscribed_channel_ids:
        base = SUBSCRIBED_CHANNEL_SCORE
    else:
        base = 0.0

    # Channels that keep showing up for this request are likely specialists
    frequency = context.channel_frequency.get(channel_id, 0)
    if frequency >= 3:
        base += 30
    elif frequency >= 2:
        base += 15

    return _clamp(base)


def duration_score(duration_seconds: int) -> float:
    minutes = duration_seconds / 60
    for upper, score in DURATION_BANDS:
        if minutes < upper:
            return score
    return DURATION_SCORE_LONG


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def recency_score(published_at: Optional[datetime], now: datetime) -> float:
    if published_at is None:
        return RECENCY_SCORE_OLD

    age = _as_utc(now) - _as_utc(published_at)
    months = age.total_seconds() / (DAYS_PER_MONTH * 86400)
    for upper, score in RECENCY_BANDS:
        if months < upper:
            return score
    return RECENCY_SCORE_OLD


def popularity_score(video: VideoDetail) -> float:
    return _clamp(math.log10(video.view_count + 1) * 14)


def composite_score(
    video: VideoDetail,
    context: ScoringContext,
    weights: ScoringWeights = DEFAULT_WEIGHTS
) -> float:
    """Weighted sum of the five sub-scores, kept within [0, 100]"""
    return _clamp(
        quality_score(video) * weights.quality
        + trust_score(video.channel_id, context) * weights.trust
        + duration_score(video.duration_seconds) * weights.duration
        + recency_score(video.published_at, context.now) * weights.recency
        + popularity_score(video) * weights.popularity
    )


def passes_hard_filters(video: VideoDetail) -> bool:
    """Duration and view floors. Like count is deliberately not checked."""
    return (
        video.duration_seconds > MIN_DURATION_SECONDS
        and video.view_count >= MIN_VIEW_COUNT
    )
