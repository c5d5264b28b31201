from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..youtube.models import VideoDetail


class RankedVideo(BaseModel):
    """A video with its composite score. Never returned to callers."""
    video: VideoDetail
    score: float


class ScoringWeights(BaseModel):
    """Weights of the five sub-scores in the composite score"""
    model_config = ConfigDict(frozen=True)

    quality: float = Field(default=0.35, ge=0)
    trust: float = Field(default=0.25, ge=0)
    duration: float = Field(default=0.20, ge=0)
    recency: float = Field(default=0.10, ge=0)
    popularity: float = Field(default=0.10, ge=0)

    @model_validator(mode='after')
    def validate_total(self):
        total = self.quality + self.trust + self.duration + self.recency + self.popularity
        # Sub-scores top out at 100, so the composite stays in [0, 100] only if weights sum to 1
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"Scoring weights must sum to 1.0, got {total:.4f}")
        return self


class ScoringContext(BaseModel):
    """Per-request inputs to the channel trust and recency sub-scores"""
    model_config = ConfigDict(frozen=True)

    trusted_channel_ids: frozenset[str] = frozenset()
    subscribed_channel_ids: frozenset[str] = frozenset()
    channel_frequency: dict[str, int] = Field(default_factory=dict)
    now: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class GeneratePathRequest(BaseModel):
    keywords: str = Field(..., description="Comma-separated keywords, e.g. 'python, pandas'")
    trusted_channel_ids: list[str] = Field(default_factory=list, description="Channels the user marked as trusted")

    @field_validator('trusted_channel_ids')
    @classmethod
    def strip_channel_ids(cls, v):
        return [channel_id.strip() for channel_id in v if channel_id and channel_id.strip()]


class GeneratePathResponse(BaseModel):
    """Response model for a generated learning path, best video first"""
    videos: list[VideoDetail]
