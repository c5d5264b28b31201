from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional


class SearchCandidate(BaseModel):
    """A video id returned by search.list, before enrichment"""
    video_id: str
    keyword: str = ""


class VideoDetail(BaseModel):
    """Video metadata from videos.list, coerced from the raw API item"""
    video_id: str
    title: str = ""
    description: str = ""
    thumbnail_url: str = ""
    channel_id: str = ""
    channel_title: str = ""
    published_at: Optional[datetime] = None
    duration_seconds: int = Field(default=0, ge=0)
    view_count: int = Field(default=0, ge=0)
    like_count: int = Field(default=0, ge=0)
