"""
Pydantic request models for API endpoints.
"""
from pydantic import BaseModel, Field
from typing import Optional


class VideoCreateRequest(BaseModel):
    """Request model for registering a catalogue video."""
    id: Optional[str] = Field(default=None, description="Video ID (generated if omitted)")
    title: str = Field(..., min_length=1, description="Video title")
    video: str = Field(..., min_length=1, description="Video file URL or path")
    description: str = Field(default="", description="Video description")
    thumbnail: str = Field(default="", description="Thumbnail URL")
    subtitle: str = Field(default="", description="Subtitle pointer: upload URL, path or bare VTT filename")
    duration: str = Field(default="", description="Display duration, e.g. '12:34'")


class WatchHistoryUpdateRequest(BaseModel):
    """Request model for recording playback progress."""
    video_id: str = Field(..., min_length=1, description="Video ID")
    progress: float = Field(..., ge=0.0, le=1.0, description="Fraction of the video watched")
    duration: float = Field(..., ge=0.0, description="Video duration in seconds")
    current_time: float = Field(default=0.0, ge=0.0, description="Current playback position in seconds")
