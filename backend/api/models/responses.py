"""
Pydantic response models for API endpoints.
"""
from pydantic import BaseModel, Field
from typing import List, Optional


class ErrorResponse(BaseModel):
    """Error body returned for every failed request."""
    code: str
    message: str
    details: Optional[str] = None
    validation_errors: Optional[List[str]] = None


class VideoSnapshot(BaseModel):
    """Video fields attached to search occurrences."""
    id: str
    title: str
    subtitle: str = ""
    thumbnail: str = ""
    duration: str = ""


class IndexEntryResponse(BaseModel):
    """One head-word occurrence on one transcript line."""
    id: str
    video_id: str
    vocabulary: str
    english: str
    description: str
    start_time: float = Field(..., description="Cue start in seconds")
    end_time: float = Field(..., description="Cue end in seconds")
    transcript: str
    line_number: int = Field(..., ge=1, description="1-based transcript line")
    created_at: str
    updated_at: str


class OccurrenceResponse(IndexEntryResponse):
    """Index entry joined with its video and the lookups that found it."""
    video: Optional[VideoSnapshot] = None
    matched_on: List[str] = []


class SearchResultGroupResponse(BaseModel):
    """All occurrences of one head-word."""
    vocabulary: str
    english: str
    description: str
    occurrences: List[OccurrenceResponse]
    total_count: int
    exposure_count: Optional[int] = None


class SearchResponse(BaseModel):
    """Response model for vocabulary search."""
    message: str
    query: str
    results: List[SearchResultGroupResponse]
    total: int
    total_exposures: Optional[int] = None
    recent_exposures: Optional[int] = None


class VideoVocabularyResponse(BaseModel):
    """Response model for a video's indexed vocabulary."""
    message: str
    video_id: str
    video: Optional[VideoSnapshot] = None
    vocabulary: List[IndexEntryResponse]
    total: int


class IndexStatsModel(BaseModel):
    total_indexes: int
    unique_vocabulary: int
    unique_videos: int


class StatsResponse(BaseModel):
    message: str
    stats: IndexStatsModel


class ReindexSummaryModel(BaseModel):
    """Counts reported by an index rebuild."""
    processed_videos: int
    total_indexed: int
    total_videos: int
    total_vocabulary: int


class ReindexResponse(ReindexSummaryModel):
    message: str


class HeadwordResponse(BaseModel):
    id: str
    maori: str
    english: str
    description: str


class BatchUploadResponse(BaseModel):
    """Response model for a vocabulary CSV upload."""
    message: str
    mode: str
    created: int
    updated: int = 0
    skipped: int = 0
    total: int
    items: List[HeadwordResponse] = []
    reindexing: Optional[ReindexSummaryModel] = Field(
        default=None, description="Rebuild summary (replace mode only)"
    )


class VocabularyListResponse(BaseModel):
    message: str
    vocabulary: List[HeadwordResponse]
    total: int


class VocabularyItemResponse(BaseModel):
    message: str
    vocabulary: HeadwordResponse


class VideoResponse(BaseModel):
    """Response model for a catalogue video."""
    id: str
    title: str
    video: str
    description: str = ""
    thumbnail: str = ""
    subtitle: str = ""
    duration: str = ""


class WatchHistoryResponse(BaseModel):
    """Response model for a recorded watch-history row."""
    id: str
    user_id: str
    video_id: str
    progress: float
    current_time: float
    duration: float
    completed: bool
    last_watched: str
