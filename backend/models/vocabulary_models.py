"""
Data models for the vocabulary corpus, the occurrence index and search results.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from models.video_models import utcnow


@dataclass
class Headword:
    """A vocabulary entry: Māori form plus English gloss and notes."""
    maori: str
    english: str
    description: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "maori": self.maori,
            "english": self.english,
            "description": self.description,
        }


@dataclass
class IndexEntry:
    """One occurrence of a head-word on one transcript line of one video."""
    video_id: str
    vocabulary: str
    english: str
    description: str
    start_time: float
    end_time: float
    transcript: str
    line_number: int  # 1-based within the transcript
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "video_id": self.video_id,
            "vocabulary": self.vocabulary,
            "english": self.english,
            "description": self.description,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "transcript": self.transcript,
            "line_number": self.line_number,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass
class Occurrence:
    """An index entry as returned by search: with video snapshot and provenance."""
    entry: IndexEntry
    video: Optional[Dict[str, Any]] = None
    matched_on: List[str] = field(default_factory=list)

    @property
    def video_id(self) -> str:
        return self.entry.video_id

    @property
    def start_time(self) -> float:
        return self.entry.start_time

    def to_dict(self) -> Dict[str, Any]:
        data = self.entry.to_dict()
        data["video"] = self.video
        data["matched_on"] = list(self.matched_on)
        return data


@dataclass
class SearchResultGroup:
    """All occurrences of one head-word across the catalogue."""
    vocabulary: str
    english: str
    description: str
    occurrences: List[Occurrence] = field(default_factory=list)
    exposure_count: Optional[int] = None

    @property
    def total_count(self) -> int:
        return len(self.occurrences)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "vocabulary": self.vocabulary,
            "english": self.english,
            "description": self.description,
            "occurrences": [o.to_dict() for o in self.occurrences],
            "total_count": self.total_count,
        }
        if self.exposure_count is not None:
            data["exposure_count"] = self.exposure_count
        return data


@dataclass
class ReindexSummary:
    processed_videos: int = 0
    total_indexed: int = 0
    total_videos: int = 0
    total_vocabulary: int = 0


@dataclass
class IngestSummary:
    created: int = 0
    updated: int = 0
    skipped: int = 0

    @property
    def total(self) -> int:
        return self.created + self.updated + self.skipped


@dataclass
class IndexStats:
    total_indexes: int = 0
    unique_vocabulary: int = 0
    unique_videos: int = 0


@dataclass
class SearchResults:
    """Grouped search outcome; exposure totals are set only for a known user."""
    query: str
    groups: List[SearchResultGroup] = field(default_factory=list)
    total_exposures: Optional[int] = None
    recent_exposures: Optional[int] = None

    @property
    def total(self) -> int:
        return len(self.groups)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "query": self.query,
            "results": [g.to_dict() for g in self.groups],
            "total": self.total,
        }
        if self.total_exposures is not None:
            data["total_exposures"] = self.total_exposures
            data["recent_exposures"] = self.recent_exposures
        return data
