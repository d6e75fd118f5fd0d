"""
Data models for videos and per-user watch history.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: str) -> datetime:
    """Parse a stored ISO-8601 timestamp, assuming UTC when no offset is present."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class Video:
    """A catalogue video. ``subtitle`` is the pointer to its VTT file."""
    id: str
    title: str
    video: str
    description: str = ""
    thumbnail: str = ""
    subtitle: str = ""
    duration: str = ""

    def snapshot(self) -> Dict[str, Any]:
        """Denormalised view attached to search occurrences."""
        return {
            "id": self.id,
            "title": self.title,
            "subtitle": self.subtitle,
            "thumbnail": self.thumbnail,
            "duration": self.duration,
        }

    @staticmethod
    def new_id() -> str:
        return uuid.uuid4().hex[:24]


@dataclass
class WatchHistory:
    """How far a user got in a video, as of ``last_watched``."""
    user_id: str
    video_id: str
    progress: float  # 0.0 - 1.0
    duration: float  # seconds
    last_watched: datetime = field(default_factory=utcnow)
    current_time: float = 0.0
    completed: bool = False
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def reached_time_sec(self) -> float:
        """Playback position the user has reached, in seconds."""
        return self.progress * self.duration
