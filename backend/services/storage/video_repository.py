"""
Repository for catalogue videos.
"""
import sqlite3
from typing import List, Optional

from core.context import RequestContext
from core.database import Database, db
from models.video_models import Video

_COLUMNS = "id, title, description, thumbnail, video, subtitle, duration"


def _row_to_video(row: sqlite3.Row) -> Video:
    return Video(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        thumbnail=row["thumbnail"],
        video=row["video"],
        subtitle=row["subtitle"],
        duration=row["duration"],
    )


class VideoRepository:
    """Video catalogue backed by the ``videos`` table."""

    def __init__(self, database: Database = db):
        self.database = database

    def get_all(self, ctx: Optional[RequestContext] = None) -> List[Video]:
        rows = self.database.execute(f"SELECT {_COLUMNS} FROM videos ORDER BY id", ctx=ctx)
        return [_row_to_video(row) for row in rows]

    def get_by_id(self, video_id: str, ctx: Optional[RequestContext] = None) -> Optional[Video]:
        """Return the video, or None when no such video exists."""
        row = self.database.execute_one(
            f"SELECT {_COLUMNS} FROM videos WHERE id = ?",
            (video_id,),
            ctx,
        )
        return _row_to_video(row) if row else None

    def create(self, video: Video, ctx: Optional[RequestContext] = None) -> Video:
        if not video.id:
            video.id = Video.new_id()
        self.database.execute_write(
            f"INSERT INTO videos ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                video.id,
                video.title,
                video.description,
                video.thumbnail,
                video.video,
                video.subtitle,
                video.duration,
            ),
            ctx,
        )
        return video


# Global video repository instance
video_repository = VideoRepository()
