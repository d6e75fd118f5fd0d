"""
Repository for per-user watch history.

Search only reads this table. Progress is recorded through an explicit
lookup-then-write: a missing row and a failed read are different outcomes,
so a store outage can never be mistaken for "no row yet" and produce a
duplicate.
"""
import sqlite3
from typing import List, Optional

from core.context import RequestContext
from core.database import Database, db
from core.transaction import TransactionManager
from models.video_models import WatchHistory, parse_timestamp, utcnow

_COLUMNS = (
    "id, user_id, video_id, progress, current_position, duration, completed, "
    "last_watched, created_at, updated_at"
)

# Progress at or above this counts as a completed viewing
COMPLETED_PROGRESS = 0.9


def _row_to_watch_history(row: sqlite3.Row) -> WatchHistory:
    return WatchHistory(
        id=row["id"],
        user_id=row["user_id"],
        video_id=row["video_id"],
        progress=row["progress"],
        current_time=row["current_position"],
        duration=row["duration"],
        completed=bool(row["completed"]),
        last_watched=parse_timestamp(row["last_watched"]),
        created_at=parse_timestamp(row["created_at"]),
        updated_at=parse_timestamp(row["updated_at"]),
    )


class WatchHistoryRepository:
    """Watch history backed by the ``watch_history`` table."""

    def __init__(self, database: Database = db):
        self.database = database
        self.transactions = TransactionManager(database)

    def get_by_user_id(self, user_id: str, ctx: Optional[RequestContext] = None) -> List[WatchHistory]:
        """All rows for one user, read in a single query."""
        rows = self.database.execute(
            f"SELECT {_COLUMNS} FROM watch_history WHERE user_id = ? ORDER BY last_watched DESC",
            (user_id,),
            ctx,
        )
        return [_row_to_watch_history(row) for row in rows]

    def record_progress(
        self,
        user_id: str,
        video_id: str,
        progress: float,
        duration: float,
        current_time: float = 0.0,
        ctx: Optional[RequestContext] = None,
    ) -> WatchHistory:
        """
        Create or update the user's row for a video.

        The lookup and the write share one IMMEDIATE transaction. Any read
        error propagates instead of falling through to an insert.
        """
        now = utcnow()
        completed = progress >= COMPLETED_PROGRESS

        with self.transactions.transaction(ctx) as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM watch_history WHERE user_id = ? AND video_id = ? "
                "ORDER BY progress * duration DESC LIMIT 1",
                (user_id, video_id),
            ).fetchone()

            if row is None:
                entry = WatchHistory(
                    user_id=user_id,
                    video_id=video_id,
                    progress=progress,
                    duration=duration,
                    current_time=current_time,
                    completed=completed,
                    last_watched=now,
                    created_at=now,
                    updated_at=now,
                )
                conn.execute(
                    f"INSERT INTO watch_history ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        entry.id, user_id, video_id, progress, current_time, duration,
                        int(completed), now.isoformat(), now.isoformat(), now.isoformat(),
                    ),
                )
                return entry

            entry = _row_to_watch_history(row)
            entry.progress = progress
            entry.duration = duration
            entry.current_time = current_time
            entry.completed = completed
            entry.last_watched = now
            entry.updated_at = now
            conn.execute(
                "UPDATE watch_history SET progress = ?, duration = ?, current_position = ?, "
                "completed = ?, last_watched = ?, updated_at = ? WHERE id = ?",
                (progress, duration, current_time, int(completed), now.isoformat(), now.isoformat(), entry.id),
            )
            return entry


# Global watch history repository instance
watch_history_repository = WatchHistoryRepository()
