"""
Persistence for the vocabulary occurrence index.

Only the reindex coordinator mutates this table (insert_many, truncate).
Reads may run at any time, including during a rebuild.
"""
import logging
import sqlite3
from typing import Iterable, List, Optional

from core.context import RequestContext
from core.database import Database, db
from core.transaction import retry_on_transient_error
from models.video_models import parse_timestamp
from models.vocabulary_models import IndexEntry, IndexStats

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, video_id, vocabulary, english, description, start_time, end_time, "
    "transcript, line_number, created_at, updated_at"
)
_INSERT_SQL = f"INSERT INTO vocabulary_index ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)"
_ORDER_BY = "ORDER BY video_id, line_number, vocabulary"


class BulkInsertError(Exception):
    """Some rows of a bulk insert failed; the rest were inserted."""

    def __init__(self, inserted: int, failed: int, first_error: Exception):
        self.inserted = inserted
        self.failed = failed
        self.first_error = first_error
        super().__init__(
            f"{failed} index entries failed to insert ({inserted} inserted): {first_error}"
        )


def _entry_params(entry: IndexEntry) -> tuple:
    return (
        entry.id,
        entry.video_id,
        entry.vocabulary,
        entry.english,
        entry.description,
        entry.start_time,
        entry.end_time,
        entry.transcript,
        entry.line_number,
        entry.created_at.isoformat(),
        entry.updated_at.isoformat(),
    )


def _row_to_entry(row: sqlite3.Row) -> IndexEntry:
    return IndexEntry(
        id=row["id"],
        video_id=row["video_id"],
        vocabulary=row["vocabulary"],
        english=row["english"],
        description=row["description"],
        start_time=row["start_time"],
        end_time=row["end_time"],
        transcript=row["transcript"],
        line_number=row["line_number"],
        created_at=parse_timestamp(row["created_at"]),
        updated_at=parse_timestamp(row["updated_at"]),
    )


class IndexStore:
    """Vocabulary occurrence index backed by the ``vocabulary_index`` table."""

    def __init__(self, database: Database = db):
        self.database = database

    @retry_on_transient_error()
    def insert_many(self, entries: Iterable[IndexEntry], ctx: Optional[RequestContext] = None) -> int:
        """
        Insert entries in one transaction.

        If that fails on a constraint, fall back to inserting row by row so
        every valid entry still lands, then raise BulkInsertError carrying
        the first failure.

        Returns:
            Number of entries inserted
        """
        params = [_entry_params(entry) for entry in entries]
        if not params:
            return 0

        try:
            self.database.execute_many(_INSERT_SQL, params, ctx)
            return len(params)
        except sqlite3.IntegrityError as e:
            logger.warning(f"Bulk insert of {len(params)} index entries failed ({e}), inserting individually")

        inserted = 0
        first_error: Optional[Exception] = None
        for row in params:
            try:
                self.database.execute_write(_INSERT_SQL, row, ctx)
                inserted += 1
            except sqlite3.IntegrityError as e:
                if first_error is None:
                    first_error = e

        if first_error is not None:
            raise BulkInsertError(inserted, len(params) - inserted, first_error)
        return inserted

    @retry_on_transient_error()
    def truncate(self, ctx: Optional[RequestContext] = None) -> int:
        """Delete every entry. Committed before returning."""
        return self.database.execute_write("DELETE FROM vocabulary_index", ctx=ctx)

    def find_by_vocabulary(self, substring: str, ctx: Optional[RequestContext] = None) -> List[IndexEntry]:
        """Entries whose head-word contains ``substring``, ignoring case."""
        rows = self.database.execute(
            f"SELECT {_COLUMNS} FROM vocabulary_index WHERE contains_ci(vocabulary, ?) {_ORDER_BY}",
            (substring,),
            ctx,
        )
        return [_row_to_entry(row) for row in rows]

    def find_by_english(self, substring: str, ctx: Optional[RequestContext] = None) -> List[IndexEntry]:
        """Entries whose English gloss contains ``substring``, ignoring case."""
        rows = self.database.execute(
            f"SELECT {_COLUMNS} FROM vocabulary_index WHERE contains_ci(english, ?) {_ORDER_BY}",
            (substring,),
            ctx,
        )
        return [_row_to_entry(row) for row in rows]

    def find_by_video(self, video_id: str, ctx: Optional[RequestContext] = None) -> List[IndexEntry]:
        rows = self.database.execute(
            f"SELECT {_COLUMNS} FROM vocabulary_index WHERE video_id = ? {_ORDER_BY}",
            (video_id,),
            ctx,
        )
        return [_row_to_entry(row) for row in rows]

    def stats(self, ctx: Optional[RequestContext] = None) -> IndexStats:
        row = self.database.execute_one(
            """
            SELECT COUNT(*) AS total_indexes,
                   COUNT(DISTINCT vocabulary) AS unique_vocabulary,
                   COUNT(DISTINCT video_id) AS unique_videos
            FROM vocabulary_index
            """,
            ctx=ctx,
        )
        if not row:
            return IndexStats()
        return IndexStats(
            total_indexes=row["total_indexes"],
            unique_vocabulary=row["unique_vocabulary"],
            unique_videos=row["unique_videos"],
        )


# Global index store instance
index_store = IndexStore()
