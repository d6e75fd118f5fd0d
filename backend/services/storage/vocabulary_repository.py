"""
Repository for the head-word corpus.

The corpus is only ever changed in bulk: either replaced wholesale or
merged from an ingest-only CSV upload. Both run in a single transaction.
"""
import sqlite3
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from core.context import RequestContext
from core.database import Database, db
from core.transaction import TransactionManager
from models.vocabulary_models import Headword, IngestSummary

_INSERT_SQL = (
    "INSERT INTO vocabulary (id, maori, english, description, created_at, updated_at) "
    "VALUES (?, ?, ?, ?, ?, ?)"
)

DUPLICATE_POLICIES = ("skip", "update", "error")


class DuplicateHeadwordError(Exception):
    """Ingest found head-words that already exist under the ``error`` policy."""

    def __init__(self, duplicates: List[str]):
        self.duplicates = duplicates
        super().__init__(f"{len(duplicates)} head-words already exist")


def _row_to_headword(row: sqlite3.Row) -> Headword:
    return Headword(
        id=row["id"],
        maori=row["maori"],
        english=row["english"],
        description=row["description"],
    )


class VocabularyRepository:
    """Head-word corpus backed by the ``vocabulary`` table."""

    def __init__(self, database: Database = db):
        self.database = database
        self.transactions = TransactionManager(database)

    def get_all(self, ctx: Optional[RequestContext] = None) -> List[Headword]:
        rows = self.database.execute(
            "SELECT id, maori, english, description FROM vocabulary ORDER BY maori",
            ctx=ctx,
        )
        return [_row_to_headword(row) for row in rows]

    def get_by_id(self, headword_id: str, ctx: Optional[RequestContext] = None) -> Optional[Headword]:
        row = self.database.execute_one(
            "SELECT id, maori, english, description FROM vocabulary WHERE id = ?",
            (headword_id,),
            ctx,
        )
        return _row_to_headword(row) if row else None

    def count(self, ctx: Optional[RequestContext] = None) -> int:
        row = self.database.execute_one("SELECT COUNT(*) AS count FROM vocabulary", ctx=ctx)
        return row["count"] if row else 0

    def replace_all(self, headwords: Sequence[Headword], ctx: Optional[RequestContext] = None) -> int:
        """Delete the whole corpus and insert ``headwords`` atomically."""
        now = datetime.now(timezone.utc).isoformat()
        rows = [(h.id, h.maori, h.english, h.description, now, now) for h in headwords]

        with self.transactions.transaction(ctx) as conn:
            conn.execute("DELETE FROM vocabulary")
            conn.executemany(_INSERT_SQL, rows)
        return len(rows)

    def ingest(
        self,
        headwords: Sequence[Headword],
        duplicates: str = "error",
        ctx: Optional[RequestContext] = None,
    ) -> IngestSummary:
        """
        Merge head-words into the corpus without removing existing ones.

        Args:
            headwords: Validated head-words, unique by ``maori``
            duplicates: What to do when a head-word's ``maori`` already exists:
                "skip" keeps the stored one, "update" overwrites its english
                and description, "error" rejects the whole batch

        Raises:
            DuplicateHeadwordError: under the "error" policy, before any write
        """
        if duplicates not in DUPLICATE_POLICIES:
            raise ValueError(f"Unknown duplicates policy: {duplicates}")

        summary = IngestSummary()
        now = datetime.now(timezone.utc).isoformat()

        with self.transactions.transaction(ctx) as conn:
            existing: Dict[str, str] = {
                row["maori"]: row["id"]
                for row in conn.execute("SELECT id, maori FROM vocabulary")
            }

            clashes = [h.maori for h in headwords if h.maori in existing]
            if clashes and duplicates == "error":
                raise DuplicateHeadwordError(clashes)

            for headword in headwords:
                if headword.maori not in existing:
                    conn.execute(
                        _INSERT_SQL,
                        (headword.id, headword.maori, headword.english, headword.description, now, now),
                    )
                    summary.created += 1
                elif duplicates == "update":
                    conn.execute(
                        "UPDATE vocabulary SET english = ?, description = ?, updated_at = ? WHERE id = ?",
                        (headword.english, headword.description, now, existing[headword.maori]),
                    )
                    summary.updated += 1
                else:
                    summary.skipped += 1

        return summary


# Global vocabulary repository instance
vocabulary_repository = VocabularyRepository()
