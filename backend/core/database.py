"""
SQLite database connection and initialization.
"""
import sqlite3
from pathlib import Path
from typing import Optional, List, Iterable, Sequence
from contextlib import contextmanager

from .config import DB_PATH, SCHEMA_PATH
from .context import RequestContext

# Number of sqlite VM instructions between cancellation checks
PROGRESS_HANDLER_INTERVAL = 1000


def _contains_casefold(haystack: Optional[str], needle: Optional[str]) -> int:
    """Unicode case-insensitive substring test registered as contains_ci()."""
    if haystack is None or needle is None:
        return 0
    return int(needle.casefold() in haystack.casefold())


class Database:
    """Database manager for SQLite operations."""

    def __init__(self, db_path: Path = DB_PATH, schema_path: Path = SCHEMA_PATH):
        self.db_path = db_path
        self.schema_path = schema_path
        self.ensure_tables()

    def _connect(self, ctx: Optional[RequestContext] = None) -> sqlite3.Connection:
        if ctx is not None:
            ctx.check()
        conn = sqlite3.connect(str(self.db_path), timeout=5.0)
        conn.row_factory = sqlite3.Row
        conn.create_function("contains_ci", 2, _contains_casefold, deterministic=True)
        if ctx is not None:
            # A non-zero return aborts the running statement with "interrupted"
            conn.set_progress_handler(lambda: int(ctx.done()), PROGRESS_HANDLER_INTERVAL)
        return conn

    @contextmanager
    def get_connection(self, ctx: Optional[RequestContext] = None):
        """Context manager for database connections."""
        conn = self._connect(ctx)
        try:
            yield conn
            conn.commit()
        except sqlite3.OperationalError:
            conn.set_progress_handler(None, 0)
            conn.rollback()
            if ctx is not None:
                # Surface an interrupted statement as cancellation/deadline
                ctx.check()
            raise
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get_connection_raw(self, ctx: Optional[RequestContext] = None) -> sqlite3.Connection:
        """Get a raw connection (for operations that need manual commit)."""
        return self._connect(ctx)

    def ensure_tables(self):
        """Create all tables if they don't exist."""
        if self.schema_path.exists():
            with open(self.schema_path, "r", encoding="utf-8") as f:
                schema = f.read()

            with self.get_connection() as conn:
                conn.executescript(schema)

    def execute(
        self,
        query: str,
        params: Optional[tuple] = None,
        ctx: Optional[RequestContext] = None,
    ) -> List[sqlite3.Row]:
        """Execute a SELECT query and return results."""
        with self.get_connection(ctx) as conn:
            cursor = conn.execute(query, params or ())
            return cursor.fetchall()

    def execute_one(
        self,
        query: str,
        params: Optional[tuple] = None,
        ctx: Optional[RequestContext] = None,
    ) -> Optional[sqlite3.Row]:
        """Execute a SELECT query and return first result."""
        results = self.execute(query, params, ctx)
        return results[0] if results else None

    def execute_write(
        self,
        query: str,
        params: Optional[tuple] = None,
        ctx: Optional[RequestContext] = None,
    ) -> int:
        """Execute an INSERT/UPDATE/DELETE query and return the affected row count."""
        with self.get_connection(ctx) as conn:
            cursor = conn.execute(query, params or ())
            return cursor.rowcount

    def execute_many(
        self,
        query: str,
        rows: Iterable[Sequence],
        ctx: Optional[RequestContext] = None,
    ) -> int:
        """Execute one statement for every row inside a single transaction."""
        with self.get_connection(ctx) as conn:
            cursor = conn.executemany(query, rows)
            return cursor.rowcount


# Global database instance
db = Database()
