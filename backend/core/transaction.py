"""
Database transaction management with rollback support.
"""
import logging
import sqlite3
import time
from typing import Optional
from contextlib import contextmanager
from functools import wraps

from core.context import RequestContext
from core.database import Database, db

logger = logging.getLogger(__name__)


class TransactionManager:
    """Runs multi-statement writes as one all-or-nothing unit."""

    def __init__(self, database: Database = db):
        self.database = database

    @contextmanager
    def transaction(
        self,
        ctx: Optional[RequestContext] = None,
        isolation_level: Optional[str] = "IMMEDIATE",
    ):
        """
        Context manager for database transactions.

        Usage:
            with TransactionManager(database).transaction(ctx) as conn:
                conn.execute("DELETE FROM vocabulary")
                conn.executemany("INSERT INTO vocabulary ...", rows)
                # If an exception is raised, both writes are rolled back

        Args:
            ctx: Request context; an interrupted statement rolls back and
                surfaces as cancellation or deadline expiry
            isolation_level: SQLite BEGIN mode
                - "DEFERRED": Lock on first write
                - "IMMEDIATE": Take the write lock up front (default)
                - "EXCLUSIVE": Exclusive lock

        Yields:
            Connection object for manual operations
        """
        conn = self.database.get_connection_raw(ctx)
        # Autocommit mode so BEGIN/COMMIT below are the only transaction
        conn.isolation_level = None

        try:
            conn.execute(f"BEGIN {isolation_level or 'DEFERRED'}")

            yield conn

            conn.execute("COMMIT")

        except sqlite3.OperationalError:
            conn.set_progress_handler(None, 0)
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            if ctx is not None:
                ctx.check()
            raise

        except Exception:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise

        finally:
            conn.close()


def retry_on_transient_error(max_retries: int = 3, base_delay: float = 0.1):
    """
    Decorator to retry operations on transient errors.

    Detects SQLite busy/locked errors.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            for attempt in range(max_retries):
                try:
                    return func(*args, **kwargs)
                except sqlite3.OperationalError as e:
                    if _is_transient_error(e) and attempt < max_retries - 1:
                        delay = base_delay * (2 ** attempt)
                        logger.warning(f"Database locked, retrying in {delay}s...")
                        time.sleep(delay)
                        continue
                    raise

            return func(*args, **kwargs)

        return wrapper
    return decorator


def _is_transient_error(error: Exception) -> bool:
    """Determine if error is transient (retryable)."""
    error_str = str(error).lower()
    transient_indicators = [
        "locked",
        "busy",
    ]
    return any(indicator in error_str for indicator in transient_indicators)

