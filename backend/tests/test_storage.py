"""
Tests for request contexts, transactions and the repositories.
"""
import sqlite3
import time

import pytest

from core.context import RequestContext, request_scope
from core.errors import DeadlineExceededError, RequestCancelledError
from core.transaction import TransactionManager, retry_on_transient_error
from models.vocabulary_models import Headword
from services.storage.vocabulary_repository import DuplicateHeadwordError


class TestRequestContext:
    """Test deadlines and cancellation."""

    def test_fresh_context_passes_check(self):
        ctx = RequestContext(timeout=5)
        ctx.check()
        assert 0 < ctx.remaining() <= 5
        assert ctx.done() is False

    def test_deadline(self):
        ctx = RequestContext(timeout=0.01)
        time.sleep(0.02)

        assert ctx.expired is True
        assert ctx.remaining() == 0.0
        with pytest.raises(DeadlineExceededError):
            ctx.check()

    def test_unbounded(self):
        ctx = RequestContext(timeout=None)
        assert ctx.remaining() is None
        assert ctx.expired is False

    def test_scope_cancels_on_exit(self):
        with request_scope() as ctx:
            ctx.check()

        assert ctx.cancelled is True
        with pytest.raises(RequestCancelledError):
            ctx.check()


class TestTransactions:
    """Test all-or-nothing writes."""

    def test_rollback_on_error(self, database):
        manager = TransactionManager(database)

        with pytest.raises(RuntimeError):
            with manager.transaction() as conn:
                conn.execute(
                    "INSERT INTO videos (id, title, video) VALUES (?, ?, ?)",
                    ("v1", "Title", "/v1.mp4"),
                )
                raise RuntimeError("boom")

        assert database.execute("SELECT id FROM videos") == []

    def test_commit(self, database):
        manager = TransactionManager(database)

        with manager.transaction() as conn:
            conn.execute(
                "INSERT INTO videos (id, title, video) VALUES (?, ?, ?)",
                ("v1", "Title", "/v1.mp4"),
            )

        assert [row["id"] for row in database.execute("SELECT id FROM videos")] == ["v1"]

    def test_retry_on_locked(self):
        calls = []

        @retry_on_transient_error(max_retries=3, base_delay=0)
        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise sqlite3.OperationalError("database is locked")
            return "ok"

        assert flaky() == "ok"
        assert len(calls) == 3

    def test_no_retry_on_other_errors(self):
        calls = []

        @retry_on_transient_error(max_retries=3, base_delay=0)
        def broken():
            calls.append(1)
            raise sqlite3.OperationalError("no such table: nope")

        with pytest.raises(sqlite3.OperationalError):
            broken()
        assert len(calls) == 1


class TestVocabularyRepository:
    """Test corpus replacement and ingest."""

    def test_replace_all(self, vocabulary_repo, aroha_corpus):
        vocabulary_repo.replace_all([
            Headword(maori="reo", english="language", description="n."),
            Headword(maori="kai", english="food", description="n."),
        ])

        assert [h.maori for h in vocabulary_repo.get_all()] == ["kai", "reo"]
        assert vocabulary_repo.count() == 2

    def test_replace_all_is_atomic(self, vocabulary_repo, aroha_corpus):
        with pytest.raises(sqlite3.IntegrityError):
            vocabulary_repo.replace_all([
                Headword(maori="reo", english="language", description="n."),
                Headword(maori="reo", english="voice", description="n."),
            ])

        assert [h.maori for h in vocabulary_repo.get_all()] == ["aroha"]

    def test_get_by_id(self, vocabulary_repo, aroha_corpus):
        assert vocabulary_repo.get_by_id(aroha_corpus[0].id).maori == "aroha"
        assert vocabulary_repo.get_by_id("missing") is None

    def test_ingest_error_policy_writes_nothing(self, vocabulary_repo, aroha_corpus):
        with pytest.raises(DuplicateHeadwordError) as exc_info:
            vocabulary_repo.ingest([
                Headword(maori="kai", english="food", description="n."),
                Headword(maori="aroha", english="compassion", description="n."),
            ])

        assert exc_info.value.duplicates == ["aroha"]
        assert vocabulary_repo.count() == 1


class TestWatchHistoryRepository:
    """Test progress recording."""

    def test_record_progress_creates_then_updates(self, watch_history_repo):
        first = watch_history_repo.record_progress("u1", "v1", progress=0.2, duration=100.0)
        second = watch_history_repo.record_progress("u1", "v1", progress=0.5, duration=100.0, current_time=50.0)

        assert first.id == second.id
        rows = watch_history_repo.get_by_user_id("u1")
        assert len(rows) == 1
        assert rows[0].reached_time_sec == 50.0

    def test_read_failure_does_not_create(self, watch_history_repo, database):
        database.execute_write("DROP TABLE watch_history")

        with pytest.raises(sqlite3.OperationalError):
            watch_history_repo.record_progress("u1", "v1", progress=0.2, duration=100.0)

    def test_users_are_separate(self, watch_history_repo):
        watch_history_repo.record_progress("u1", "v1", progress=0.2, duration=100.0)
        watch_history_repo.record_progress("u2", "v1", progress=0.4, duration=100.0)

        assert len(watch_history_repo.get_by_user_id("u1")) == 1
        assert watch_history_repo.get_by_user_id("u3") == []
