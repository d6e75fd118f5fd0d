"""
Tests for the reindex coordinator: rebuilds, corpus replacement and ingest.
"""
import sqlite3
from collections import Counter
from unittest.mock import patch

import pytest

from core.context import RequestContext
from core.errors import InvalidRequestError, ReindexInProgressError, RequestCancelledError, ValidationError
from models.vocabulary_models import Headword
from services.indexing.matcher import contains_headword

AROHA_VTT = "WEBVTT\n\n00:00:01.000 --> 00:00:03.500\nKo te aroha.\n"
TWO_LINE_VTT = (
    "WEBVTT\n\n"
    "00:00:01.000 --> 00:00:02.000\nKia ora, he aroha nui\n\n"
    "00:00:03.000 --> 00:00:04.000\nKo te reo tēnei\n"
)


def index_multiset(store, video_ids):
    """Index contents without per-build ids and timestamps."""
    return Counter(
        (e.video_id, e.vocabulary, e.english, e.description, e.start_time, e.end_time, e.transcript, e.line_number)
        for video_id in video_ids
        for e in store.find_by_video(video_id)
    )


class TestReindex:
    """Test full index rebuilds."""

    def test_single_video_single_entry(self, coordinator, store, make_video, aroha_corpus):
        make_video("v1", vtt=AROHA_VTT)

        summary = coordinator.reindex()

        assert summary.processed_videos == 1
        assert summary.total_indexed == 1
        assert summary.total_videos == 1
        assert summary.total_vocabulary == 1

        entries = store.find_by_video("v1")
        assert len(entries) == 1
        entry = entries[0]
        assert (entry.video_id, entry.vocabulary, entry.start_time, entry.end_time) == ("v1", "aroha", 1.0, 3.5)
        assert (entry.transcript, entry.line_number) == ("Ko te aroha.", 1)

    def test_missing_vtt_file_skipped(self, coordinator, store, make_video, aroha_corpus):
        make_video("v1", vtt=AROHA_VTT)
        make_video("v2")  # subtitle pointer names a file that was never uploaded

        summary = coordinator.reindex()

        assert summary.processed_videos == 1
        assert summary.total_videos == 2
        assert store.find_by_video("v2") == []
        assert summary.total_indexed == 1

    def test_video_without_subtitle_not_processed(self, coordinator, make_video, aroha_corpus):
        make_video("v1", vtt=AROHA_VTT)
        make_video("v2", subtitle="")

        summary = coordinator.reindex()

        assert summary.processed_videos == 1
        assert summary.total_videos == 2

    def test_unparseable_file_does_not_abort_batch(self, coordinator, store, make_video, aroha_corpus):
        make_video("v1", vtt="WEBVTT\n\n")
        make_video("v2", vtt=AROHA_VTT)

        summary = coordinator.reindex()

        assert summary.processed_videos == 1
        assert len(store.find_by_video("v2")) == 1

    def test_cue_right_after_header_is_indexed(self, coordinator, store, make_video, aroha_corpus):
        make_video("v1", vtt="WEBVTT\n00:00:01.000 --> 00:00:03.500\nKo te aroha.\n")

        summary = coordinator.reindex()

        assert summary.processed_videos == 1
        assert summary.total_indexed == 1
        assert store.find_by_video("v1")[0].start_time == 1.0

    def test_store_error_isolated_per_video(self, coordinator, store, make_video, aroha_corpus):
        make_video("v1", vtt=AROHA_VTT)
        make_video("v2", vtt=AROHA_VTT)
        original = store.insert_many

        def failing_for_v1(entries, ctx=None):
            if entries and entries[0].video_id == "v1":
                raise sqlite3.OperationalError("disk I/O error")
            return original(entries, ctx)

        with patch.object(store, "insert_many", side_effect=failing_for_v1):
            summary = coordinator.reindex()

        assert summary.processed_videos == 1
        assert summary.total_indexed == 1
        assert store.find_by_video("v1") == []

    def test_reindex_is_idempotent(self, coordinator, store, make_video, vocabulary_repo):
        vocabulary_repo.replace_all([
            Headword(maori="aroha", english="love", description="n."),
            Headword(maori="reo", english="language", description="n."),
        ])
        make_video("v1", vtt=TWO_LINE_VTT)
        make_video("v2", vtt=AROHA_VTT)

        first_summary = coordinator.reindex()
        first = index_multiset(store, ["v1", "v2"])
        second_summary = coordinator.reindex()
        second = index_multiset(store, ["v1", "v2"])

        assert first == second
        assert first_summary == second_summary
        assert store.stats().total_indexes == 3

    def test_rebuild_reflects_catalogue_and_corpus(self, coordinator, store, make_video, vocabulary_repo, video_repo):
        vocabulary_repo.replace_all([
            Headword(maori="aroha", english="love", description="n."),
            Headword(maori="reo", english="language", description="n."),
        ])
        make_video("v1", vtt=TWO_LINE_VTT)
        make_video("v2", vtt=AROHA_VTT)

        coordinator.reindex()

        corpus = {h.maori for h in vocabulary_repo.get_all()}
        catalogue = {v.id for v in video_repo.get_all()}
        for video_id in catalogue:
            for entry in store.find_by_video(video_id):
                assert entry.vocabulary in corpus
                assert contains_headword(entry.vocabulary, entry.transcript)
        assert store.stats().unique_videos <= len(catalogue)

    def test_busy_lock_fails_fast(self, coordinator, lock, make_video, aroha_corpus):
        make_video("v1", vtt=AROHA_VTT)

        with lock.hold():
            with pytest.raises(ReindexInProgressError):
                coordinator.reindex()

        assert coordinator.reindex().processed_videos == 1

    def test_cancellation_stops_at_next_video(self, coordinator, store, make_video, aroha_corpus):
        make_video("v1", vtt=AROHA_VTT)
        make_video("v2", vtt=AROHA_VTT)
        ctx = RequestContext(timeout=None)
        original = store.insert_many

        def insert_then_cancel(entries, call_ctx=None):
            inserted = original(entries, call_ctx)
            call_ctx.cancel()
            return inserted

        with patch.object(store, "insert_many", side_effect=insert_then_cancel):
            with pytest.raises(RequestCancelledError):
                coordinator.reindex(ctx)

        # Entries written before cancellation remain
        assert len(store.find_by_video("v1")) == 1
        assert store.find_by_video("v2") == []


class TestReplaceVocabulary:
    """Test corpus replacement followed by a rebuild."""

    def test_replace_then_rebuild(self, coordinator, store, vocabulary_repo, make_video, aroha_corpus):
        make_video("v1", vtt=TWO_LINE_VTT)
        coordinator.reindex()
        assert {e.vocabulary for e in store.find_by_video("v1")} == {"aroha"}

        summary = coordinator.replace_vocabulary([Headword(maori="reo", english="language", description="n.")])

        assert summary.total_vocabulary == 1
        assert [h.maori for h in vocabulary_repo.get_all()] == ["reo"]
        assert {e.vocabulary for e in store.find_by_video("v1")} == {"reo"}

    def test_replace_equivalent_to_replace_all_then_reindex(
        self, coordinator, store, vocabulary_repo, make_video
    ):
        headwords = [
            Headword(maori="aroha", english="love", description="n."),
            Headword(maori="reo", english="language", description="n."),
        ]
        make_video("v1", vtt=TWO_LINE_VTT)

        coordinator.replace_vocabulary(headwords)
        integrated = index_multiset(store, ["v1"])

        vocabulary_repo.replace_all(headwords)
        coordinator.reindex()
        separate = index_multiset(store, ["v1"])

        assert integrated == separate

    def test_busy_lock_leaves_corpus_untouched(self, coordinator, lock, vocabulary_repo, aroha_corpus):
        with lock.hold():
            with pytest.raises(ReindexInProgressError):
                coordinator.replace_vocabulary([Headword(maori="reo", english="language", description="n.")])

        assert [h.maori for h in vocabulary_repo.get_all()] == ["aroha"]


class TestIngestVocabulary:
    """Test ingest-only uploads with duplicate policies."""

    def test_skip(self, coordinator, vocabulary_repo, aroha_corpus):
        summary = coordinator.ingest_vocabulary(
            [
                Headword(maori="aroha", english="compassion", description="v."),
                Headword(maori="reo", english="language", description="n."),
            ],
            duplicates="skip",
        )

        assert (summary.created, summary.updated, summary.skipped) == (1, 0, 1)
        stored = {h.maori: h.english for h in vocabulary_repo.get_all()}
        assert stored == {"aroha": "love", "reo": "language"}

    def test_update(self, coordinator, vocabulary_repo, aroha_corpus):
        summary = coordinator.ingest_vocabulary(
            [Headword(maori="aroha", english="compassion", description="v.")],
            duplicates="update",
        )

        assert (summary.created, summary.updated, summary.skipped) == (0, 1, 0)
        stored = vocabulary_repo.get_all()
        assert [(h.id, h.english) for h in stored] == [(aroha_corpus[0].id, "compassion")]

    def test_error_rejects_whole_batch(self, coordinator, vocabulary_repo, aroha_corpus):
        with pytest.raises(ValidationError) as exc_info:
            coordinator.ingest_vocabulary(
                [
                    Headword(maori="reo", english="language", description="n."),
                    Headword(maori="aroha", english="compassion", description="v."),
                ],
                duplicates="error",
            )

        assert exc_info.value.errors == ["Duplicate Māori word 'aroha' already exists"]
        assert [h.maori for h in vocabulary_repo.get_all()] == ["aroha"]

    def test_ingest_does_not_rebuild(self, coordinator, store, make_video, aroha_corpus):
        make_video("v1", vtt=TWO_LINE_VTT)

        coordinator.ingest_vocabulary([Headword(maori="reo", english="language", description="n.")])

        assert store.stats().total_indexes == 0

    def test_unknown_policy(self, coordinator):
        with pytest.raises(InvalidRequestError):
            coordinator.ingest_vocabulary([], duplicates="merge")
