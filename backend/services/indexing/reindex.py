"""
Full rebuild of the vocabulary occurrence index.

A rebuild truncates the index and re-scans every video's subtitle file
against the current head-word corpus. Per-video failures are logged and
skipped; the rest of the batch still runs. Only one rebuild (or corpus
replacement) may run at a time per process.
"""
import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Sequence

from core.config import REINDEX_LOCK_TIMEOUT_SEC, VTT_DIR, VTT_URL_PREFIX
from core.context import RequestContext, background_context
from core.errors import ReindexInProgressError, ValidationError, InvalidRequestError, wrap_error
from models.vocabulary_models import Headword, IngestSummary, ReindexSummary
from services.indexing.indexer import VocabularyIndexer
from services.storage.index_store import BulkInsertError, IndexStore, index_store
from services.storage.video_repository import VideoRepository, video_repository
from services.storage.vocabulary_repository import (
    DUPLICATE_POLICIES,
    DuplicateHeadwordError,
    VocabularyRepository,
    vocabulary_repository,
)

logger = logging.getLogger(__name__)


class ReindexLock:
    """Named process-wide mutex, acquired with a timeout."""

    def __init__(self, name: str):
        self.name = name
        self._lock = threading.Lock()

    @contextmanager
    def hold(self, timeout: float = REINDEX_LOCK_TIMEOUT_SEC):
        """
        Hold the lock for the duration of the block.

        Raises:
            ReindexInProgressError: if the lock is not free within ``timeout``
        """
        if not self._lock.acquire(timeout=timeout):
            logger.warning(f"Lock '{self.name}' busy after {timeout}s")
            raise ReindexInProgressError()
        try:
            yield
        finally:
            self._lock.release()


# Global reindex lock
reindex_lock = ReindexLock("vocabulary-reindex")


class ReindexCoordinator:
    """Coordinates corpus replacement and index rebuilds."""

    def __init__(
        self,
        vocabulary_repo: VocabularyRepository = vocabulary_repository,
        video_repo: VideoRepository = video_repository,
        store: IndexStore = index_store,
        vtt_root: Path = VTT_DIR,
        url_prefix: str = VTT_URL_PREFIX,
        lock: ReindexLock = reindex_lock,
        lock_timeout: float = REINDEX_LOCK_TIMEOUT_SEC,
    ):
        self.vocabulary_repo = vocabulary_repo
        self.video_repo = video_repo
        self.store = store
        self.vtt_root = vtt_root
        self.url_prefix = url_prefix
        self.lock = lock
        self.lock_timeout = lock_timeout

    def reindex(self, ctx: Optional[RequestContext] = None) -> ReindexSummary:
        """Rebuild the index from the stored corpus and catalogue."""
        ctx = ctx or background_context()
        with self.lock.hold(self.lock_timeout):
            return self._rebuild(ctx)

    def replace_vocabulary(
        self,
        headwords: Sequence[Headword],
        ctx: Optional[RequestContext] = None,
    ) -> ReindexSummary:
        """
        Replace the whole corpus, then rebuild the index against it.

        The replacement is atomic; the rebuild that follows is not.
        """
        ctx = ctx or background_context()
        with self.lock.hold(self.lock_timeout):
            try:
                created = self.vocabulary_repo.replace_all(headwords, ctx)
            except sqlite3.Error as e:
                logger.error(f"Failed to replace vocabulary: {e}")
                raise wrap_error(e)
            logger.info(f"Replaced vocabulary corpus with {created} head-words")
            return self._rebuild(ctx)

    def ingest_vocabulary(
        self,
        headwords: Sequence[Headword],
        duplicates: str = "error",
        ctx: Optional[RequestContext] = None,
    ) -> IngestSummary:
        """Merge head-words into the corpus without rebuilding the index."""
        if duplicates not in DUPLICATE_POLICIES:
            raise InvalidRequestError(
                f"duplicates must be one of: {', '.join(DUPLICATE_POLICIES)}"
            )

        ctx = ctx or background_context()
        with self.lock.hold(self.lock_timeout):
            try:
                summary = self.vocabulary_repo.ingest(headwords, duplicates, ctx)
            except DuplicateHeadwordError as e:
                raise ValidationError(
                    "Vocabulary already exists",
                    errors=[f"Duplicate Māori word '{maori}' already exists" for maori in e.duplicates],
                )
            except sqlite3.Error as e:
                logger.error(f"Failed to ingest vocabulary: {e}")
                raise wrap_error(e)

        logger.info(
            f"Ingested vocabulary: {summary.created} created, "
            f"{summary.updated} updated, {summary.skipped} skipped"
        )
        return summary

    def _rebuild(self, ctx: RequestContext) -> ReindexSummary:
        try:
            headwords = self.vocabulary_repo.get_all(ctx)
            videos = self.video_repo.get_all(ctx)
            self.store.truncate(ctx)
        except sqlite3.Error as e:
            logger.error(f"Failed to prepare reindex: {e}")
            raise wrap_error(e)

        summary = ReindexSummary(total_videos=len(videos), total_vocabulary=len(headwords))
        indexer = VocabularyIndexer(headwords, self.vtt_root, self.url_prefix)
        logger.info(f"Reindexing {len(videos)} videos against {len(headwords)} head-words")

        for video in videos:
            entries = indexer.index_video(video.id, video.subtitle, ctx)
            if entries is None:
                continue

            ctx.check()

            try:
                inserted = self.store.insert_many(entries, ctx)
            except BulkInsertError as e:
                logger.error(f"Partial index insert for video {video.id}: {e}")
                summary.total_indexed += e.inserted
                continue
            except sqlite3.Error as e:
                logger.error(f"Failed to save index for video {video.id}: {e}")
                continue

            summary.processed_videos += 1
            summary.total_indexed += inserted
            logger.debug(f"Indexed video {video.id}: {inserted} entries")

        logger.info(
            f"Reindexing completed: {summary.processed_videos}/{summary.total_videos} videos, "
            f"{summary.total_indexed} entries"
        )
        return summary


# Global reindex coordinator instance
reindex_coordinator = ReindexCoordinator()
