"""
Vocabulary search over the occurrence index.

A search runs the head-word and English-gloss lookups side by side, merges
them, groups occurrences by head-word, joins each occurrence with its video
and, for a known user, annotates exposure from watch history.
"""
import logging
import sqlite3
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from core.config import MIN_QUERY_LENGTH, SEARCH_MAX_WORKERS
from core.context import RequestContext
from core.errors import DeadlineExceededError, InvalidRequestError, wrap_error
from models.video_models import Video
from models.vocabulary_models import (
    IndexEntry,
    IndexStats,
    Occurrence,
    SearchResultGroup,
    SearchResults,
)
from services.indexing.matcher import contains_headword, fold
from services.search.exposure import calculate_exposure
from services.storage.index_store import IndexStore, index_store
from services.storage.video_repository import VideoRepository, video_repository
from services.storage.watch_history_repository import (
    WatchHistoryRepository,
    watch_history_repository,
)

logger = logging.getLogger(__name__)

# Lookup field names, in the order provenance is recorded
VOCABULARY = "vocabulary"
ENGLISH = "english"


def normalize_query(query: Optional[str]) -> str:
    """Trim the query and enforce the minimum length."""
    query = (query or "").strip()
    if len(query) < MIN_QUERY_LENGTH:
        raise InvalidRequestError(f"query must be at least {MIN_QUERY_LENGTH} characters")
    return query


def merge_lookups(results: Dict[str, List[IndexEntry]]) -> List[Occurrence]:
    """
    Merge per-field lookup results into occurrences, deduplicated by entry id.

    Each occurrence records in ``matched_on`` which lookups returned it.
    Entries whose head-word does not actually occur in their transcript are
    dropped.
    """
    merged: Dict[str, Occurrence] = {}
    for field_name in (VOCABULARY, ENGLISH):
        for entry in results.get(field_name, []):
            occurrence = merged.get(entry.id)
            if occurrence is None:
                if not contains_headword(entry.vocabulary, entry.transcript):
                    logger.warning(
                        f"Dropping index entry {entry.id}: '{entry.vocabulary}' "
                        f"not found in its transcript line"
                    )
                    continue
                occurrence = merged[entry.id] = Occurrence(entry=entry)
            occurrence.matched_on.append(field_name)
    return list(merged.values())


def group_occurrences(occurrences: Iterable[Occurrence]) -> List[SearchResultGroup]:
    """Group by head-word; groups sorted by folded head-word, occurrences by position."""
    groups: Dict[str, SearchResultGroup] = {}
    for occurrence in occurrences:
        entry = occurrence.entry
        group = groups.get(entry.vocabulary)
        if group is None:
            group = groups[entry.vocabulary] = SearchResultGroup(
                vocabulary=entry.vocabulary,
                english=entry.english,
                description=entry.description,
            )
        group.occurrences.append(occurrence)

    for group in groups.values():
        group.occurrences.sort(key=lambda o: (o.entry.video_id, o.entry.line_number))

    return sorted(groups.values(), key=lambda g: (fold(g.vocabulary), g.vocabulary))


class SearchService:
    """Read-side facade over the index, the catalogue and watch history."""

    def __init__(
        self,
        store: IndexStore = index_store,
        video_repo: VideoRepository = video_repository,
        watch_history_repo: WatchHistoryRepository = watch_history_repository,
        max_workers: int = SEARCH_MAX_WORKERS,
    ):
        self.store = store
        self.video_repo = video_repo
        self.watch_history_repo = watch_history_repo
        self.max_workers = max_workers

    def search(
        self,
        query: str,
        user_id: Optional[str] = None,
        ctx: Optional[RequestContext] = None,
    ) -> SearchResults:
        """Search head-words and English glosses for ``query``."""
        return self._search(query, (VOCABULARY, ENGLISH), user_id, ctx)

    def search_english(
        self,
        query: str,
        user_id: Optional[str] = None,
        ctx: Optional[RequestContext] = None,
    ) -> SearchResults:
        """Search English glosses only."""
        return self._search(query, (ENGLISH,), user_id, ctx)

    def video_vocabulary(self, video_id: str, ctx: Optional[RequestContext] = None) -> Dict[str, Any]:
        """
        All index entries for one video, with the video snapshot.

        ``video`` is None when the video record no longer exists.
        """
        video_id = (video_id or "").strip()
        if not video_id:
            raise InvalidRequestError("video_id is required")

        ctx = ctx or RequestContext()
        try:
            entries = self.store.find_by_video(video_id, ctx)
            video = self.video_repo.get_by_id(video_id, ctx)
        except sqlite3.Error as e:
            logger.error(f"Failed to load vocabulary for video {video_id}: {e}")
            raise wrap_error(e)

        return {
            "video_id": video_id,
            "video": video.snapshot() if video else None,
            "vocabulary": [entry.to_dict() for entry in entries],
            "total": len(entries),
        }

    def stats(self, ctx: Optional[RequestContext] = None) -> IndexStats:
        try:
            return self.store.stats(ctx or RequestContext())
        except sqlite3.Error as e:
            logger.error(f"Failed to get index stats: {e}")
            raise wrap_error(e)

    def _search(
        self,
        query: str,
        fields: Sequence[str],
        user_id: Optional[str],
        ctx: Optional[RequestContext],
    ) -> SearchResults:
        query = normalize_query(query)
        ctx = ctx or RequestContext()

        lookups = self._run_lookups(query, fields, ctx)
        occurrences = self._attach_videos(merge_lookups(lookups), ctx)
        results = SearchResults(query=query, groups=group_occurrences(occurrences))

        if user_id:
            self._annotate_exposure(results, user_id, ctx)

        return results

    def _run_lookups(
        self,
        query: str,
        fields: Sequence[str],
        ctx: RequestContext,
    ) -> Dict[str, List[IndexEntry]]:
        """
        Run one lookup per field concurrently, bounded by the request deadline.

        Any failure cancels the request context so the sibling lookup stops
        at its next progress check; the executor is joined before returning.
        """
        lookup_fns: Dict[str, Callable[..., List[IndexEntry]]] = {
            VOCABULARY: self.store.find_by_vocabulary,
            ENGLISH: self.store.find_by_english,
        }
        results: Dict[str, List[IndexEntry]] = {}

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {name: executor.submit(lookup_fns[name], query, ctx) for name in fields}
            try:
                for name, future in futures.items():
                    results[name] = future.result(timeout=ctx.remaining())
            except FutureTimeoutError:
                ctx.cancel()
                logger.warning(f"Vocabulary lookups for '{query}' exceeded the request deadline")
                raise DeadlineExceededError()
            except sqlite3.Error as e:
                ctx.cancel()
                logger.error(f"Vocabulary lookup failed for '{query}': {e}")
                raise wrap_error(e)

        return results

    def _attach_videos(self, occurrences: List[Occurrence], ctx: RequestContext) -> List[Occurrence]:
        """Join each occurrence with its video; occurrences of missing videos are dropped."""
        cache: Dict[str, Optional[Video]] = {}
        kept: List[Occurrence] = []

        for occurrence in occurrences:
            video_id = occurrence.video_id
            if video_id not in cache:
                try:
                    cache[video_id] = self.video_repo.get_by_id(video_id, ctx)
                except sqlite3.Error as e:
                    logger.error(f"Failed to load video {video_id}: {e}")
                    raise wrap_error(e)
                if cache[video_id] is None:
                    logger.debug(f"Video {video_id} no longer exists, skipping its occurrences")

            video = cache[video_id]
            if video is None:
                continue
            occurrence.video = video.snapshot()
            kept.append(occurrence)

        return kept

    def _annotate_exposure(self, results: SearchResults, user_id: str, ctx: RequestContext) -> None:
        try:
            history = self.watch_history_repo.get_by_user_id(user_id, ctx)
        except (sqlite3.Error, ValueError, TypeError) as e:
            logger.warning(f"Watch history unavailable for user {user_id}, returning results without exposure: {e}")
            return

        summary = calculate_exposure(history, results.groups)
        results.total_exposures = summary.total_exposures
        results.recent_exposures = summary.recent_exposures


# Global search service instance
search_service = SearchService()
