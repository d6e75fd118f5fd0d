"""
Exposure calculation: which search occurrences a user has plausibly seen.

An occurrence counts as exposed when the user has a watch-history row for
its video and has played at least as far as the occurrence's start time.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Iterable, Optional

from core.config import RECENT_EXPOSURE_DAYS
from models.video_models import WatchHistory, utcnow
from models.vocabulary_models import SearchResultGroup


@dataclass
class ExposureSummary:
    total_exposures: int = 0
    recent_exposures: int = 0


def furthest_progress_by_video(watch_history: Iterable[WatchHistory]) -> Dict[str, WatchHistory]:
    """Reduce rows to one per video, keeping the one reached furthest."""
    by_video: Dict[str, WatchHistory] = {}
    for row in watch_history:
        current = by_video.get(row.video_id)
        if current is None or row.reached_time_sec > current.reached_time_sec:
            by_video[row.video_id] = row
    return by_video


def calculate_exposure(
    watch_history: Iterable[WatchHistory],
    groups: Iterable[SearchResultGroup],
    now: Optional[datetime] = None,
    recent_days: int = RECENT_EXPOSURE_DAYS,
) -> ExposureSummary:
    """
    Set ``exposure_count`` on each group and total the exposures.

    Args:
        watch_history: One user's watch-history rows
        groups: Search result groups to annotate in place
        now: Reference time for the recency window (defaults to current UTC time)
        recent_days: Width of the recency window; its start is inclusive

    Returns:
        ExposureSummary with total and recent exposure counts
    """
    now = now or utcnow()
    cutoff = now - timedelta(days=recent_days)
    by_video = furthest_progress_by_video(watch_history)
    summary = ExposureSummary()

    for group in groups:
        exposed = 0
        for occurrence in group.occurrences:
            row = by_video.get(occurrence.video_id)
            if row is None or occurrence.start_time > row.reached_time_sec:
                continue
            exposed += 1
            if row.last_watched >= cutoff:
                summary.recent_exposures += 1
        group.exposure_count = exposed
        summary.total_exposures += exposed

    return summary
