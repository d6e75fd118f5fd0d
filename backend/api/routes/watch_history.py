"""
Watch-history routes.
"""
import sqlite3

from fastapi import APIRouter, Depends

from api.dependencies import (
    get_request_context,
    get_video_repository,
    get_watch_history_repository,
    require_user,
)
from api.models.requests import WatchHistoryUpdateRequest
from api.models.responses import ErrorResponse, WatchHistoryResponse
from core.context import RequestContext
from core.errors import VideoNotFoundError, wrap_error
from services.storage.video_repository import VideoRepository
from services.storage.watch_history_repository import WatchHistoryRepository

router = APIRouter()


@router.put("", response_model=WatchHistoryResponse, responses={404: {"model": ErrorResponse}})
def update_watch_history(
    request: WatchHistoryUpdateRequest,
    user_id: str = Depends(require_user),
    ctx: RequestContext = Depends(get_request_context),
    videos: VideoRepository = Depends(get_video_repository),
    history: WatchHistoryRepository = Depends(get_watch_history_repository),
):
    """Record how far the caller has watched a video."""
    try:
        if videos.get_by_id(request.video_id, ctx) is None:
            raise VideoNotFoundError()
        entry = history.record_progress(
            user_id,
            request.video_id,
            progress=request.progress,
            duration=request.duration,
            current_time=request.current_time,
            ctx=ctx,
        )
    except sqlite3.Error as e:
        raise wrap_error(e)

    return {
        "id": entry.id,
        "user_id": entry.user_id,
        "video_id": entry.video_id,
        "progress": entry.progress,
        "current_time": entry.current_time,
        "duration": entry.duration,
        "completed": entry.completed,
        "last_watched": entry.last_watched.isoformat(),
    }
