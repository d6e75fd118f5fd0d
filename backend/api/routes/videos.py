"""
Video catalogue routes.
"""
import logging
import sqlite3
from dataclasses import asdict

from fastapi import APIRouter, Depends

from api.dependencies import get_request_context, get_video_repository, require_admin
from api.models.requests import VideoCreateRequest
from api.models.responses import ErrorResponse, VideoResponse
from core.context import RequestContext
from core.errors import InvalidRequestError, VideoNotFoundError, wrap_error
from models.video_models import Video
from services.storage.video_repository import VideoRepository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{video_id}", response_model=VideoResponse, responses={404: {"model": ErrorResponse}})
def get_video(
    video_id: str,
    ctx: RequestContext = Depends(get_request_context),
    repository: VideoRepository = Depends(get_video_repository),
):
    try:
        video = repository.get_by_id(video_id, ctx)
    except sqlite3.Error as e:
        raise wrap_error(e)
    if video is None:
        raise VideoNotFoundError()
    return asdict(video)


@router.post("", status_code=201, response_model=VideoResponse)
def create_video(
    request: VideoCreateRequest,
    admin_id: str = Depends(require_admin),
    ctx: RequestContext = Depends(get_request_context),
    repository: VideoRepository = Depends(get_video_repository),
):
    """Register a video. The subtitle pointer is picked up on the next reindex."""
    video = Video(
        id=request.id or Video.new_id(),
        title=request.title,
        video=request.video,
        description=request.description,
        thumbnail=request.thumbnail,
        subtitle=request.subtitle,
        duration=request.duration,
    )
    try:
        repository.create(video, ctx)
    except sqlite3.IntegrityError:
        raise InvalidRequestError(f"Video {video.id} already exists")
    except sqlite3.Error as e:
        raise wrap_error(e)

    logger.info(f"Video {video.id} created by {admin_id}")
    return asdict(video)
