"""
Shared FastAPI dependencies: request context, caller identity and services.

Identity is established by the upstream auth layer and arrives as the
``X-User-Id`` header, with ``X-User-Role: admin`` for administrators.
"""
from typing import Optional

from fastapi import Depends, Header

from core.config import REINDEX_TIMEOUT_SEC, REQUEST_TIMEOUT_SEC
from core.context import request_scope
from core.errors import ForbiddenError, UnauthorizedError
from services.indexing.reindex import ReindexCoordinator, reindex_coordinator
from services.search.search_service import SearchService, search_service
from services.storage.video_repository import VideoRepository, video_repository
from services.storage.vocabulary_repository import VocabularyRepository, vocabulary_repository
from services.storage.watch_history_repository import (
    WatchHistoryRepository,
    watch_history_repository,
)

ADMIN_ROLE = "admin"


def get_request_context():
    """Per-request context; cancelled once the request has been handled."""
    with request_scope(REQUEST_TIMEOUT_SEC) as ctx:
        yield ctx


def get_reindex_context():
    """Context with the longer deadline used for index rebuilds."""
    with request_scope(REINDEX_TIMEOUT_SEC) as ctx:
        yield ctx


def get_optional_user_id(x_user_id: Optional[str] = Header(default=None)) -> Optional[str]:
    if x_user_id is None:
        return None
    return x_user_id.strip() or None


def require_user(user_id: Optional[str] = Depends(get_optional_user_id)) -> str:
    if not user_id:
        raise UnauthorizedError("Authentication required")
    return user_id


def require_admin(
    user_id: str = Depends(require_user),
    x_user_role: Optional[str] = Header(default=None),
) -> str:
    if (x_user_role or "").strip().lower() != ADMIN_ROLE:
        raise ForbiddenError("Admin access required")
    return user_id


def get_search_service() -> SearchService:
    return search_service


def get_reindex_coordinator() -> ReindexCoordinator:
    return reindex_coordinator


def get_vocabulary_repository() -> VocabularyRepository:
    return vocabulary_repository


def get_video_repository() -> VideoRepository:
    return video_repository


def get_watch_history_repository() -> WatchHistoryRepository:
    return watch_history_repository

