"""
Vocabulary API routes: search, per-video vocabulary, stats, rebuild and CSV upload.
"""
import logging
import sqlite3
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile

from api.dependencies import (
    get_optional_user_id,
    get_reindex_context,
    get_reindex_coordinator,
    get_request_context,
    get_search_service,
    get_vocabulary_repository,
    require_admin,
)
from api.models.responses import (
    BatchUploadResponse,
    ErrorResponse,
    ReindexResponse,
    SearchResponse,
    StatsResponse,
    VideoVocabularyResponse,
    VocabularyItemResponse,
    VocabularyListResponse,
)
from core.config import CSV_MAX_BYTES
from core.context import RequestContext
from core.errors import InvalidRequestError, ValidationError, VocabularyNotFoundError, wrap_error
from services.indexing.csv_ingest import CSVValidationError, parse_vocabulary_csv
from services.indexing.reindex import ReindexCoordinator
from services.search.search_service import SearchService
from services.storage.vocabulary_repository import DUPLICATE_POLICIES, VocabularyRepository

logger = logging.getLogger(__name__)

router = APIRouter()

UPLOAD_MODES = ("replace", "ingest")


@router.get(
    "/search",
    response_model=SearchResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def search_vocabulary(
    q: str = Query("", description="Māori head-word or English gloss substring"),
    user_id: Optional[str] = Depends(get_optional_user_id),
    ctx: RequestContext = Depends(get_request_context),
    service: SearchService = Depends(get_search_service),
):
    """
    Search head-words and English glosses.

    Exposure counts are included only when the caller is identified.
    """
    results = service.search(q, user_id, ctx)
    return {"message": "Vocabulary search completed", **results.to_dict()}


@router.get(
    "/search/english",
    response_model=SearchResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def search_english(
    q: str = Query("", description="English gloss substring"),
    user_id: Optional[str] = Depends(get_optional_user_id),
    ctx: RequestContext = Depends(get_request_context),
    service: SearchService = Depends(get_search_service),
):
    """Search English glosses only."""
    results = service.search_english(q, user_id, ctx)
    return {"message": "English vocabulary search completed", **results.to_dict()}


@router.get("/video", response_model=VideoVocabularyResponse)
def video_vocabulary(
    video_id: str = Query("", description="Video ID"),
    ctx: RequestContext = Depends(get_request_context),
    service: SearchService = Depends(get_search_service),
):
    """All indexed vocabulary for one video, in transcript order."""
    return {"message": "Video vocabulary retrieved", **service.video_vocabulary(video_id, ctx)}


@router.get("/stats", response_model=StatsResponse)
def vocabulary_stats(
    ctx: RequestContext = Depends(get_request_context),
    service: SearchService = Depends(get_search_service),
):
    stats = service.stats(ctx)
    return {"message": "Vocabulary statistics retrieved", "stats": asdict(stats)}


@router.post(
    "/reindex",
    response_model=ReindexResponse,
    responses={409: {"model": ErrorResponse}},
)
def reindex_vocabulary(
    admin_id: str = Depends(require_admin),
    ctx: RequestContext = Depends(get_reindex_context),
    coordinator: ReindexCoordinator = Depends(get_reindex_coordinator),
):
    """Rebuild the whole occurrence index synchronously."""
    logger.info(f"Reindex requested by {admin_id}")
    summary = coordinator.reindex(ctx)
    return {"message": "Reindexing completed", **asdict(summary)}


def _read_csv_upload(upload: Optional[UploadFile]) -> bytes:
    if upload is None:
        raise InvalidRequestError("CSV file is required")

    filename = (upload.filename or "").lower()
    if not filename.endswith(".csv"):
        raise InvalidRequestError("File must be a CSV file")

    data = upload.file.read(CSV_MAX_BYTES + 1)
    if len(data) > CSV_MAX_BYTES:
        raise InvalidRequestError(f"File size exceeds {CSV_MAX_BYTES // (1024 * 1024)}MB limit")
    return data


@router.post(
    "/batch-upload",
    status_code=201,
    response_model=BatchUploadResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def batch_upload(
    csv_file: Optional[UploadFile] = File(default=None, alias="csv"),
    mode: str = Query("replace", description="replace: swap the corpus and rebuild; ingest: merge only"),
    duplicates: str = Query("error", description="Ingest mode: skip, update or error on existing head-words"),
    admin_id: str = Depends(require_admin),
    ctx: RequestContext = Depends(get_reindex_context),
    coordinator: ReindexCoordinator = Depends(get_reindex_coordinator),
):
    """
    Upload a vocabulary CSV (maori, english, description).

    The file is validated as a whole; any bad row rejects the upload
    before anything is written.
    """
    if mode not in UPLOAD_MODES:
        raise InvalidRequestError(f"mode must be one of: {', '.join(UPLOAD_MODES)}")
    if mode == "ingest" and duplicates not in DUPLICATE_POLICIES:
        raise InvalidRequestError(f"duplicates must be one of: {', '.join(DUPLICATE_POLICIES)}")

    data = _read_csv_upload(csv_file)
    try:
        headwords = parse_vocabulary_csv(data)
    except CSVValidationError as e:
        raise ValidationError(str(e), errors=e.errors)

    items = [h.to_dict() for h in headwords]
    logger.info(f"{admin_id} uploaded {len(headwords)} vocabulary items ({mode} mode)")

    if mode == "replace":
        summary = coordinator.replace_vocabulary(headwords, ctx)
        return {
            "message": f"Successfully uploaded {len(headwords)} vocabulary items",
            "mode": mode,
            "created": len(headwords),
            "total": len(headwords),
            "items": items,
            "reindexing": asdict(summary),
        }

    ingest = coordinator.ingest_vocabulary(headwords, duplicates, ctx)
    return {
        "message": f"Successfully ingested {ingest.total} vocabulary items",
        "mode": mode,
        "created": ingest.created,
        "updated": ingest.updated,
        "skipped": ingest.skipped,
        "total": ingest.total,
        "items": items,
    }


@router.get("", response_model=VocabularyListResponse)
def list_vocabulary(
    ctx: RequestContext = Depends(get_request_context),
    repository: VocabularyRepository = Depends(get_vocabulary_repository),
):
    try:
        headwords = repository.get_all(ctx)
    except sqlite3.Error as e:
        raise wrap_error(e)
    return {
        "message": "Vocabulary retrieved",
        "vocabulary": [h.to_dict() for h in headwords],
        "total": len(headwords),
    }


@router.get(
    "/{vocabulary_id}",
    response_model=VocabularyItemResponse,
    responses={404: {"model": ErrorResponse}},
)
def get_vocabulary(
    vocabulary_id: str,
    ctx: RequestContext = Depends(get_request_context),
    repository: VocabularyRepository = Depends(get_vocabulary_repository),
):
    try:
        headword = repository.get_by_id(vocabulary_id, ctx)
    except sqlite3.Error as e:
        raise wrap_error(e)
    if headword is None:
        raise VocabularyNotFoundError()
    return {"message": "Vocabulary retrieved", "vocabulary": headword.to_dict()}
