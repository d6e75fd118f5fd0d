"""
Pytest fixtures for the Kotahi backend tests.

Every test gets its own sqlite database and VTT directory. Environment
variables are set before any application module is imported so the
module-level database never touches the real data directory.
"""
import os
import sys
import tempfile
from pathlib import Path

_TEST_DATA_DIR = Path(tempfile.mkdtemp(prefix="kotahi-tests-"))
os.environ["DATA_DIR"] = str(_TEST_DATA_DIR)
os.environ["DB_PATH"] = str(_TEST_DATA_DIR / "kotahi.db")
os.environ["VTT_DIR"] = str(_TEST_DATA_DIR / "vtt")

# Make the backend packages importable when running tests from the backend root.
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

import pytest

from core.database import Database
from models.video_models import Video
from models.vocabulary_models import Headword
from services.indexing.reindex import ReindexCoordinator, ReindexLock
from services.search.search_service import SearchService
from services.storage.index_store import IndexStore
from services.storage.video_repository import VideoRepository
from services.storage.vocabulary_repository import VocabularyRepository
from services.storage.watch_history_repository import WatchHistoryRepository

VTT_URL = "/api/v1/uploads/vtt/"


@pytest.fixture
def database(tmp_path):
    """Fresh database with the application schema."""
    return Database(db_path=tmp_path / "test.db")


@pytest.fixture
def vtt_dir(tmp_path):
    path = tmp_path / "vtt"
    path.mkdir()
    return path


@pytest.fixture
def vocabulary_repo(database):
    return VocabularyRepository(database)


@pytest.fixture
def video_repo(database):
    return VideoRepository(database)


@pytest.fixture
def watch_history_repo(database):
    return WatchHistoryRepository(database)


@pytest.fixture
def store(database):
    return IndexStore(database)


@pytest.fixture
def lock():
    return ReindexLock("test-reindex")


@pytest.fixture
def coordinator(vocabulary_repo, video_repo, store, vtt_dir, lock):
    return ReindexCoordinator(
        vocabulary_repo=vocabulary_repo,
        video_repo=video_repo,
        store=store,
        vtt_root=vtt_dir,
        url_prefix=VTT_URL,
        lock=lock,
        lock_timeout=0.05,
    )


@pytest.fixture
def search(store, video_repo, watch_history_repo):
    return SearchService(store=store, video_repo=video_repo, watch_history_repo=watch_history_repo)


@pytest.fixture
def make_video(video_repo, vtt_dir):
    """
    Factory: register a video and, when ``vtt`` is given, write its subtitle file.

    The subtitle pointer defaults to the upload URL form.
    """
    def _make(video_id, vtt=None, subtitle=None, title=None):
        if vtt is not None:
            (vtt_dir / f"{video_id}.vtt").write_text(vtt, encoding="utf-8")
        if subtitle is None:
            subtitle = f"{VTT_URL}{video_id}.vtt"
        video = Video(
            id=video_id,
            title=title or f"Video {video_id}",
            video=f"/videos/{video_id}.mp4",
            thumbnail=f"/thumbs/{video_id}.jpg",
            subtitle=subtitle,
            duration="0:04",
        )
        return video_repo.create(video)

    return _make


@pytest.fixture
def aroha_corpus(vocabulary_repo):
    """Single head-word corpus used by the end-to-end scenarios."""
    headwords = [Headword(maori="aroha", english="love", description="n.")]
    vocabulary_repo.replace_all(headwords)
    return headwords


@pytest.fixture
def client(search, coordinator, vocabulary_repo, video_repo, watch_history_repo):
    """TestClient with every service dependency pointed at the test database."""
    from fastapi.testclient import TestClient

    from api import dependencies
    from api.main import app

    app.dependency_overrides[dependencies.get_search_service] = lambda: search
    app.dependency_overrides[dependencies.get_reindex_coordinator] = lambda: coordinator
    app.dependency_overrides[dependencies.get_vocabulary_repository] = lambda: vocabulary_repo
    app.dependency_overrides[dependencies.get_video_repository] = lambda: video_repo
    app.dependency_overrides[dependencies.get_watch_history_repository] = lambda: watch_history_repo

    yield TestClient(app)

    app.dependency_overrides.clear()
