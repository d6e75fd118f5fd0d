"""
Per-video vocabulary indexing.

Reads one video's subtitle file, parses it and emits an index entry for
every (transcript line, head-word) hit.
"""
import logging
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Optional

from core.config import VTT_DIR, VTT_URL_PREFIX
from core.context import RequestContext
from models.transcript_models import TranscriptLine
from models.vocabulary_models import Headword, IndexEntry
from services.indexing.matcher import HeadwordMatcher
from services.indexing.vtt_parser import VTTParseError, iter_transcript_lines

logger = logging.getLogger(__name__)


def subtitle_filename(pointer: str, url_prefix: str = VTT_URL_PREFIX) -> str:
    """
    Reduce a subtitle pointer to a filename in the VTT store.

    Accepts an upload URL (``/api/v1/uploads/vtt/<name>``), a path
    containing slashes, or a bare filename.
    """
    pointer = pointer.strip()
    if pointer.startswith(url_prefix):
        return pointer[len(url_prefix):]
    if "/" in pointer or "\\" in pointer:
        return PurePosixPath(pointer.replace("\\", "/")).name
    return pointer


def resolve_subtitle_path(
    pointer: str,
    vtt_root: Path = VTT_DIR,
    url_prefix: str = VTT_URL_PREFIX,
) -> Optional[Path]:
    """
    Resolve a subtitle pointer to an existing file under ``vtt_root``.

    Returns None if the pointer is empty, escapes the root, or names a file
    that does not exist.
    """
    if not pointer or not pointer.strip():
        return None

    filename = subtitle_filename(pointer, url_prefix)
    if not filename or filename in (".", ".."):
        return None

    root = vtt_root.resolve()
    path = (root / filename).resolve()
    if root not in path.parents:
        logger.warning(f"Subtitle pointer {pointer!r} resolves outside the VTT store")
        return None
    if not path.is_file():
        return None
    return path


def read_subtitle(path: Path) -> str:
    """Read a subtitle file as UTF-8, tolerating a byte-order mark."""
    return path.read_text(encoding="utf-8-sig")


class VocabularyIndexer:
    """Builds index entries for videos against a fixed vocabulary snapshot."""

    def __init__(
        self,
        headwords: Iterable[Headword],
        vtt_root: Path = VTT_DIR,
        url_prefix: str = VTT_URL_PREFIX,
    ):
        self.matcher = HeadwordMatcher(headwords)
        self.vtt_root = vtt_root
        self.url_prefix = url_prefix

    def index_lines(self, video_id: str, lines: Iterable[TranscriptLine]) -> List[IndexEntry]:
        """Emit one entry per head-word hit on each line; line numbers are 1-based."""
        entries: List[IndexEntry] = []
        for line_number, line in enumerate(lines, 1):
            for headword in self.matcher.find(line.text):
                entries.append(IndexEntry(
                    video_id=video_id,
                    vocabulary=headword.maori,
                    english=headword.english,
                    description=headword.description,
                    start_time=line.start_time_sec,
                    end_time=line.end_time_sec,
                    transcript=line.text,
                    line_number=line_number,
                ))
        return entries

    def index_file(self, video_id: str, path: Path) -> List[IndexEntry]:
        """
        Index a subtitle file already resolved on disk.

        Raises:
            OSError: if the file cannot be read
            UnicodeDecodeError: if it is not valid UTF-8
            VTTParseError: if it has no content after the header
        """
        content = read_subtitle(path)
        return self.index_lines(video_id, iter_transcript_lines(content))

    def index_video(
        self,
        video_id: str,
        subtitle: str,
        ctx: Optional[RequestContext] = None,
    ) -> Optional[List[IndexEntry]]:
        """
        Index one video by its subtitle pointer.

        Returns None when the video could not be processed: the pointer is
        empty or does not resolve to a file, or the file cannot be read or
        parsed. A processed file with no head-word hits returns an empty list.
        """
        if ctx is not None:
            ctx.check()

        if not subtitle or not subtitle.strip():
            return None

        path = resolve_subtitle_path(subtitle, self.vtt_root, self.url_prefix)
        if path is None:
            logger.warning(f"VTT file not found for video {video_id}: {subtitle!r}")
            return None

        try:
            return self.index_file(video_id, path)
        except (OSError, UnicodeDecodeError, VTTParseError) as e:
            logger.warning(f"Skipping video {video_id}: {e}")
            return None
