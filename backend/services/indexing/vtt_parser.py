"""
WebVTT subtitle parsing.

Cue parsing is done by webvtt-py. This module normalises the header so
files without one (or without a blank line after it) still parse, converts
cue timestamps to seconds and drops cues that carry no text. Blocks the
library cannot read as cues are skipped; later cues are kept.
"""
import io
import logging
import re
from typing import Iterator, List, Optional

import webvtt
from webvtt.errors import MalformedFileError

from models.transcript_models import TranscriptLine

logger = logging.getLogger(__name__)

VTT_HEADER = "WEBVTT"
TIMING_ARROW = "-->"

# HH:MM:SS.mmm, hours may be omitted
TIMESTAMP_PATTERN = re.compile(r"^(?:(\d+):)?(\d{2}):(\d{2})\.(\d{3})$")


class VTTParseError(ValueError):
    """Raised when a subtitle file has no content after the header."""


def timestamp_to_seconds(timestamp: str) -> Optional[float]:
    """Convert a cue timestamp to seconds; None if it is malformed."""
    match = TIMESTAMP_PATTERN.match(timestamp.strip())
    if not match:
        return None

    hours, minutes, seconds, millis = match.groups()
    m, s = int(minutes), int(seconds)
    if m > 59 or s > 59:
        return None
    return int(hours or 0) * 3600 + m * 60 + s + int(millis) / 1000.0


def split_header(content: str) -> List[str]:
    """
    Split content into lines and drop the WEBVTT header block if present.

    The header block ends at the first blank line or the first timing line,
    whichever comes first.
    """
    lines = content.lstrip("\ufeff").splitlines()
    if not lines or not lines[0].strip().startswith(VTT_HEADER):
        return lines

    index = 1
    while index < len(lines) and lines[index].strip() and TIMING_ARROW not in lines[index]:
        index += 1
    return lines[index:]


def _read_captions(body: List[str]):
    # Whitespace-only lines act as cue boundaries
    lines = [line if line.strip() else "" for line in body]
    buffer = io.StringIO("\n".join([VTT_HEADER, ""] + lines) + "\n")
    try:
        return webvtt.from_buffer(buffer)
    except MalformedFileError as e:
        raise VTTParseError(f"malformed subtitle file: {e}") from e


def iter_transcript_lines(content: str) -> Iterator[TranscriptLine]:
    """
    Lazily yield transcript lines from WebVTT content, in file order.

    Raises:
        VTTParseError: if nothing but whitespace remains after the header
    """
    body = split_header(content)
    if not any(line.strip() for line in body):
        raise VTTParseError("subtitle file is empty")

    for caption in _read_captions(body):
        start = timestamp_to_seconds(caption.start)
        end = timestamp_to_seconds(caption.end)
        if start is None or end is None or end < start:
            logger.debug(f"Skipping cue with malformed timing: {caption.start} --> {caption.end}")
            continue

        text = "\n".join(line.strip() for line in caption.lines).strip()
        if not text:
            continue

        yield TranscriptLine(start_time_sec=start, end_time_sec=end, text=text)


def parse_vtt(content: str) -> List[TranscriptLine]:
    """Parse WebVTT content into a list of transcript lines."""
    return list(iter_transcript_lines(content))
