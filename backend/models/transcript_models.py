"""
Data models for parsed subtitle transcripts.
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class TranscriptLine:
    """One WebVTT cue: its timing in seconds and its joined text body."""
    start_time_sec: float
    end_time_sec: float
    text: str
