import math
from dataclasses import dataclass
from typing import Sequence

from socrates.transcript.models import TimedWord

RAW_TEXT_MAX_CHARS = 4000


@dataclass(frozen=True)
class FollowupWindow:
    start: float
    end: float
    text: str

    def to_dict(self) -> dict:
        return {"start": self.start, "end": self.end, "text": self.text}


def chunk_windows(words: Sequence[TimedWord], window_sec: float = 20.0, max_chars: int = 500) -> list[FollowupWindow]:
    """
    Partition timed words into fixed-width buckets.
    A bucket opens at the first word that falls past the previous bucket's end.
    """
    if not words:
        return []

    window_sec = max(0.001, float(window_sec))
    windows: list[FollowupWindow] = []
    cur_start = float(words[0].start_time or 0.0)
    cur_end = cur_start + window_sec
    buf: list[str] = []

    def flush():
        if buf:
            text = " ".join(buf)[:max_chars]
            windows.append(FollowupWindow(start=cur_start, end=cur_end, text=text))
            buf.clear()

    for word in words:
        start = float(word.start_time or 0.0)
        if start >= cur_end:
            flush()
            cur_start = start
            cur_end = cur_start + window_sec
        buf.append(str(word.text or ""))
    flush()
    return windows


def windows_from_text(text: str) -> list[FollowupWindow]:
    cleaned = str(text or "").strip()
    if not cleaned:
        return []
    # no timestamps: one window sized at ~2 words per second
    end = max(20, math.ceil(len(cleaned.split()) / 2))
    return [FollowupWindow(start=0.0, end=float(end), text=cleaned[:RAW_TEXT_MAX_CHARS])]
