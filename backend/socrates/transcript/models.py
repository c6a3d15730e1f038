from dataclasses import dataclass
from typing import Iterable, List, Tuple


@dataclass(frozen=True)
class TimedWord:
    """
    One finalized word from the recognition stream.
    Offsets are seconds relative to stream start.
    """
    text: str
    start_time: float = 0.0
    end_time: float = 0.0

    def to_dict(self) -> dict:
        return {
            "word": self.text,
            "startTime": self.start_time,
            "endTime": self.end_time,
        }


class Transcript:
    """
    Append-only word sequence for ONE session.
    Upstream ordering by start_time is trusted, never re-sorted.
    """

    def __init__(self, words: Iterable[TimedWord] | None = None):
        self._words: List[TimedWord] = list(words or [])

    def __len__(self) -> int:
        return len(self._words)

    def __bool__(self) -> bool:
        return bool(self._words)

    def __iter__(self):
        return iter(self._words)

    def append(self, words: Iterable[TimedWord]) -> int:
        batch = [w for w in words if isinstance(w, TimedWord)]
        self._words.extend(batch)
        return len(batch)

    def snapshot(self) -> Tuple[TimedWord, ...]:
        # TimedWord is frozen, so a tuple copy is a full snapshot
        return tuple(self._words)

    def clear(self) -> None:
        self._words = []

    @property
    def duration(self) -> float:
        return transcript_duration(self._words)

    @property
    def text(self) -> str:
        return " ".join(w.text for w in self._words)


def transcript_duration(words) -> float:
    if len(words) < 2:
        return 0.0
    return max(0.0, float(words[-1].end_time) - float(words[0].start_time))
