from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Protocol, Tuple, Union

from core.config import SPEECH_ENCODING, SPEECH_LANGUAGE, SPEECH_MODEL, SPEECH_SAMPLE_RATE
from socrates.transcript.models import TimedWord


class TransportOpenError(RuntimeError):
    """The recognition stream could not be opened."""


@dataclass(frozen=True)
class SpeechConfig:
    language: str = SPEECH_LANGUAGE
    model: str = SPEECH_MODEL
    encoding: str = SPEECH_ENCODING
    sample_rate: int = SPEECH_SAMPLE_RATE
    channels: int = 1
    punctuate: bool = True
    word_timing: bool = True
    interim_results: bool = True


# ================= TRANSPORT EVENTS =================

@dataclass(frozen=True)
class WordsFinalized:
    stream_id: int
    words: Tuple[TimedWord, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class InterimText:
    stream_id: int
    text: str = ""


@dataclass(frozen=True)
class TransportFailed:
    stream_id: int
    cause: str = ""


@dataclass(frozen=True)
class TransportEnded:
    stream_id: int


TransportEvent = Union[WordsFinalized, InterimText, TransportFailed, TransportEnded]

# must be safe to call from any thread
EventSink = Callable[[TransportEvent], None]


class SpeechStream(Protocol):
    stream_id: int

    @property
    def is_open(self) -> bool:
        ...

    def write(self, audio: bytes) -> None:
        """Forward audio; silently ignored once the stream is closed."""
        ...

    async def close(self) -> None:
        """Graceful end; pending final results are still delivered, then TransportEnded."""
        ...

    def abort(self) -> None:
        ...


class SpeechTransport(Protocol):
    async def open(self, config: SpeechConfig, stream_id: int, sink: EventSink) -> SpeechStream:
        ...
