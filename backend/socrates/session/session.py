import time
import uuid
from dataclasses import dataclass, field

from core.state import AnalysisMode, SessionState
from socrates.services.speech_transport import SpeechStream
from socrates.transcript.models import Transcript


@dataclass
class Session:
    """
    Per-connection state. Owned by exactly one SessionOrchestrator and never
    shared across connections.
    """
    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    transcript: Transcript = field(default_factory=Transcript)
    analysis_mode: AnalysisMode = AnalysisMode.GENERAL
    state: SessionState = SessionState.IDLE
    stream: SpeechStream | None = None
    stream_seq: int = 0
    created_at: float = field(default_factory=time.time)

    def next_stream_id(self) -> int:
        self.stream_seq += 1
        return self.stream_seq

    @property
    def closed(self) -> bool:
        return self.state == SessionState.CLOSED
