from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from socrates.analysis.models import AnalysisReport


# ================= COMMANDS (client -> session) =================

@dataclass(frozen=True)
class SubmitAudio:
    audio: bytes


@dataclass(frozen=True)
class StartStream:
    pass


@dataclass(frozen=True)
class EndStream:
    pass


@dataclass(frozen=True)
class SetAnalysisMode:
    mode: str


Command = Union[SubmitAudio, StartStream, EndStream, SetAnalysisMode]


def parse_command(payload: dict) -> Command | None:
    """Map a decoded client JSON message to a command; unknown types return None."""
    payload_type = str((payload or {}).get("type") or "").strip().lower()
    if payload_type == "end-stream":
        return EndStream()
    if payload_type == "start-stream":
        return StartStream()
    if payload_type == "set-analysis-type":
        return SetAnalysisMode(mode=str(payload.get("analysisType") or ""))
    return None


# ================= EVENTS (session -> client) =================

@dataclass(frozen=True)
class TranscriptUpdate:
    text: str

    def to_payload(self) -> dict:
        return {"type": "transcript-update", "text": self.text}


@dataclass(frozen=True)
class InterimTranscript:
    text: str

    def to_payload(self) -> dict:
        return {"type": "interim-transcript", "text": self.text}


@dataclass(frozen=True)
class LiveFeedback:
    report: AnalysisReport

    def to_payload(self) -> dict:
        return {"type": "live-feedback", "report": self.report.to_dict()}


@dataclass(frozen=True)
class FinalAnalysis:
    report: AnalysisReport

    def to_payload(self) -> dict:
        return {"type": "final-analysis", "report": self.report.to_dict()}


@dataclass(frozen=True)
class AnalysisError:
    message: str
    error: str | None = None

    def to_payload(self) -> dict:
        payload = {"type": "analysis-error", "message": self.message}
        if self.error:
            payload["error"] = self.error
        return payload


@dataclass(frozen=True)
class TranscriptionError:
    message: str

    def to_payload(self) -> dict:
        return {"type": "transcription-error", "message": self.message}


OutboundEvent = Union[
    TranscriptUpdate,
    InterimTranscript,
    LiveFeedback,
    FinalAnalysis,
    AnalysisError,
    TranscriptionError,
]
