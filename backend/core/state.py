# backend/core/state.py

from enum import Enum

class SessionState(str, Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    FINALIZING = "finalizing"
    CLOSED = "closed"


class AnalysisMode(str, Enum):
    GENERAL = "general"
    TEACHING = "teaching"
    INTERVIEW = "interview"
    ACADEMIC = "academic"

    @classmethod
    def parse(cls, value) -> "AnalysisMode":
        normalized = str(getattr(value, "value", value) or "").strip().lower()
        for mode in cls:
            if mode.value == normalized:
                return mode
        return cls.GENERAL
