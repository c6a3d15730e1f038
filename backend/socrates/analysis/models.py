from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class PacingMetrics:
    wpm: int
    score: str  # too_slow | good | too_fast
    feedback: str

    def to_dict(self) -> dict:
        return {"wpm": self.wpm, "score": self.score, "feedback": self.feedback}


@dataclass(frozen=True)
class FillerWordMetrics:
    count: int
    percentage: float
    words: Tuple[Tuple[str, int], ...]
    score: str  # good | okay | needs_improvement
    feedback: str

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "percentage": self.percentage,
            "words": dict(self.words),
            "score": self.score,
            "feedback": self.feedback,
        }


@dataclass(frozen=True)
class PauseMetrics:
    long_pause_count: int
    longest_pause: float
    threshold: float
    score: str  # good | needs_improvement
    feedback: str

    def to_dict(self) -> dict:
        return {
            "longPauseCount": self.long_pause_count,
            "longestPause": self.longest_pause,
            "threshold": self.threshold,
            "score": self.score,
            "feedback": self.feedback,
        }


@dataclass(frozen=True)
class ReadabilityMetrics:
    smog: float
    sentence_count: int
    polysyllable_count: int
    score: str  # simple | good | moderate | complex
    feedback: str

    def to_dict(self) -> dict:
        return {
            "smog": self.smog,
            "sentenceCount": self.sentence_count,
            "polysyllableCount": self.polysyllable_count,
            "score": self.score,
            "feedback": self.feedback,
        }


@dataclass(frozen=True)
class SentimentMetrics:
    polarity: float
    score: str  # negative | neutral | positive
    feedback: str

    def to_dict(self) -> dict:
        return {"polarity": self.polarity, "score": self.score, "feedback": self.feedback}


@dataclass(frozen=True)
class QualitativeFeedback:
    feedback: str
    source: str  # llm | error | unavailable

    def to_dict(self) -> dict:
        return {"feedback": self.feedback, "source": self.source}


@dataclass(frozen=True)
class FollowupAnchor:
    window_index: int
    start: float
    end: float

    def to_dict(self) -> dict:
        return {"windowIndex": self.window_index, "start": self.start, "end": self.end}


@dataclass(frozen=True)
class FollowupDetail:
    text: str
    category: str
    difficulty: str
    rationale: Optional[str] = None
    anchor: Optional[FollowupAnchor] = None

    def to_dict(self) -> dict:
        payload = {
            "text": self.text,
            "category": self.category,
            "difficulty": self.difficulty,
        }
        if self.rationale:
            payload["why"] = self.rationale
        if self.anchor is not None:
            payload["anchor"] = self.anchor.to_dict()
        return payload


@dataclass(frozen=True)
class AnalysisReport:
    pacing: PacingMetrics
    filler_words: FillerWordMetrics
    pauses: PauseMetrics
    readability: ReadabilityMetrics
    sentiment: Optional[SentimentMetrics] = None
    qualitative_feedback: Optional[QualitativeFeedback] = None
    follow_up_questions: Tuple[str, ...] = ()
    follow_up_details: Optional[Tuple[FollowupDetail, ...]] = None
    word_count: int = 0
    duration_seconds: float = 0.0
    analysis_mode: str = "general"
    kind: str = field(default="live")  # live | final

    def to_dict(self) -> dict:
        payload = {
            "kind": self.kind,
            "analysisMode": self.analysis_mode,
            "wordCount": self.word_count,
            "durationSeconds": self.duration_seconds,
            "pacing": self.pacing.to_dict(),
            "fillerWords": self.filler_words.to_dict(),
            "pauses": self.pauses.to_dict(),
            "readability": self.readability.to_dict(),
            "followUpQuestions": list(self.follow_up_questions),
        }
        if self.sentiment is not None:
            payload["sentiment"] = self.sentiment.to_dict()
        if self.qualitative_feedback is not None:
            payload["qualitativeFeedback"] = self.qualitative_feedback.to_dict()
        if self.follow_up_details is not None:
            payload["followUpDetails"] = [item.to_dict() for item in self.follow_up_details]
        return payload
