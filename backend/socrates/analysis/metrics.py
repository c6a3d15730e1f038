import math
import re
from typing import Sequence

from socrates.analysis.lexicon import (
    FILLER_WORDS,
    GENERIC_QUESTIONS,
    KEYWORD_QUESTION_TEMPLATES,
    MULTI_WORD_FILLERS,
    NEGATIVE_WORDS,
    POSITIVE_WORDS,
    STOP_WORDS,
)
from socrates.analysis.models import (
    AnalysisReport,
    FillerWordMetrics,
    PacingMetrics,
    PauseMetrics,
    ReadabilityMetrics,
    SentimentMetrics,
)
from socrates.transcript.models import TimedWord, transcript_duration

SLOW_WPM = 110
FAST_WPM = 160
FILLER_NEEDS_IMPROVEMENT_PCT = 5.0
FILLER_OKAY_PCT = 2.0
LONG_PAUSE_THRESHOLD_SEC = 2.0
MAX_LONG_PAUSES = 3
SENTIMENT_BAND = 0.2

_TOKEN_EDGE_RE = re.compile(r"^[^\w']+|[^\w']+$")
_SENTENCE_END_RE = re.compile(r"[.!?]+")
_SUFFIX_RE = re.compile(r"(?:[^laeiouy]es|[^laeiouy]ed|[^laeiouy]e)$")
_VOWEL_GROUP_RE = re.compile(r"[aeiouy]+")


class EmptyTranscriptError(ValueError):
    """Raised when metrics are requested for a transcript with no words."""

    def __init__(self, message: str = "Transcript data must be a non-empty sequence."):
        super().__init__(message)


def normalize_token(word: str) -> str:
    return _TOKEN_EDGE_RE.sub("", str(word or "").strip().lower())


def count_syllables(word: str) -> int:
    """
    Heuristic syllable count: strip silent suffixes, count vowel clusters.
    Never returns less than 1.
    """
    letters = re.sub(r"[^a-z]", "", str(word or "").lower())
    if len(letters) <= 3:
        return 1
    stripped = _SUFFIX_RE.sub(lambda m: m.group(0)[0], letters)
    stripped = re.sub(r"^y", "", stripped)
    return max(1, len(_VOWEL_GROUP_RE.findall(stripped)))


class PresentationMetricsEngine:
    """
    Deterministic presentation metrics over one transcript snapshot.
    The input sequence is never mutated.
    """

    def __init__(self, words: Sequence[TimedWord]):
        if not words:
            raise EmptyTranscriptError()

        self.words = tuple(words)
        self.tokens = [normalize_token(w.text) for w in self.words]
        self.raw_text = " ".join(str(w.text or "") for w in self.words)
        self.word_count = len(self.words)
        self.duration_seconds = transcript_duration(self.words)

    def analyze_pacing(self) -> PacingMetrics:
        duration_minutes = self.duration_seconds / 60.0
        wpm = math.floor(self.word_count / duration_minutes + 0.5) if duration_minutes > 0 else 0

        if wpm < SLOW_WPM:
            return PacingMetrics(
                wpm=wpm,
                score="too_slow",
                feedback=f"Your pace of {wpm} WPM is a bit slow. Try to speak a little more quickly to keep your audience engaged.",
            )
        if wpm > FAST_WPM:
            return PacingMetrics(
                wpm=wpm,
                score="too_fast",
                feedback=f"Your pace of {wpm} WPM is quite fast. Try to slow down and take breaths to ensure your audience can follow along.",
            )
        return PacingMetrics(
            wpm=wpm,
            score="good",
            feedback=f"Excellent pacing! Your speed of {wpm} WPM is ideal for a clear and engaging presentation.",
        )

    def _filler_hits(self) -> list[str]:
        hits: list[str] = []
        idx = 0
        while idx < len(self.tokens):
            token = self.tokens[idx]
            if idx + 1 < len(self.tokens):
                pair = f"{token} {self.tokens[idx + 1]}"
                if pair in MULTI_WORD_FILLERS:
                    hits.append(pair)
                    idx += 2
                    continue
            if token in FILLER_WORDS:
                hits.append(token)
            idx += 1
        return hits

    def analyze_filler_words(self) -> FillerWordMetrics:
        counts: dict[str, int] = {}
        hits = self._filler_hits()
        for hit in hits:
            counts[hit] = counts.get(hit, 0) + 1

        total = len(hits)
        percentage = round((total / self.word_count) * 100.0, 2)

        if percentage > FILLER_NEEDS_IMPROVEMENT_PCT:
            score = "needs_improvement"
            feedback = "You're using a high number of filler words. Practice pausing instead of using fillers to gather your thoughts."
        elif percentage >= FILLER_OKAY_PCT:
            score = "okay"
            feedback = "Not bad, but there's room to improve. Try to be more conscious of using filler words to sound more polished."
        else:
            score = "good"
            feedback = "Great job! You used very few filler words, which makes your speech sound confident and clear."

        return FillerWordMetrics(
            count=total,
            percentage=percentage,
            words=tuple(counts.items()),
            score=score,
            feedback=feedback,
        )

    def analyze_pauses(self, long_pause_threshold: float = LONG_PAUSE_THRESHOLD_SEC) -> PauseMetrics:
        long_pauses = 0
        longest = 0.0
        for prev, word in zip(self.words, self.words[1:]):
            pause = float(word.start_time) - float(prev.end_time)
            longest = max(longest, pause)
            if pause >= long_pause_threshold:
                long_pauses += 1

        if long_pauses > MAX_LONG_PAUSES:
            score = "needs_improvement"
            feedback = (
                f"You paused {long_pauses} times for a significant duration. "
                "This might indicate hesitation. Try to maintain a more consistent flow."
            )
        else:
            score = "good"
            feedback = "You used pauses effectively, giving your audience time to process your ideas."

        return PauseMetrics(
            long_pause_count=long_pauses,
            longest_pause=round(longest, 2),
            threshold=float(long_pause_threshold),
            score=score,
            feedback=feedback,
        )

    def analyze_readability(self) -> ReadabilityMetrics:
        sentences = max(1, len(_SENTENCE_END_RE.findall(self.raw_text)))
        polysyllables = sum(1 for token in self.tokens if token and count_syllables(token) >= 3)
        smog = round(1.043 * math.sqrt(polysyllables * (30.0 / sentences)) + 3.1291, 1)

        if smog > 16:
            score = "complex"
            feedback = f"Your language scores {smog} on the SMOG index, which is hard to follow when spoken. Break long ideas into shorter sentences and plainer words."
        elif smog >= 13:
            score = "moderate"
            feedback = f"Your language scores {smog} on the SMOG index. It suits an expert audience; simplify key points for a general one."
        elif smog < 8:
            score = "simple"
            feedback = f"Your language scores {smog} on the SMOG index. It is very easy to follow; make sure key ideas still get enough depth."
        else:
            score = "good"
            feedback = f"Your language scores {smog} on the SMOG index, a comfortable level for most listeners."

        return ReadabilityMetrics(
            smog=smog,
            sentence_count=sentences,
            polysyllable_count=polysyllables,
            score=score,
            feedback=feedback,
        )

    def analyze_sentiment(self) -> SentimentMetrics:
        positive = sum(1 for token in self.tokens if token in POSITIVE_WORDS)
        negative = sum(1 for token in self.tokens if token in NEGATIVE_WORDS)
        total = positive + negative

        polarity = (positive - negative) / total if total > 0 else 0.0
        if polarity > SENTIMENT_BAND:
            score = "positive"
            feedback = "The overall tone of your presentation is positive and optimistic."
        elif polarity < -SENTIMENT_BAND:
            score = "negative"
            feedback = "The tone seems to focus on challenges or problems. Ensure you also highlight solutions and opportunities."
        else:
            score = "neutral"
            feedback = "The tone of your presentation appears to be neutral."

        return SentimentMetrics(polarity=round(polarity, 2), score=score, feedback=feedback)

    def generate_followup_questions(self, num_questions: int = 3) -> list[str]:
        counts: dict[str, int] = {}
        for token in self.tokens:
            if len(token) > 3 and token not in STOP_WORDS:
                counts[token] = counts.get(token, 0) + 1

        if not counts:
            return list(GENERIC_QUESTIONS)

        # sorted() is stable, so ties keep first-appearance order
        ranked = sorted(counts.items(), key=lambda item: -item[1])
        keywords = [keyword for keyword, _ in ranked[:max(0, int(num_questions))]]
        return [
            KEYWORD_QUESTION_TEMPLATES[i % len(KEYWORD_QUESTION_TEMPLATES)].replace("{keyword}", keyword)
            for i, keyword in enumerate(keywords)
        ]

    def run(self, include_sentiment: bool = True, analysis_mode: str = "general", kind: str = "live") -> AnalysisReport:
        return AnalysisReport(
            pacing=self.analyze_pacing(),
            filler_words=self.analyze_filler_words(),
            pauses=self.analyze_pauses(),
            readability=self.analyze_readability(),
            sentiment=self.analyze_sentiment() if include_sentiment else None,
            follow_up_questions=tuple(self.generate_followup_questions()),
            word_count=self.word_count,
            duration_seconds=round(self.duration_seconds, 3),
            analysis_mode=analysis_mode,
            kind=kind,
        )
