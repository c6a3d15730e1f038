import asyncio
import dataclasses
import logging
import time
from typing import Sequence

from core.config import FOLLOWUP_FINAL_TOTAL, FOLLOWUP_LIVE_TOTAL
from socrates.analysis.metrics import PresentationMetricsEngine
from socrates.analysis.models import AnalysisReport
from socrates.analysis.qualitative import QualitativeFeedbackService
from socrates.followups.generator import FollowupGenerator
from socrates.services.text_generation import TextGenerationCapability
from socrates.system_metrics import observe_analysis_latency_ms
from socrates.transcript.models import TimedWord

logger = logging.getLogger("socrates.analysis.pipeline")


class AnalysisPipeline:
    """
    Metrics engine + qualitative coaching + follow-up generation in one run.
    Stateless between runs, so one instance may serve many sessions.
    """

    def __init__(
        self,
        capability: TextGenerationCapability | None = None,
        qualitative: QualitativeFeedbackService | None = None,
        followups: FollowupGenerator | None = None,
        live_total: int = FOLLOWUP_LIVE_TOTAL,
        final_total: int = FOLLOWUP_FINAL_TOTAL,
        include_sentiment: bool = True,
    ):
        self.qualitative = qualitative or QualitativeFeedbackService(capability)
        self.followups = followups or FollowupGenerator(capability)
        self.live_total = live_total
        self.final_total = final_total
        self.include_sentiment = include_sentiment

    async def run(self, words: Sequence[TimedWord], mode: str = "general", kind: str = "live") -> AnalysisReport:
        started = time.perf_counter()
        # raises EmptyTranscriptError before any external call is made
        engine = PresentationMetricsEngine(words)
        report = engine.run(include_sentiment=self.include_sentiment, analysis_mode=mode, kind=kind)

        total = self.final_total if kind == "final" else self.live_total
        qualitative, followups = await asyncio.gather(
            self.qualitative.generate(engine.raw_text, mode),
            self.followups.generate(engine.words, mode=mode, total=total),
        )

        updates = {"qualitative_feedback": qualitative, "follow_up_details": tuple(followups.rich)}
        if followups.questions:
            updates["follow_up_questions"] = tuple(followups.questions)
        report = dataclasses.replace(report, **updates)

        observe_analysis_latency_ms((time.perf_counter() - started) * 1000.0)
        logger.info(
            "analysis complete | kind=%s mode=%s words=%s followups=%s qualitative=%s",
            kind,
            mode,
            engine.word_count,
            followups.source,
            qualitative.source,
        )
        return report
