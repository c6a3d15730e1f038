import json

import pytest

from socrates.analysis.metrics import EmptyTranscriptError
from socrates.analysis.pipeline import AnalysisPipeline
from socrates.analysis.qualitative import (
    ERROR_FEEDBACK,
    UNAVAILABLE_FEEDBACK,
    QualitativeFeedbackService,
    get_mode_prompt,
)
from socrates.followups.generator import FALLBACK_QUESTIONS
from socrates.system_metrics import get_metric


def test_mode_prompts():
    assert "interview" in get_mode_prompt("interview")
    assert "research" in get_mode_prompt("ACADEMIC")
    assert get_mode_prompt("unknown") == get_mode_prompt("general")


@pytest.mark.asyncio
async def test_qualitative_feedback_sources(fake_capability):
    ok = await QualitativeFeedbackService(fake_capability(responses=["You paced well."])).generate("text", "teaching")
    assert (ok.feedback, ok.source) == ("You paced well.", "llm")

    before = get_metric("qualitative_fallbacks")
    failed = await QualitativeFeedbackService(fake_capability(error=RuntimeError("down"))).generate("text")
    assert (failed.feedback, failed.source) == (ERROR_FEEDBACK, "error")

    empty = await QualitativeFeedbackService(fake_capability(responses=["   "])).generate("text")
    assert empty.source == "error"

    missing = await QualitativeFeedbackService(None).generate("text")
    assert (missing.feedback, missing.source) == (UNAVAILABLE_FEEDBACK, "unavailable")
    assert get_metric("qualitative_fallbacks") == before + 3


@pytest.mark.asyncio
async def test_qualitative_prompt_includes_transcript(fake_capability):
    capability = fake_capability(responses=["ok"])
    await QualitativeFeedbackService(capability).generate("we shipped the beta", "interview")
    call = capability.calls[0]
    assert call["user"].endswith("Transcript:\nwe shipped the beta")
    assert call["structured_output"] is False


@pytest.mark.asyncio
async def test_pipeline_combines_metrics_feedback_and_followups(words_factory, fake_capability):
    followup_json = json.dumps({"questions": [{"text": "What is the rollout date?", "category": "next-steps"}]})

    class _RoutingCapability:
        async def complete(self, system_prompt, user_prompt, **kwargs):
            if kwargs.get("structured_output"):
                return followup_json
            return "Slow down slightly."

    pipeline = AnalysisPipeline(capability=_RoutingCapability())
    report = await pipeline.run(words_factory(["Our", "launch", "is", "next", "week."]), mode="teaching", kind="final")

    payload = report.to_dict()
    assert payload["kind"] == "final"
    assert payload["analysisMode"] == "teaching"
    assert payload["qualitativeFeedback"] == {"feedback": "Slow down slightly.", "source": "llm"}
    assert payload["followUpQuestions"] == ["What is the rollout date?"]
    assert payload["followUpDetails"][0]["category"] == "next-steps"
    assert payload["wordCount"] == 5


@pytest.mark.asyncio
async def test_pipeline_without_capability_still_reports(words_factory):
    report = await AnalysisPipeline(capability=None, final_total=8).run(words_factory(["hello", "everyone"]), kind="final")

    assert report.qualitative_feedback.source == "unavailable"
    assert report.follow_up_questions == tuple(FALLBACK_QUESTIONS[:8])
    assert report.follow_up_details == ()


@pytest.mark.asyncio
async def test_pipeline_uses_live_total_for_live_runs(words_factory):
    report = await AnalysisPipeline(capability=None, live_total=2).run(words_factory(["hello", "everyone"]), kind="live")
    assert len(report.follow_up_questions) == 2


@pytest.mark.asyncio
async def test_pipeline_rejects_empty_transcript(fake_capability):
    capability = fake_capability(responses=["unused"])
    with pytest.raises(EmptyTranscriptError):
        await AnalysisPipeline(capability=capability).run([], kind="final")
    assert capability.calls == []
