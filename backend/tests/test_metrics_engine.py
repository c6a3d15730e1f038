import json

import pytest

from socrates.analysis.metrics import EmptyTranscriptError, PresentationMetricsEngine, count_syllables
from socrates.transcript.models import TimedWord


def test_scenario_pacing_good_and_fillers_need_improvement(words_factory):
    texts = ["um"] * 10 + ["project"] * 140
    words = words_factory(texts, step=0.4)
    assert words[-1].end_time - words[0].start_time == pytest.approx(60.0)

    report = PresentationMetricsEngine(words).run()

    assert report.pacing.wpm == 150
    assert report.pacing.score == "good"
    assert "150 WPM" in report.pacing.feedback
    assert report.filler_words.count == 10
    assert report.filler_words.percentage == pytest.approx(6.67)
    assert report.filler_words.score == "needs_improvement"
    assert dict(report.filler_words.words) == {"um": 10}


def test_empty_transcript_raises():
    with pytest.raises(EmptyTranscriptError):
        PresentationMetricsEngine([])


def test_single_word_has_zero_duration_and_zero_wpm():
    report = PresentationMetricsEngine([TimedWord("Hello.", 1.0, 1.5)]).run()
    assert report.duration_seconds == 0.0
    assert report.pacing.wpm == 0
    assert report.pacing.score == "too_slow"
    assert report.pauses.long_pause_count == 0


def test_pacing_bands(words_factory):
    slow = PresentationMetricsEngine(words_factory(["word"] * 50, step=1.2)).analyze_pacing()
    fast = PresentationMetricsEngine(words_factory(["word"] * 200, step=0.25)).analyze_pacing()
    assert slow.score == "too_slow"
    assert slow.wpm == 50
    assert fast.score == "too_fast"
    assert fast.wpm == 240


def test_pacing_rounds_half_up():
    words = [TimedWord("word", i * 3.0, i * 3.0 + 0.5) for i in range(8)]
    words.append(TimedWord("end", 23.0, 24.0))

    pacing = PresentationMetricsEngine(words).analyze_pacing()

    # 9 words over 24s is exactly 22.5 WPM
    assert pacing.wpm == 23


def test_filler_matching_is_case_insensitive_and_ignores_punctuation(words_factory):
    words = words_factory(["Um,", "the", "LIKE", "plan.", "Basically", "done"])
    fillers = PresentationMetricsEngine(words).analyze_filler_words()
    assert fillers.count == 3
    assert dict(fillers.words) == {"um": 1, "like": 1, "basically": 1}
    assert fillers.percentage == 50.0


def test_multi_word_filler_counts_once(words_factory):
    words = words_factory(["You", "know,", "it", "works", "I", "mean", "mostly"])
    fillers = PresentationMetricsEngine(words).analyze_filler_words()
    assert dict(fillers.words) == {"you know": 1, "i mean": 1}
    assert fillers.count == 2


def test_filler_percentage_bounds(words_factory):
    for texts in (["um"] * 5, ["clear", "words", "only"], ["so", "well", "right", "basically"]):
        engine = PresentationMetricsEngine(words_factory(texts))
        fillers = engine.analyze_filler_words()
        assert 0.0 <= fillers.percentage <= 100.0
        assert fillers.count <= engine.word_count


def test_filler_okay_band(words_factory):
    fillers = PresentationMetricsEngine(words_factory(["um"] + ["project"] * 39)).analyze_filler_words()
    assert fillers.percentage == 2.5
    assert fillers.score == "okay"


def test_pause_count_grows_as_threshold_drops(words_factory):
    spans = [(0, 1), (1.5, 2), (4, 5), (8, 9), (9.5, 10), (12.5, 13), (17, 18), (18.25, 19), (21.5, 22)]
    engine = PresentationMetricsEngine([TimedWord("word", start, end) for start, end in spans])

    previous = -1
    for threshold in (5.0, 4.0, 3.0, 2.0, 1.0, 0.5, 0.0):
        count = engine.analyze_pauses(threshold).long_pause_count
        assert count >= previous
        previous = count

    default = engine.analyze_pauses()
    assert default.long_pause_count == 5
    assert default.score == "needs_improvement"
    assert default.longest_pause == 4.0


def test_smog_does_not_drop_with_more_polysyllables(words_factory):
    previous = 0.0
    for polys in range(0, 11):
        texts = ["information"] * polys + ["cat"] * (10 - polys)
        texts[-1] = texts[-1] + "."
        readability = PresentationMetricsEngine(words_factory(texts)).analyze_readability()
        assert readability.sentence_count == 1
        assert readability.smog >= previous
        previous = readability.smog


def test_readability_without_punctuation_uses_one_sentence(words_factory):
    readability = PresentationMetricsEngine(words_factory(["the", "cat", "sat"])).analyze_readability()
    assert readability.sentence_count == 1
    assert readability.polysyllable_count == 0
    assert readability.smog == 3.1
    assert readability.score == "simple"


def test_syllable_counter_minimum_and_suffixes():
    assert count_syllables("a") == 1
    assert count_syllables("rhythm") >= 1
    assert count_syllables("information") == 4
    assert count_syllables("made") == 1


def test_sentiment_polarity(words_factory):
    positive = PresentationMetricsEngine(words_factory(["great", "success", "problem"])).analyze_sentiment()
    assert positive.polarity == pytest.approx(0.33)
    assert positive.score == "positive"

    neutral = PresentationMetricsEngine(words_factory(["plain", "words"])).analyze_sentiment()
    assert neutral.polarity == 0.0
    assert neutral.score == "neutral"

    negative = PresentationMetricsEngine(words_factory(["risk", "failure"])).analyze_sentiment()
    assert negative.score == "negative"


def test_keyword_questions_rank_by_frequency(words_factory):
    texts = ["design", "system", "system", "design", "system", "the", "cat"]
    questions = PresentationMetricsEngine(words_factory(texts)).generate_followup_questions()
    assert questions == [
        "Can you elaborate on your point about 'system'?",
        "What are the implications of 'design' in this context?",
    ]


def test_keyword_questions_fall_back_to_generic_triple(words_factory):
    questions = PresentationMetricsEngine(words_factory(["the", "cat", "is"])).generate_followup_questions()
    assert questions == [
        "Could you elaborate on your main point?",
        "What is the key takeaway from your presentation?",
        "What are the next steps?",
    ]


def test_engine_is_idempotent_and_does_not_mutate_input(words_factory):
    words = words_factory(["Um,", "our", "innovative", "platform", "reduces", "risk."], gap=0.5)
    original = list(words)

    first = PresentationMetricsEngine(words).run(analysis_mode="teaching", kind="final")
    second = PresentationMetricsEngine(words).run(analysis_mode="teaching", kind="final")

    assert json.dumps(first.to_dict(), sort_keys=True) == json.dumps(second.to_dict(), sort_keys=True)
    assert words == original


def test_report_wire_format_is_camel_case(words_factory):
    payload = PresentationMetricsEngine(words_factory(["hello", "there."])).run(include_sentiment=False).to_dict()
    assert set(payload) == {
        "kind",
        "analysisMode",
        "wordCount",
        "durationSeconds",
        "pacing",
        "fillerWords",
        "pauses",
        "readability",
        "followUpQuestions",
    }
    assert "longPauseCount" in payload["pauses"]
