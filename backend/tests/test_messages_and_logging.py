import json
import logging

import pytest

from core.logger import log_event
from core.state import AnalysisMode
from socrates.session.messages import (
    AnalysisError,
    EndStream,
    InterimTranscript,
    SetAnalysisMode,
    StartStream,
    TranscriptionError,
    TranscriptUpdate,
    parse_command,
)


def test_parse_command_maps_known_types():
    assert parse_command({"type": "end-stream"}) == EndStream()
    assert parse_command({"type": "START-STREAM"}) == StartStream()
    assert parse_command({"type": "set-analysis-type", "analysisType": "academic"}) == SetAnalysisMode(mode="academic")
    assert parse_command({"type": "set-analysis-type"}) == SetAnalysisMode(mode="")
    assert parse_command({"type": "qa-transcript"}) is None
    assert parse_command({}) is None


def test_event_payloads():
    assert TranscriptUpdate(text="hi there").to_payload() == {"type": "transcript-update", "text": "hi there"}
    assert InterimTranscript(text="hi").to_payload() == {"type": "interim-transcript", "text": "hi"}
    assert AnalysisError(message="nope", error="boom").to_payload() == {
        "type": "analysis-error",
        "message": "nope",
        "error": "boom",
    }
    assert TranscriptionError(message="lost").to_payload()["type"] == "transcription-error"


def test_analysis_mode_parse():
    assert AnalysisMode.parse(" Teaching ") == AnalysisMode.TEACHING
    assert AnalysisMode.parse(AnalysisMode.ACADEMIC) == AnalysisMode.ACADEMIC
    assert AnalysisMode.parse(None) == AnalysisMode.GENERAL
    assert AnalysisMode.parse("poetry") == AnalysisMode.GENERAL


def test_log_event_redacts_transcript_fields(caplog: pytest.LogCaptureFixture):
    with caplog.at_level(logging.INFO, logger="socrates.events"):
        log_event("session", "finalized", "s-1", transcript="secret words", words=3, nested={"prompt": "hidden"})

    record = json.loads(caplog.records[-1].getMessage())
    assert record["component"] == "session"
    assert record["session_id"] == "s-1"
    assert record["transcript"] == {"redacted": True, "length": 12}
    assert record["nested"]["prompt"] == {"redacted": True, "length": 6}
    assert record["words"] == 3
