import sys
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("QA_MODE", "true")
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    monkeypatch.setenv("DEEPGRAM_API_KEY", "")


def make_words(texts, start: float = 0.0, step: float = 0.4, gap: float = 0.0):
    """Evenly spaced TimedWords; `gap` is the silence inserted after each word."""
    from socrates.transcript.models import TimedWord

    words = []
    cursor = float(start)
    for text in texts:
        words.append(TimedWord(text=text, start_time=round(cursor, 3), end_time=round(cursor + step, 3)))
        cursor += step + gap
    return words


class FakeCapability:
    """Text-generation stand-in returning canned answers or raising."""

    def __init__(self, responses=None, error: Exception | None = None):
        self.responses = list(responses or [])
        self.error = error
        self.calls: list[dict] = []

    async def complete(self, system_prompt, user_prompt, **kwargs):
        self.calls.append({"system": system_prompt, "user": user_prompt, **kwargs})
        if self.error is not None:
            raise self.error
        if not self.responses:
            return ""
        return self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]


@pytest.fixture
def words_factory():
    return make_words


@pytest.fixture
def fake_capability():
    return FakeCapability
