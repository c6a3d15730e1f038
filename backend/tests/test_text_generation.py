import pytest

from socrates.services import text_generation
from socrates.services.text_generation import GenerationRequestError, OpenAITextGeneration


class _Msg:
    def __init__(self, content):
        self.content = content


class _Choice:
    def __init__(self, content):
        self.message = _Msg(content)


class _Response:
    def __init__(self, content):
        self.choices = [_Choice(content)]


def _adapter(**kwargs) -> OpenAITextGeneration:
    return OpenAITextGeneration(api_key="test-key", model="test-model", **kwargs)


@pytest.mark.asyncio
async def test_complete_blank_prompt_raises():
    adapter = _adapter()
    with pytest.raises(GenerationRequestError):
        await adapter.complete("system", "   ")


@pytest.mark.asyncio
async def test_complete_success_with_mock(monkeypatch: pytest.MonkeyPatch):
    adapter = _adapter()
    seen = {}

    async def _fake_create(*args, **kwargs):
        seen.update(kwargs)
        return _Response('{"ok": true}')

    monkeypatch.setattr(adapter.client.chat.completions, "create", _fake_create)

    result = await adapter.complete("system", "return json", structured_output=True, max_tokens=123)

    assert result == '{"ok": true}'
    assert seen["model"] == "test-model"
    assert seen["max_tokens"] == 123
    assert seen["response_format"] == {"type": "json_object"}
    assert seen["messages"][0] == {"role": "system", "content": "system"}


@pytest.mark.asyncio
async def test_complete_model_override_and_plain_text(monkeypatch: pytest.MonkeyPatch):
    adapter = _adapter()
    seen = {}

    async def _fake_create(*args, **kwargs):
        seen.update(kwargs)
        return _Response("  Keep going.  ")

    monkeypatch.setattr(adapter.client.chat.completions, "create", _fake_create)

    result = await adapter.complete("system", "coach me", model="other-model")

    assert result == "Keep going."
    assert seen["model"] == "other-model"
    assert "response_format" not in seen


@pytest.mark.asyncio
async def test_complete_raises_after_retries(monkeypatch: pytest.MonkeyPatch):
    adapter = _adapter(retries=1, timeout_sec=0.1)
    calls = {"n": 0}

    async def _boom(*args, **kwargs):
        calls["n"] += 1
        raise RuntimeError("forced")

    async def _no_sleep(_delay):
        return None

    monkeypatch.setattr(adapter.client.chat.completions, "create", _boom)
    monkeypatch.setattr(text_generation.asyncio, "sleep", _no_sleep)

    with pytest.raises(GenerationRequestError):
        await adapter.complete("system", "will fail")
    assert calls["n"] == 2


@pytest.mark.asyncio
async def test_complete_retries_empty_content(monkeypatch: pytest.MonkeyPatch):
    adapter = _adapter(retries=1)
    responses = [_Response(""), _Response("second try")]

    async def _fake_create(*args, **kwargs):
        return responses.pop(0)

    async def _no_sleep(_delay):
        return None

    monkeypatch.setattr(adapter.client.chat.completions, "create", _fake_create)
    monkeypatch.setattr(text_generation.asyncio, "sleep", _no_sleep)

    assert await adapter.complete("system", "prompt") == "second try"


def test_build_text_generation_without_key(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(text_generation, "OPENAI_API_KEY", "")
    assert text_generation.build_text_generation() is None


def test_build_text_generation_with_key(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(text_generation, "OPENAI_API_KEY", "test-key")
    assert isinstance(text_generation.build_text_generation(), OpenAITextGeneration)
