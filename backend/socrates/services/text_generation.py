import asyncio
import logging
from typing import Protocol

from openai import AsyncOpenAI

from core.config import LLM_RETRIES, LLM_TIMEOUT_SEC, MODEL_NAME, OPENAI_API_KEY

logger = logging.getLogger("socrates.services.text_generation")


class GenerationRequestError(RuntimeError):
    """The text-generation backend failed or returned nothing usable."""


class TextGenerationCapability(Protocol):
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: float = 0.4,
        max_tokens: int = 800,
        structured_output: bool = False,
        model: str | None = None,
    ) -> str:
        ...


class OpenAITextGeneration:
    """
    Stateless chat-completions adapter, safe to share across sessions.
    Raises GenerationRequestError once retries are exhausted.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = MODEL_NAME,
        timeout_sec: float = LLM_TIMEOUT_SEC,
        retries: int = LLM_RETRIES,
        client: AsyncOpenAI | None = None,
    ):
        self.model = model
        self.timeout_sec = max(0.01, float(timeout_sec))
        self.retries = max(0, int(retries))
        self.client = client or AsyncOpenAI(api_key=api_key if api_key is not None else OPENAI_API_KEY)

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: float = 0.4,
        max_tokens: int = 800,
        structured_output: bool = False,
        model: str | None = None,
    ) -> str:
        if not str(user_prompt or "").strip():
            raise GenerationRequestError("empty prompt")

        request = {
            "model": model or self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if structured_output:
            request["response_format"] = {"type": "json_object"}

        last_error: Exception | None = None
        for attempt in range(self.retries + 1):
            try:
                response = await asyncio.wait_for(
                    self.client.chat.completions.create(**request),
                    timeout=self.timeout_sec,
                )
                content = str(response.choices[0].message.content or "").strip()
                if content:
                    return content
                last_error = GenerationRequestError("empty completion")
                logger.warning("completion empty | attempt=%s", attempt + 1)
            except asyncio.TimeoutError as exc:
                last_error = exc
                logger.warning("completion timeout | attempt=%s", attempt + 1)
            except Exception as exc:
                last_error = exc
                logger.warning("completion failure | attempt=%s err=%s", attempt + 1, exc)

            if attempt < self.retries:
                await asyncio.sleep(0.35 * (attempt + 1))

        raise GenerationRequestError(f"text generation failed: {last_error}") from last_error


def build_text_generation() -> TextGenerationCapability | None:
    if not OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY not set - qualitative feedback and LLM follow-ups unavailable")
        return None
    return OpenAITextGeneration(api_key=OPENAI_API_KEY)
