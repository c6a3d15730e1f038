import json
import logging
import re
from dataclasses import dataclass
from typing import Sequence, Tuple

from pydantic import ValidationError

from core.config import (
    FOLLOWUP_MAX_WINDOWS,
    FOLLOWUP_MODEL,
    FOLLOWUP_WINDOW_MAX_CHARS,
    FOLLOWUP_WINDOW_SEC,
)
from socrates.analysis.models import FollowupDetail
from socrates.followups.prompts import FOLLOWUP_SYSTEM_PROMPT, build_followup_prompt
from socrates.followups.schemas import FollowupResponseModel, QuestionItemModel
from socrates.followups.windows import FollowupWindow, chunk_windows, windows_from_text
from socrates.services.text_generation import TextGenerationCapability
from socrates.system_metrics import increment_metric

logger = logging.getLogger("socrates.followups")

FALLBACK_QUESTIONS = [
    "What key assumption underlies your approach?",
    "Which risks could derail this plan?",
    "What evidence supports your main claim?",
    "How would this scale or fail at 10×?",
    "Whose perspective is missing here?",
    "What are your next measurable steps?",
]

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


class MalformedGenerationResponse(ValueError):
    """The generation backend answered, but not with usable question items."""


@dataclass(frozen=True)
class FollowupResult:
    questions: Tuple[str, ...]
    rich: Tuple[FollowupDetail, ...] = ()
    windows: Tuple[FollowupWindow, ...] = ()
    source: str = "llm"  # llm | fallback | empty


def extract_json(raw: str) -> dict | None:
    if not raw:
        return None
    cleaned = _FENCE_RE.sub("", str(raw)).strip()
    try:
        parsed = json.loads(cleaned)
    except (TypeError, ValueError):
        return None
    return parsed if isinstance(parsed, dict) else None


def parse_question_items(raw: str) -> list[QuestionItemModel]:
    parsed = extract_json(raw)
    if parsed is None:
        raise MalformedGenerationResponse("response is not a JSON object")

    try:
        envelope = FollowupResponseModel.model_validate(parsed)
    except ValidationError as exc:
        raise MalformedGenerationResponse(f"unexpected response shape: {exc.error_count()} errors") from exc

    items: list[QuestionItemModel] = []
    for entry in envelope.questions:
        if isinstance(entry, str):
            entry = {"text": entry}
        try:
            items.append(QuestionItemModel.model_validate(entry))
        except ValidationError:
            logger.debug("follow-up item dropped: %s", entry)
    return items


def dedupe_items(items: Sequence[QuestionItemModel], total: int) -> list[QuestionItemModel]:
    seen: set[str] = set()
    kept: list[QuestionItemModel] = []
    for item in items:
        key = item.text.lower()
        if not key or key in seen:
            continue
        seen.add(key)
        kept.append(item)
        if len(kept) >= total:
            break
    return kept


def fallback_result(total: int, windows: Sequence[FollowupWindow] = ()) -> FollowupResult:
    return FollowupResult(
        questions=tuple(FALLBACK_QUESTIONS[:max(1, int(total))]),
        rich=(),
        windows=tuple(windows),
        source="fallback",
    )


class FollowupGenerator:
    """
    Transcript-grounded follow-up questions.

    Windows the transcript, asks the generation capability for structured
    question items, repairs and dedupes the answer. Any failure on the
    generation path returns the static fallback set instead of raising.
    """

    def __init__(
        self,
        capability: TextGenerationCapability | None,
        window_sec: float = FOLLOWUP_WINDOW_SEC,
        max_chars: int = FOLLOWUP_WINDOW_MAX_CHARS,
        max_windows: int = FOLLOWUP_MAX_WINDOWS,
        model: str = FOLLOWUP_MODEL,
        temperature: float = 0.4,
        max_tokens: int = 800,
    ):
        self.capability = capability
        self.window_sec = window_sec
        self.max_chars = max_chars
        self.max_windows = max(1, int(max_windows))
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    def build_windows(self, transcript) -> list[FollowupWindow]:
        if isinstance(transcript, str):
            return windows_from_text(transcript)
        windows = chunk_windows(list(transcript or ()), self.window_sec, self.max_chars)
        return windows[:self.max_windows]

    async def generate(self, transcript, mode: str = "general", total: int = 6) -> FollowupResult:
        total = max(1, int(total))
        windows = self.build_windows(transcript)
        if not windows:
            return FollowupResult(questions=(), source="empty")

        if self.capability is None:
            logger.info("follow-up generation unavailable; using fallback set")
            increment_metric("followup_fallbacks", 1)
            return fallback_result(total, windows)

        prompt = build_followup_prompt(windows, mode, total)
        try:
            raw = await self.capability.complete(
                FOLLOWUP_SYSTEM_PROMPT,
                prompt,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                structured_output=True,
                model=self.model,
            )
            items = dedupe_items(parse_question_items(raw), total)
            if not items:
                raise MalformedGenerationResponse("no usable questions in response")
        except Exception as exc:
            logger.warning("LLM follow-ups failed; using fallback set | mode=%s err=%s", mode, exc)
            increment_metric("followup_fallbacks", 1)
            return fallback_result(total, windows)

        return FollowupResult(
            questions=tuple(item.text for item in items),
            rich=tuple(item.to_detail() for item in items),
            windows=tuple(windows),
            source="llm",
        )
