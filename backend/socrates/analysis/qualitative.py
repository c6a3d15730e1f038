import logging

from socrates.analysis.models import QualitativeFeedback
from socrates.services.text_generation import TextGenerationCapability
from socrates.system_metrics import increment_metric

logger = logging.getLogger("socrates.analysis.qualitative")

COACH_SYSTEM_PROMPT = (
    "You are a supportive, direct presentation coach. "
    "Speak to the presenter as 'you' and keep feedback short and concrete."
)

_CLOSING = """Address the presenter in second person.
Provide specific, actionable advice in 2-3 bullet points:"""

MODE_PROMPTS = {
    "general": f"""Analyze this presentation transcript and provide constructive feedback. Focus on:
1. Content clarity and structure
2. Communication effectiveness
3. Areas for improvement
4. Strengths to maintain
{_CLOSING}""",
    "teaching": f"""Analyze this teaching session and provide constructive feedback. Focus on:
1. Content clarity and structure
2. Communication effectiveness
3. Areas for improvement
4. Strengths to maintain
{_CLOSING}""",
    "interview": f"""The following transcript is from an interview. Evaluate the candidate based on:
1. Communication skills
2. Confidence and poise
3. Ability to handle pressure
4. Adaptability and flexibility
5. Problem-solving skills
{_CLOSING}""",
    "academic": f"""The following transcript is from an academic or research talk. Evaluate it based on:
1. Clarity of the research question and contribution
2. Quality of evidence and how results are explained
3. Handling of limitations and related work
4. Accessibility for a mixed-expertise audience
{_CLOSING}""",
}

UNAVAILABLE_FEEDBACK = "AI feedback is unavailable right now. Your metrics above are still accurate."
ERROR_FEEDBACK = "AI feedback could not be generated for this session. Showing metrics-based analysis only."


def get_mode_prompt(mode: str) -> str:
    return MODE_PROMPTS.get(str(mode or "").strip().lower(), MODE_PROMPTS["general"])


class QualitativeFeedbackService:
    def __init__(self, capability: TextGenerationCapability | None, temperature: float = 0.5, max_tokens: int = 350):
        self.capability = capability
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def generate(self, transcript_text: str, mode: str = "general") -> QualitativeFeedback:
        """Never raises on backend failure; the fallback is labelled by `source`."""
        if self.capability is None:
            increment_metric("qualitative_fallbacks", 1)
            return QualitativeFeedback(feedback=UNAVAILABLE_FEEDBACK, source="unavailable")

        prompt = f"{get_mode_prompt(mode)}\n\nTranscript:\n{str(transcript_text or '').strip()}"
        try:
            text = await self.capability.complete(
                COACH_SYSTEM_PROMPT,
                prompt,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                structured_output=False,
            )
        except Exception as exc:
            logger.warning("qualitative feedback failed; using fallback | mode=%s err=%s", mode, exc)
            increment_metric("qualitative_fallbacks", 1)
            return QualitativeFeedback(feedback=ERROR_FEEDBACK, source="error")

        text = str(text or "").strip()
        if not text:
            increment_metric("qualitative_fallbacks", 1)
            return QualitativeFeedback(feedback=ERROR_FEEDBACK, source="error")
        return QualitativeFeedback(feedback=text, source="llm")
