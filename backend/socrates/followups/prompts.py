from typing import Sequence

from socrates.followups.windows import FollowupWindow

FOLLOWUP_SYSTEM_PROMPT = (
    "You are an expert presentation coach. "
    "Produce incisive follow-up questions grounded in the presenter's words."
)

MODE_PRESETS = {
    "general": """Write a few probing, respectful questions that:
- Clarify assumptions/definitions/scope
- Pressure-test evidence, metrics, and tradeoffs
- Identify risks/unknowns/stakeholders
- Drive next steps and accountability
Keep each under 18 words. Limit to 5 questions at most.""",
    "teaching": """Write a few learner-centered questions that:
- Elicit reasoning and misconceptions
- Connect concepts to examples and edge cases
- Scaffold reflection and self-explanation
Keep each under 18 words. Limit to 5 questions at most.""",
    "interview": """Write a few interviewer-style questions that:
- Probe impact, decisions, constraints, and alternatives
- Ask for quantification and personal contribution
- Surface failure modes and next steps
Keep each under 18 words. Limit to 5 questions at most.""",
}

SCHEMA_REMINDER = """Return ONLY JSON:
{
  "questions": [
    {
      "text": "string (the question)",
      "category": "clarify|evidence|scope|risk|next-steps|tradeoff|example",
      "difficulty": "easy|medium|hard",
      "why": "short rationale (optional)",
      "anchor": { "windowIndex": number, "start": number, "end": number }
    }
  ]
}"""


def get_mode_preset(mode: str) -> str:
    return MODE_PRESETS.get(str(mode or "").strip().lower(), MODE_PRESETS["general"])


def format_windows(windows: Sequence[FollowupWindow]) -> str:
    return "\n".join(
        f"[{idx}] {w.start:.1f}→{w.end:.1f}s: {w.text}"
        for idx, w in enumerate(windows)
    )


def build_followup_prompt(windows: Sequence[FollowupWindow], mode: str, total: int) -> str:
    return f"""
You will receive the transcript in time windows.
Mode: "{mode}"
Target: {total} questions.

Guidelines:
{get_mode_preset(mode)}

Rules:
- Vary categories (include clarify, evidence, scope, risk, next-steps at minimum).
- Be specific; reference the claim/metric/decision you're probing.
- No generic filler or compliments.
- Keep each question under ~18 words.
- {SCHEMA_REMINDER}

Windows (index, start→end seconds, text):
{format_windows(windows)}
"""
