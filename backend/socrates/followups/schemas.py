from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from socrates.analysis.models import FollowupAnchor, FollowupDetail

CATEGORIES = {"clarify", "evidence", "scope", "risk", "next-steps", "tradeoff", "example"}
DIFFICULTIES = {"easy", "medium", "hard"}


class AnchorModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    window_index: int = Field(default=0, alias="windowIndex")
    start: float = 0.0
    end: float = 0.0


class QuestionItemModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    text: str = ""
    category: str = "clarify"
    difficulty: str = "medium"
    why: str | None = Field(default=None, alias="rationale")
    anchor: AnchorModel | None = None

    @field_validator("text", mode="before")
    @classmethod
    def _coerce_text(cls, value):
        return str(value or "").strip()

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, value):
        normalized = str(value or "").strip().lower()
        return normalized if normalized in CATEGORIES else "clarify"

    @field_validator("difficulty", mode="before")
    @classmethod
    def _coerce_difficulty(cls, value):
        normalized = str(value or "").strip().lower()
        return normalized if normalized in DIFFICULTIES else "medium"

    @field_validator("anchor", mode="before")
    @classmethod
    def _drop_bad_anchor(cls, value):
        # the anchor is optional; a malformed one must not cost the question
        if isinstance(value, AnchorModel):
            return value
        if not isinstance(value, dict):
            return None
        try:
            return AnchorModel.model_validate(value)
        except ValidationError:
            return None

    def to_detail(self) -> FollowupDetail:
        anchor = None
        if self.anchor is not None:
            anchor = FollowupAnchor(
                window_index=self.anchor.window_index,
                start=self.anchor.start,
                end=self.anchor.end,
            )
        return FollowupDetail(
            text=self.text,
            category=self.category,
            difficulty=self.difficulty,
            rationale=(self.why or "").strip() or None,
            anchor=anchor,
        )


class FollowupResponseModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    questions: list[Any] = Field(default_factory=list)
