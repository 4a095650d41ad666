from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

OPTION_COUNT = 4
FALLBACK_FEEDBACK = "Could not evaluate"
FALLBACK_CORRECTION = "N/A"
NO_CORRECTION = "None needed"


class Question(BaseModel):
    question: str = Field(min_length=1)
    options: list[str]
    correct_answer: str = Field(min_length=1)

    @field_validator("question", "correct_answer", mode="before")
    @classmethod
    def _strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("options", mode="before")
    @classmethod
    def _strip_options(cls, value):
        if isinstance(value, list):
            return [item.strip() if isinstance(item, str) else item for item in value]
        return value

    @model_validator(mode="after")
    def _check_options(self) -> "Question":
        if len(self.options) != OPTION_COUNT:
            raise ValueError(f"expected exactly {OPTION_COUNT} options, got {len(self.options)}")
        if any(not option for option in self.options):
            raise ValueError("options must be non-empty")
        if len(set(self.options)) != OPTION_COUNT:
            raise ValueError("options must be distinct")
        if self.correct_answer not in self.options:
            raise ValueError("correct_answer must be one of the options")
        return self


class Evaluation(BaseModel):
    score: float = Field(ge=0.0, le=1.0)
    feedback: str
    correction: str
    is_correct: bool

    @classmethod
    def fallback(cls) -> "Evaluation":
        return cls(score=0, feedback=FALLBACK_FEEDBACK, correction=FALLBACK_CORRECTION, is_correct=False)


# ── Wire models for POST /adaptive-quiz ──────────────────────────────────────

class GenerateQuestionRequest(BaseModel):
    action: str = "generate_question"
    topic: str = Field(min_length=1)
    mastery: float | None = 0.0


class GenerateQuestionResponse(BaseModel):
    success: bool = True
    question: Question
    level: str


class EvaluateAnswerRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    action: str = "evaluate_answer"
    question: str = Field(min_length=1)
    answer: str = Field(min_length=1)
    topic: str = Field(min_length=1)
    user_id: str = Field(alias="userId", min_length=1)
    topic_id: str = Field(alias="topicId", min_length=1)
    mastery: float | None = None


class EvaluateAnswerResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    evaluation: Evaluation
    new_mastery: float | None = Field(default=None, alias="newMastery")


class MasteryResponse(BaseModel):
    user_id: str
    topic_id: str
    mastery_level: float
    label: str


class LeaderboardEntry(BaseModel):
    user_id: str
    username: str | None = None
    avg_mastery: float
    topics_count: int = 0


class LeaderboardResponse(BaseModel):
    leaders: list[LeaderboardEntry]
