"""Pydantic schemas for interview practice requests and responses.

Wire field names are camelCase; Python attributes are snake_case.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

InterviewType = Literal[
    "screening",
    "behavioral",
    "technical",
    "system_design",
    "case",
    "other",
]
Seniority = Literal["intern", "junior", "mid", "senior", "lead"]
Difficulty = Literal[1, 2, 3]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class JobConfig(CamelModel):
    """The role a candidate is practising for."""

    role: str = Field(..., min_length=1, description="Job title, e.g. 'Frontend Engineer'.")
    interview_type: InterviewType = Field(..., description="Kind of interview round.")
    seniority: Seniority | None = Field(default=None)
    extras: str | None = Field(
        default=None,
        description="Free-form context supplied by the user.",
    )


class Question(CamelModel):
    """A generated interview question."""

    id: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1)
    category: str | None = Field(
        default=None,
        description="e.g. 'STAR', 'algorithms', 'product sense'.",
    )
    difficulty: Difficulty | None = Field(default=None, description="1 is easy.")


class RawQuestion(CamelModel):
    """A question as returned by the model, before post-processing."""

    id: str | None = Field(default=None)
    text: str = Field(..., min_length=1)
    category: str | None = None
    difficulty: int | None = Field(default=None, ge=1, le=3)


class RawQuestionSet(CamelModel):
    questions: list[RawQuestion] = Field(..., min_length=1)


class Feedback(CamelModel):
    """Model assessment of a single answer."""

    summary: str = Field(..., min_length=1, description="1-2 sentence overview.")
    strengths: list[str] = Field(..., max_length=3)
    improvements: list[str] = Field(..., max_length=3, description="Actionable, verb first.")
    tips: list[str] = Field(..., max_length=3, description="Short and tactical.")
    example_answer: str = Field(..., min_length=1, description="Compact model answer.")
    score: int | None = Field(default=None, ge=0, le=100)


class AssessAnswerRequest(CamelModel):
    """Body of POST /api/assess-answer."""

    job: JobConfig
    question: Question
    answer_text: str | None = None
    transcript: str | None = None

    @model_validator(mode="after")
    def _require_answer(self) -> "AssessAnswerRequest":
        if not ((self.answer_text and self.answer_text.strip()) or (self.transcript and self.transcript.strip())):
            raise ValueError("Either answerText or transcript is required")
        return self

    @property
    def answer(self) -> str:
        """The transcript when present, else the typed answer."""
        return self.transcript or self.answer_text or ""


class GenerateQuestionsResponse(CamelModel):
    question_set: list[Question]
    remaining_requests: int


class AssessAnswerResponse(CamelModel):
    feedback: Feedback
    remaining_requests: int


class TranscribeResponse(CamelModel):
    transcript: str
    remaining_requests: int
