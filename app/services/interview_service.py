"""Interview practice service: question generation and answer assessment.

Builds prompts, asks the LLM for JSON, validates it against the schemas,
retries once more when the model output does not validate, and
post-processes questions (trim, clamp, dedupe, ids). Answer assessments are
cached so an identical resubmission does not reach the provider again.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from pydantic import BaseModel, ValidationError

from app.adapters.llm.base import AbstractLLMClient
from app.core.config import settings
from app.core.constants import MAX_QUESTION_CHARS
from app.core.errors import LLMAppError
from app.schemas.interview import (
    AssessAnswerRequest,
    Feedback,
    JobConfig,
    Question,
    RawQuestion,
    RawQuestionSet,
)
from app.utils.api_helpers import build_cache_key, retry_request
from app.utils.simple_cache import TransientCache

logger = logging.getLogger(__name__)

COACH_PREAMBLE = "You are an expert interview coach. Be concise, specific, and actionable."
JSON_INSTRUCTION = "Return JSON only that matches the provided schema."

ASSESS_CACHE_ENDPOINT = "/api/assess-answer"


def _describe_job(job: JobConfig) -> str:
    return (
        f"Role: {job.role}. Interview type: {job.interview_type}. "
        f"Seniority: {job.seniority or 'unspecified'}."
    )


def build_question_prompt(job: JobConfig) -> str:
    """Prompt asking for a varied set of short questions for the role."""
    extras = f" Extra context: {job.extras}" if job.extras else ""
    return "\n".join(
        [
            COACH_PREAMBLE,
            JSON_INSTRUCTION,
            _describe_job(job) + extras,
            "Generate 5-10 concise, varied questions (<=200 chars each).",
            'Respond as {"questions": [{"text": str, "category": str, "difficulty": 1|2|3}]}.',
        ]
    )


def build_assessment_prompt(request: AssessAnswerRequest) -> str:
    """Prompt asking the model to grade one answer."""
    return "\n".join(
        [
            COACH_PREAMBLE,
            JSON_INSTRUCTION,
            _describe_job(request.job),
            f"Question: {request.question.text}",
            f"Answer: {request.answer}",
            "Provide summary, up to 3 strengths, up to 3 improvements (start with a verb), "
            "up to 3 tips, a concise example answer (<=160 words, STAR for behavioral), "
            "and an integer score 0-100.",
            'Respond as {"summary": str, "strengths": [str], "improvements": [str], '
            '"tips": [str], "exampleAnswer": str, "score": int}.',
        ]
    )


def postprocess_questions(raw: list[RawQuestion]) -> list[Question]:
    """Normalize model questions.

    Trims and clamps text, drops empty and case-insensitive duplicate texts,
    keeps difficulty only when it is 1, 2 or 3, and fills missing ids.
    """
    seen: set[str] = set()
    processed: list[Question] = []
    for item in raw:
        text = item.text.strip()[:MAX_QUESTION_CHARS]
        if not text:
            continue
        fingerprint = text.lower()
        if fingerprint in seen:
            continue
        seen.add(fingerprint)

        processed.append(
            Question(
                id=item.id or str(uuid.uuid4()),
                text=text,
                category=item.category,
                difficulty=item.difficulty if item.difficulty in (1, 2, 3) else None,
            )
        )
    return processed


def _as_question_set(payload: Any) -> Any:
    # Models sometimes answer with a bare array despite the object instruction
    if isinstance(payload, list):
        return {"questions": payload}
    return payload


class InterviewService:
    """Coordinates prompts, LLM calls, validation and caching.

    Attributes:
        llm: LLM client adapter.
        cache: Transient cache for assessments.
    """

    def __init__(self, llm: AbstractLLMClient, cache: TransientCache) -> None:
        self.llm = llm
        self.cache = cache

    async def _generate_validated(
        self,
        prompt: str,
        model_cls: type[BaseModel],
        *,
        max_tokens: int,
        adapt: Any = None,
    ) -> Any:
        """Ask the model for JSON until it validates against ``model_cls``.

        Raises:
            LLMAppError: When every attempt failed or produced invalid JSON.
        """
        schema = model_cls.model_json_schema(by_alias=True)

        async def attempt() -> Any:
            payload = await self.llm.generate_json(prompt, schema=schema, max_tokens=max_tokens)
            if adapt is not None:
                payload = adapt(payload)
            return model_cls.model_validate(payload)

        try:
            return await retry_request(
                attempt,
                max_retries=settings.llm.json_attempts,
                delay_ms=settings.llm.retry_delay_ms,
            )
        except (RuntimeError, ValidationError) as exc:
            logger.error(
                "llm.invalid_output",
                extra={
                    "schema_name": model_cls.__name__,
                    "error_type": type(exc).__name__,
                    "model": settings.llm.model,
                },
            )
            raise LLMAppError(
                code="llm_invalid_json",
                message=f"Failed to parse model JSON: {exc}",
                details={"model": settings.llm.model},
            ) from exc

    async def generate_questions(self, job: JobConfig) -> list[Question]:
        """Generate a deduplicated question set for the job.

        Raises:
            LLMAppError: If the model output never validates.
        """
        raw_set: RawQuestionSet = await self._generate_validated(
            build_question_prompt(job),
            RawQuestionSet,
            max_tokens=settings.llm.questions_max_output_tokens,
            adapt=_as_question_set,
        )
        questions = postprocess_questions(raw_set.questions)
        logger.info(
            "questions.generated",
            extra={
                "interview_type": job.interview_type,
                "raw_count": len(raw_set.questions),
                "count": len(questions),
            },
        )
        return questions

    async def assess_answer(self, request: AssessAnswerRequest) -> Feedback:
        """Score an answer, serving identical submissions from cache.

        Raises:
            LLMAppError: If the model output never validates.
        """
        cache_key = build_cache_key(
            ASSESS_CACHE_ENDPOINT,
            request.model_dump(mode="json", by_alias=True, exclude_none=True),
        )
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.info("feedback.cache_hit")
            return Feedback.model_validate(cached)

        feedback: Feedback = await self._generate_validated(
            build_assessment_prompt(request),
            Feedback,
            max_tokens=settings.llm.feedback_max_output_tokens,
        )

        ttl_ms = settings.app.feedback_cache_ttl_ms
        if ttl_ms > 0:
            self.cache.set(cache_key, feedback.model_dump(by_alias=True), ttl_ms)

        logger.info(
            "feedback.generated",
            extra={"interview_type": request.job.interview_type, "score": feedback.score},
        )
        return feedback

    async def transcribe(self, audio: bytes, *, filename: str, content_type: str) -> str:
        """Transcribe a recorded answer.

        Raises:
            LLMAppError: If the provider call fails.
        """
        try:
            return await self.llm.transcribe(audio, filename=filename, content_type=content_type)
        except RuntimeError as exc:
            raise LLMAppError(code="transcription_failed", message=str(exc)) from exc
