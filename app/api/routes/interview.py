"""Interview practice endpoints.

Every response from these routes carries the caller's X-RateLimit-* headers.
Question generation and transcription consume rate limit budget; answer
assessment only reports it.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from app.adapters.llm.factory import create_llm_client
from app.core.config import settings
from app.core.errors import LLMAppError, NotFoundAppError, ValidationAppError
from app.core.file_validation import read_audio_upload, validate_audio_duration
from app.core.rate_limit import (
    enforce_rate_limit,
    get_client_identifier,
    get_rate_limiter,
    rate_limit_headers,
)
from app.schemas.interview import (
    AssessAnswerRequest,
    AssessAnswerResponse,
    GenerateQuestionsResponse,
    JobConfig,
    TranscribeResponse,
)
from app.services.interview_service import InterviewService
from app.utils.api_helpers import format_api_error
from app.utils.simple_cache import api_cache

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Interview"])

INVALID_BODY_MESSAGE = "Invalid request body"


@lru_cache(maxsize=1)
def get_interview_service() -> InterviewService:
    """Build the shared service on first use.

    Raises:
        LLMAppError: If the LLM client cannot be configured.
    """
    try:
        llm = create_llm_client()
    except ValidationAppError as exc:
        raise LLMAppError(code="llm_unavailable", message=exc.message) from exc
    return InterviewService(llm=llm, cache=api_cache)


async def require_audio_enabled() -> None:
    if not settings.app.audio_enabled:
        raise NotFoundAppError(code="not_found", message="Not found")


def _respond(identifier: str, content: Any, status_code: int = 200) -> JSONResponse:
    if isinstance(content, BaseModel):
        content = content.model_dump(mode="json", by_alias=True, exclude_none=True)
    return JSONResponse(
        status_code=status_code,
        content=content,
        headers=rate_limit_headers(identifier),
    )


def _error_response(identifier: str, exc: Exception) -> JSONResponse:
    """Map a failure to a JSON error body, keeping the quota headers."""
    if isinstance(exc, ValidationAppError):
        content: dict[str, Any] = {"error": exc.message}
        if exc.details:
            content["details"] = exc.details
        return _respond(identifier, content, 400)

    logger.error(
        "interview.request_failed",
        extra={
            "error_type": type(exc).__name__,
            "error_code": getattr(exc, "code", None),
        },
    )
    return _respond(identifier, {"error": format_api_error(exc)}, 500)


def _parse_body(model_cls: type[BaseModel], payload: Any) -> Any:
    try:
        return model_cls.model_validate(payload)
    except ValidationError as exc:
        raise ValidationAppError(
            code="invalid_request_body",
            message=INVALID_BODY_MESSAGE,
            details={"errors": exc.errors(include_url=False, include_context=False)},
        ) from exc


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError as exc:
        raise ValidationAppError(
            code="invalid_request_body",
            message=INVALID_BODY_MESSAGE,
            details={"hint": "Body must be valid JSON"},
        ) from exc


@router.post(
    "/generate-questions",
    response_model=GenerateQuestionsResponse,
    dependencies=[Depends(enforce_rate_limit)],
)
async def generate_questions(request: Request) -> JSONResponse:
    """Generate interview questions for a job.

    Accepts either ``{"job": {...}}`` or the job object itself.
    """
    identifier = get_client_identifier(request)
    try:
        body = await _read_json(request)
        candidate = body["job"] if isinstance(body, dict) and "job" in body else body
        job: JobConfig = _parse_body(JobConfig, candidate)
        questions = await get_interview_service().generate_questions(job)
    except Exception as exc:
        return _error_response(identifier, exc)

    remaining = get_rate_limiter().get_remaining(identifier)
    return _respond(
        identifier,
        GenerateQuestionsResponse(
            question_set=questions,
            remaining_requests=remaining,
        ),
    )


@router.post("/assess-answer", response_model=AssessAnswerResponse)
async def assess_answer(request: Request) -> JSONResponse:
    """Score an answer to one question.

    Not rate limited; the remaining quota reflects the limited endpoints.
    """
    identifier = get_client_identifier(request)
    try:
        body = await _read_json(request)
        payload: AssessAnswerRequest = _parse_body(AssessAnswerRequest, body)
        feedback = await get_interview_service().assess_answer(payload)
    except Exception as exc:
        return _error_response(identifier, exc)

    remaining = get_rate_limiter().get_remaining(identifier)
    return _respond(
        identifier,
        AssessAnswerResponse(
            feedback=feedback,
            remaining_requests=remaining,
        ),
    )


@router.post(
    "/transcribe",
    response_model=TranscribeResponse,
    dependencies=[Depends(require_audio_enabled), Depends(enforce_rate_limit)],
)
async def transcribe(
    request: Request,
    file: UploadFile | None = File(None, description="Recorded answer (e.g. audio/webm)"),
    duration_ms: str | None = Form(None, alias="durationMs"),
) -> JSONResponse:
    """Transcribe a recorded answer."""
    identifier = get_client_identifier(request)
    try:
        if file is None:
            raise ValidationAppError(
                code="audio_missing",
                message='Missing audio file in form field "file"',
            )

        audio = await read_audio_upload(file)
        validate_audio_duration(_parse_duration(duration_ms))

        transcript = await get_interview_service().transcribe(
            audio,
            filename=file.filename or "audio.webm",
            content_type=file.content_type or "audio/webm",
        )
    except Exception as exc:
        return _error_response(identifier, exc)

    remaining = get_rate_limiter().get_remaining(identifier)
    return _respond(
        identifier,
        TranscribeResponse(
            transcript=transcript,
            remaining_requests=remaining,
        ),
    )


def _parse_duration(raw: str | None) -> float | None:
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ValidationAppError(
            code="invalid_duration",
            message="durationMs must be a number",
        ) from exc
