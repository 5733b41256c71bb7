"""Unit tests for InterviewService."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.errors import LLMAppError
from app.schemas.interview import AssessAnswerRequest, JobConfig, RawQuestion
from app.services.interview_service import (
    InterviewService,
    build_assessment_prompt,
    build_question_prompt,
    postprocess_questions,
)
from app.utils.simple_cache import TransientCache


@pytest.fixture
def job() -> JobConfig:
    return JobConfig(role="Backend Engineer", interview_type="technical", seniority="senior")


@pytest.fixture
def feedback_payload() -> dict:
    return {
        "summary": "Clear answer with a concrete example.",
        "strengths": ["Structured", "Specific"],
        "improvements": ["Quantify the impact"],
        "tips": ["Use STAR"],
        "exampleAnswer": "In my last role I...",
        "score": 78,
    }


@pytest.fixture
def assess_request(job: JobConfig) -> AssessAnswerRequest:
    return AssessAnswerRequest.model_validate(
        {
            "job": job.model_dump(by_alias=True),
            "question": {"id": "q1", "text": "Tell me about a production incident."},
            "answerText": "We had an outage and I led the rollback.",
        }
    )


def _service(llm: MagicMock) -> InterviewService:
    return InterviewService(llm=llm, cache=TransientCache())


class TestPrompts:
    def test_question_prompt_describes_job(self, job: JobConfig) -> None:
        prompt = build_question_prompt(job)

        assert "Role: Backend Engineer." in prompt
        assert "Interview type: technical." in prompt
        assert "Seniority: senior." in prompt
        assert "Extra context" not in prompt

    def test_question_prompt_defaults_seniority_and_adds_extras(self) -> None:
        job = JobConfig(role="PM", interview_type="case", extras="Fintech startup")

        prompt = build_question_prompt(job)

        assert "Seniority: unspecified." in prompt
        assert "Extra context: Fintech startup" in prompt

    def test_assessment_prompt_prefers_transcript(self, job: JobConfig) -> None:
        request = AssessAnswerRequest(
            job=job,
            question={"id": "q", "text": "Why us?"},
            answer_text="typed",
            transcript="spoken",
        )

        prompt = build_assessment_prompt(request)

        assert "Question: Why us?" in prompt
        assert "Answer: spoken" in prompt
        assert "typed" not in prompt


class TestPostprocessQuestions:
    def test_trims_dedupes_and_fills_ids(self) -> None:
        raw = [
            RawQuestion(text="  What is a deadlock?  ", difficulty=2),
            RawQuestion(text="what is a DEADLOCK?"),
            RawQuestion(id="custom", text="Explain CAP.", category="systems"),
        ]

        questions = postprocess_questions(raw)

        assert [q.text for q in questions] == ["What is a deadlock?", "Explain CAP."]
        assert questions[0].id
        assert questions[0].difficulty == 2
        assert questions[1].id == "custom"
        assert questions[1].category == "systems"

    def test_clamps_long_text(self) -> None:
        questions = postprocess_questions([RawQuestion(text="x" * 250)])

        assert len(questions[0].text) == 200

    def test_drops_whitespace_only_text(self) -> None:
        assert postprocess_questions([RawQuestion(text="   ")]) == []

    def test_generated_ids_are_unique(self) -> None:
        questions = postprocess_questions([RawQuestion(text="A?"), RawQuestion(text="B?")])

        assert questions[0].id != questions[1].id


class TestGenerateQuestions:
    @pytest.mark.asyncio
    async def test_returns_processed_questions(self, job: JobConfig) -> None:
        llm = MagicMock()
        llm.generate_json = AsyncMock(
            return_value={"questions": [{"text": "Q1", "difficulty": 1}, {"text": "Q2"}]}
        )

        questions = await _service(llm).generate_questions(job)

        assert [q.text for q in questions] == ["Q1", "Q2"]
        _, kwargs = llm.generate_json.call_args
        assert kwargs["max_tokens"] == 800
        assert kwargs["schema"] is not None

    @pytest.mark.asyncio
    async def test_accepts_bare_array(self, job: JobConfig) -> None:
        llm = MagicMock()
        llm.generate_json = AsyncMock(return_value=[{"text": "Only question"}])

        questions = await _service(llm).generate_questions(job)

        assert [q.text for q in questions] == ["Only question"]

    @pytest.mark.asyncio
    async def test_retries_once_on_invalid_output(self, job: JobConfig) -> None:
        llm = MagicMock()
        llm.generate_json = AsyncMock(
            side_effect=[{"questions": []}, {"questions": [{"text": "Recovered"}]}]
        )

        questions = await _service(llm).generate_questions(job)

        assert [q.text for q in questions] == ["Recovered"]
        assert llm.generate_json.await_count == 2

    @pytest.mark.asyncio
    async def test_raises_llm_error_after_attempts_exhausted(self, job: JobConfig) -> None:
        llm = MagicMock()
        llm.generate_json = AsyncMock(side_effect=RuntimeError("LLM returned invalid JSON"))

        with pytest.raises(LLMAppError) as exc_info:
            await _service(llm).generate_questions(job)

        assert exc_info.value.code == "llm_invalid_json"
        assert exc_info.value.message.startswith("Failed to parse model JSON:")
        assert llm.generate_json.await_count == 2


class TestAssessAnswer:
    @pytest.mark.asyncio
    async def test_returns_feedback(self, assess_request, feedback_payload) -> None:
        llm = MagicMock()
        llm.generate_json = AsyncMock(return_value=feedback_payload)

        feedback = await _service(llm).assess_answer(assess_request)

        assert feedback.score == 78
        assert feedback.example_answer == "In my last role I..."

    @pytest.mark.asyncio
    async def test_identical_request_is_served_from_cache(
        self, assess_request, feedback_payload
    ) -> None:
        llm = MagicMock()
        llm.generate_json = AsyncMock(return_value=feedback_payload)
        service = _service(llm)

        first = await service.assess_answer(assess_request)
        second = await service.assess_answer(assess_request)

        assert first == second
        assert llm.generate_json.await_count == 1

    @pytest.mark.asyncio
    async def test_rejects_too_many_strengths(self, assess_request, feedback_payload) -> None:
        llm = MagicMock()
        llm.generate_json = AsyncMock(
            return_value={**feedback_payload, "strengths": ["a", "b", "c", "d"]}
        )

        with pytest.raises(LLMAppError):
            await _service(llm).assess_answer(assess_request)

    @pytest.mark.asyncio
    async def test_score_out_of_range_is_rejected(self, assess_request, feedback_payload) -> None:
        llm = MagicMock()
        llm.generate_json = AsyncMock(return_value={**feedback_payload, "score": 140})

        with pytest.raises(LLMAppError):
            await _service(llm).assess_answer(assess_request)


class TestTranscribe:
    @pytest.mark.asyncio
    async def test_wraps_provider_errors(self) -> None:
        llm = MagicMock()
        llm.transcribe = AsyncMock(side_effect=RuntimeError("OpenAI API error: 500"))

        with pytest.raises(LLMAppError) as exc_info:
            await _service(llm).transcribe(b"abc", filename="a.webm", content_type="audio/webm")

        assert exc_info.value.message == "OpenAI API error: 500"

    @pytest.mark.asyncio
    async def test_returns_text(self) -> None:
        llm = MagicMock()
        llm.transcribe = AsyncMock(return_value="hello there")

        text = await _service(llm).transcribe(b"abc", filename="a.webm", content_type="audio/webm")

        assert text == "hello there"
        llm.transcribe.assert_awaited_once_with(b"abc", filename="a.webm", content_type="audio/webm")
