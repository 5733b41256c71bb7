"""OpenAI LLM client adapter."""

import json
from typing import Any

from openai import AsyncOpenAI

from app.adapters.llm.base import AbstractLLMClient

SYSTEM_PROMPT = "Output JSON only. No extra text or markdown formatting."


class OpenAIClient(AbstractLLMClient):
    """Client for OpenAI chat completions and audio transcriptions.

    Uses the official OpenAI Python SDK with async support.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        timeout_seconds: float = 45.0,
        transcribe_model: str = "gpt-4o-mini-transcribe",
    ) -> None:
        """Initialize OpenAI async client.

        Args:
            api_key: OpenAI API key for authentication.
            model: Chat model name (e.g., "gpt-4.1-mini").
            base_url: Optional custom base URL for OpenAI API.
            timeout_seconds: Timeout for requests in seconds.
            transcribe_model: Model used by ``transcribe``.
        """
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
        )
        self.model = model
        self.transcribe_model = transcribe_model

    async def generate_json(
        self,
        prompt: str,
        *,
        schema: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> Any:
        """Generate structured JSON using OpenAI chat completions.

        Args:
            prompt: User prompt to send to the model.
            schema: Optional JSON schema (switches on json_object mode).
            **kwargs: Provider options (temperature, max_tokens, top_p, etc.).

        Returns:
            Parsed JSON value from the LLM response.

        Raises:
            RuntimeError: If the API call fails or the response is not valid JSON.
        """
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]

        request_params: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": kwargs.pop("temperature", 0.4),
        }

        if schema is not None:
            request_params["response_format"] = {"type": "json_object"}

        for param in ("max_tokens", "top_p", "frequency_penalty", "presence_penalty", "seed"):
            if param in kwargs:
                request_params[param] = kwargs[param]

        try:
            response = await self.client.chat.completions.create(**request_params)
            content = response.choices[0].message.content

            if content is None:
                raise RuntimeError("LLM returned empty response")

            content = content.strip()

        except Exception as exc:
            raise RuntimeError(f"OpenAI API error: {str(exc)}") from exc

        try:
            return json.loads(content)
        except json.JSONDecodeError as exc:
            raise RuntimeError(f"LLM returned invalid JSON: {str(exc)}") from exc

    async def transcribe(
        self,
        audio: bytes,
        *,
        filename: str,
        content_type: str,
    ) -> str:
        """Transcribe audio with the configured transcription model.

        Raises:
            RuntimeError: If the API call fails.
        """
        try:
            result = await self.client.audio.transcriptions.create(
                model=self.transcribe_model,
                file=(filename, audio, content_type),
            )
        except Exception as exc:
            raise RuntimeError(f"OpenAI API error: {str(exc)}") from exc

        return result.text
