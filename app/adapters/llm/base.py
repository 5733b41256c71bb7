from abc import ABC, abstractmethod
from typing import Any


class AbstractLLMClient(ABC):
	"""Interface for LLM clients producing JSON and transcribing audio."""

	@abstractmethod
	async def generate_json(
		self,
		prompt: str,
		*,
		schema: dict[str, Any] | None = None,
		**kwargs: Any,
	) -> Any:
		"""Generate a structured JSON response from the model.

		Args:
			prompt: User prompt to send to the model.
			schema: Optional JSON schema; enables the provider's JSON mode.
			**kwargs: Provider-specific options (e.g., temperature, max_tokens).

		Returns:
			The decoded JSON value (normally an object).

		Raises:
			RuntimeError: If the provider call fails or the response is not JSON.
		"""
		...

	@abstractmethod
	async def transcribe(
		self,
		audio: bytes,
		*,
		filename: str,
		content_type: str,
	) -> str:
		"""Transcribe recorded speech to text.

		Raises:
			RuntimeError: If the provider call fails.
		"""
		...
