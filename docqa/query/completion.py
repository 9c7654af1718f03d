"""Text completion backends."""

import logging
from typing import Protocol

from openai import OpenAI

from ..config import COMPLETION_MAX_TOKENS, COMPLETION_MODEL, COMPLETION_TEMPERATURE
from ..errors import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)


class CompletionBackend(Protocol):
    """Maps a prompt to generated text."""

    def complete(self, prompt: str) -> str:
        ...


class OpenAICompletion:
    """Single-shot completions through the OpenAI chat API.

    The API key is bound to this instance; nothing is set process-wide.
    """

    def __init__(
        self,
        api_key: str,
        model: str = COMPLETION_MODEL,
        max_tokens: int = COMPLETION_MAX_TOKENS,
        temperature: float = COMPLETION_TEMPERATURE,
    ):
        """Initialize the backend.

        Args:
            api_key: OpenAI API key.
            model: Chat model name.
            max_tokens: Maximum tokens in the answer.
            temperature: Sampling temperature.
        """
        if not api_key or not api_key.strip():
            raise ConfigurationError("OpenAI API key is required")

        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client = OpenAI(api_key=api_key)

    def complete(self, prompt: str) -> str:
        """Generate a completion for the prompt. No retries."""
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=self.max_tokens,
                n=1,
                temperature=self.temperature,
            )
        except Exception as e:
            logger.error(f"Error generating completion: {e}")
            raise UpstreamError(f"Completion backend failed: {e}") from e

        message = response.choices[0].message.content or ""
        logger.debug(f"Completion used model {self.model}, {len(message)} chars")
        return message
