"""Embedding providers."""

import hashlib
import logging
from typing import Protocol, Sequence

import openai
from openai import OpenAI
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..config import (
    EMBEDDING_BATCH_SIZE,
    EMBEDDING_DIMENSIONS,
    EMBEDDING_MAX_ATTEMPTS,
    EMBEDDING_MODEL,
    OPENAI_API_KEY,
)
from ..errors import ConfigurationError, NotInitializedError

logger = logging.getLogger(__name__)

# OpenAI errors worth another attempt
TRANSIENT_ERRORS = (
    openai.APIConnectionError,
    openai.APITimeoutError,
    openai.RateLimitError,
)


class EmbeddingProvider(Protocol):
    """Maps a batch of texts to fixed-length vectors."""

    def initialize(self) -> None:
        """Load the model. Called once before the first embed."""
        ...

    def embed(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed texts, returning one vector per text in the same order."""
        ...


class OpenAIEmbedder:
    """Generates embeddings using OpenAI's embeddings endpoint."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        dimensions: int | None = None,
        batch_size: int | None = None,
    ):
        """Initialize the embedder.

        Args:
            api_key: OpenAI API key. Defaults to environment variable.
            model: Embedding model name. Defaults to config.
            dimensions: Output vector length. Defaults to config.
            batch_size: Maximum texts per API request. Defaults to config.
        """
        self.api_key = api_key or OPENAI_API_KEY
        self.model = model or EMBEDDING_MODEL
        self.dimensions = dimensions or EMBEDDING_DIMENSIONS
        self.batch_size = batch_size or EMBEDDING_BATCH_SIZE

        self._client: OpenAI | None = None
        self._cache: dict[str, list[float]] = {}

    @property
    def ready(self) -> bool:
        return self._client is not None

    def initialize(self) -> None:
        """Create the OpenAI client."""
        if self.ready:
            return
        if not self.api_key:
            raise ConfigurationError("OpenAI API key is required")

        self._client = OpenAI(api_key=self.api_key)
        logger.info(f"Embedding model ready: {self.model} ({self.dimensions} dimensions)")

    def embed(self, texts: Sequence[str]) -> list[list[float]]:
        """Generate embeddings for multiple texts.

        Texts seen earlier in this process are served from memory.

        Args:
            texts: List of texts to embed.

        Returns:
            List of embedding vectors.
        """
        if not self.ready:
            raise NotInitializedError("Call initialize() before embedding")

        results: list[list[float] | None] = [None] * len(texts)
        to_embed = []
        to_embed_indices = []

        for i, text in enumerate(texts):
            cache_key = self._cache_key(text)
            if cache_key in self._cache:
                results[i] = self._cache[cache_key]
            else:
                to_embed.append(text)
                to_embed_indices.append(i)

        if to_embed:
            new_embeddings = self._embed_uncached(to_embed)

            for idx, embedding in zip(to_embed_indices, new_embeddings):
                results[idx] = embedding
                self._cache[self._cache_key(texts[idx])] = embedding

        return results

    def _embed_uncached(self, texts: list[str]) -> list[list[float]]:
        """Embed texts in request-sized batches."""
        all_embeddings = []

        for i in range(0, len(texts), self.batch_size):
            batch = [self._truncate_text(t) for t in texts[i : i + self.batch_size]]
            all_embeddings.extend(self._request(batch))
            logger.debug(f"Embedded batch {i // self.batch_size + 1}")

        return all_embeddings

    @retry(
        stop=stop_after_attempt(EMBEDDING_MAX_ATTEMPTS),
        wait=wait_exponential(multiplier=1, min=4, max=60),
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        reraise=True,
    )
    def _request(self, batch: list[str]) -> list[list[float]]:
        """Single embeddings request, retried on transient errors."""
        try:
            response = self._client.embeddings.create(
                model=self.model,
                input=batch,
                dimensions=self.dimensions,
            )
        except Exception as e:
            logger.error(f"Error embedding batch: {e}")
            raise

        # Extract embeddings in order
        batch_embeddings = [None] * len(batch)
        for item in response.data:
            batch_embeddings[item.index] = item.embedding
        return batch_embeddings

    def _truncate_text(self, text: str, max_tokens: int = 8000) -> str:
        """Truncate text to fit within token limit.

        This is a simple character-based approximation.
        """
        max_chars = max_tokens * 4
        if len(text) > max_chars:
            return text[:max_chars]
        return text

    def _cache_key(self, text: str) -> str:
        """Generate a cache key for text."""
        return hashlib.sha256(text.encode()).hexdigest()[:16]
