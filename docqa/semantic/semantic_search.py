"""Semantic search over a single document's chunks."""

import logging
import threading
from dataclasses import dataclass
from typing import Sequence

from tqdm import tqdm

from ..config import DEFAULT_NEIGHBORS, EMBEDDING_BATCH_SIZE
from ..errors import (
    ConcurrentFitError,
    ConfigurationError,
    DimensionMismatchError,
    DocQAError,
    EmptyCorpusError,
    NotFittedError,
    NotInitializedError,
    UpstreamError,
)
from .chunker import Chunk
from .embedder import EmbeddingProvider
from .nearest_neighbors import NearestNeighbors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _FittedState:
    """Everything a query reads, published together after a fit succeeds."""

    chunks: tuple[Chunk, ...]
    embeddings: tuple[tuple[float, ...], ...]
    index: NearestNeighbors


class SemanticSearch:
    """Embeds a corpus of chunks and answers similarity queries against it."""

    def __init__(
        self,
        embedder: EmbeddingProvider,
        batch_size: int = EMBEDDING_BATCH_SIZE,
        n_neighbors: int = DEFAULT_NEIGHBORS,
        show_progress: bool = False,
    ):
        """Initialize the search.

        Args:
            embedder: Embedding provider used for both chunks and queries.
            batch_size: Default number of chunks per embedding call.
            n_neighbors: Default number of results per query.
            show_progress: Whether to show a progress bar while embedding.
        """
        self.embedder = embedder
        self.batch_size = batch_size
        self.default_neighbors = n_neighbors
        self.show_progress = show_progress

        self._ready = False
        self._state: _FittedState | None = None
        self._fit_lock = threading.Lock()

    @property
    def ready(self) -> bool:
        """Whether load_model() has completed."""
        return self._ready

    @property
    def fitted(self) -> bool:
        return self._state is not None

    @property
    def chunks(self) -> tuple[Chunk, ...]:
        return self._require_fitted().chunks

    @property
    def embeddings(self) -> tuple[tuple[float, ...], ...]:
        return self._require_fitted().embeddings

    @property
    def dimension(self) -> int:
        """Embedding dimension of the fitted corpus."""
        return self._require_fitted().index.dimension

    @property
    def n_neighbors(self) -> int:
        """Neighbour count in effect after clamping to the corpus size."""
        return self._require_fitted().index.n_neighbors

    def load_model(self) -> None:
        """Initialize the embedding provider. Safe to call more than once."""
        if self._ready:
            return

        try:
            self.embedder.initialize()
        except DocQAError:
            raise
        except Exception as e:
            logger.error(f"Error loading embedding model: {e}")
            raise UpstreamError(f"Embedding model failed to load: {e}") from e

        self._ready = True
        logger.info("Embedding model loaded")

    def fit(
        self,
        data: Sequence[Chunk],
        batch: int | None = None,
        n_neighbors: int | None = None,
    ) -> None:
        """Embed a corpus and build the neighbour index over it.

        The previous state stays in place until every step has succeeded.

        Args:
            data: Chunks in corpus order.
            batch: Chunks per embedding call. Defaults to the instance setting.
            n_neighbors: Results per query, clamped to the corpus size.
        """
        batch = self.batch_size if batch is None else batch
        n_neighbors = self.default_neighbors if n_neighbors is None else n_neighbors

        self._require_ready()
        if not data:
            raise EmptyCorpusError("Cannot fit on an empty corpus")
        if batch <= 0:
            raise ConfigurationError(f"batch must be positive, got {batch}")
        if n_neighbors < 1:
            raise ConfigurationError(f"n_neighbors must be at least 1, got {n_neighbors}")

        if not self._fit_lock.acquire(blocking=False):
            raise ConcurrentFitError("A fit is already in progress on this instance")

        try:
            chunks = tuple(data)
            embeddings = self.get_text_embedding([c.render() for c in chunks], batch)

            n_neighbors = min(n_neighbors, len(embeddings))
            index = NearestNeighbors(n_neighbors).fit(embeddings)

            self._state = _FittedState(
                chunks=chunks,
                embeddings=tuple(tuple(e) for e in embeddings),
                index=index,
            )
        finally:
            self._fit_lock.release()

        logger.info(
            f"Fitted semantic search on {len(index)} chunks "
            f"({index.dimension} dimensions, k={n_neighbors})"
        )

    def query(self, text: str, return_data: bool = True) -> list[str] | list[int]:
        """Find the chunks most similar to a text.

        Args:
            text: Query text.
            return_data: Return rendered chunk strings instead of indices.

        Returns:
            Rendered chunks or corpus indices, closest first.
        """
        self._require_ready()
        state = self._require_fitted()

        query_embedding = self._embed_batch([text])[0]
        if len(query_embedding) != state.index.dimension:
            raise DimensionMismatchError(
                f"Query embedding has {len(query_embedding)} dimensions but the corpus "
                f"was embedded with {state.index.dimension}; the embedding model changed"
            )
        neighbors = state.index.kneighbors(query_embedding, return_data=False)

        if return_data:
            return [state.chunks[i].render() for i in neighbors]
        return neighbors

    def get_text_embedding(self, texts: Sequence[str], batch: int) -> list[list[float]]:
        """Embed texts in consecutive batches, preserving order.

        Args:
            texts: Texts to embed.
            batch: Maximum texts per provider call.

        Returns:
            One embedding per text.
        """
        iterator = range(0, len(texts), batch)
        if self.show_progress:
            iterator = tqdm(iterator, desc="Embedding chunks")

        embeddings = []
        for i in iterator:
            embeddings.extend(self._embed_batch(texts[i : i + batch]))
            logger.debug(f"Embedded batch {i // batch + 1} ({len(embeddings)}/{len(texts)})")

        return embeddings

    def _embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        """One provider call, with failures raised as UpstreamError."""
        try:
            embeddings = self.embedder.embed(list(texts))
        except DocQAError:
            raise
        except Exception as e:
            logger.error(f"Error embedding batch: {e}")
            raise UpstreamError(f"Embedding provider failed: {e}") from e

        if len(embeddings) != len(texts):
            raise UpstreamError(
                f"Embedding provider returned {len(embeddings)} vectors for {len(texts)} texts"
            )
        return list(embeddings)

    def _require_ready(self) -> None:
        if not self._ready:
            raise NotInitializedError("Call load_model() before fit or query")

    def _require_fitted(self) -> _FittedState:
        state = self._state
        if state is None:
            raise NotFittedError("SemanticSearch must be fitted before querying")
        return state
