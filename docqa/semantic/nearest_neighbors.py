"""Exact k-nearest-neighbour lookup over an in-memory embedding matrix."""

import logging
from typing import Sequence

import numpy as np

from ..errors import ConfigurationError, DimensionMismatchError, NotFittedError

logger = logging.getLogger(__name__)


def euclidean_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Euclidean (L2) distance between two vectors of equal length."""
    if len(a) != len(b):
        raise DimensionMismatchError(f"Vector lengths differ: {len(a)} != {len(b)}")
    diff = np.asarray(a, dtype=float) - np.asarray(b, dtype=float)
    return float(np.linalg.norm(diff))


class NearestNeighbors:
    """Brute-force nearest neighbours by Euclidean distance.

    Every query is compared against every stored vector, which is fine for
    a single document's worth of chunks.
    """

    def __init__(self, n_neighbors: int = 5):
        """Initialize the index.

        Args:
            n_neighbors: Number of neighbours returned per query.
        """
        if n_neighbors < 1:
            raise ConfigurationError(f"n_neighbors must be at least 1, got {n_neighbors}")

        self.n_neighbors = n_neighbors
        self._embeddings: np.ndarray | None = None

    @property
    def fitted(self) -> bool:
        return self._embeddings is not None

    @property
    def dimension(self) -> int | None:
        """Dimension of the stored vectors, or None before fit."""
        if self._embeddings is None:
            return None
        return self._embeddings.shape[1]

    def __len__(self) -> int:
        return 0 if self._embeddings is None else self._embeddings.shape[0]

    def fit(self, embeddings: Sequence[Sequence[float]]) -> "NearestNeighbors":
        """Store the vectors to search, replacing anything stored before.

        Args:
            embeddings: Vectors in corpus order, all of the same length.

        Returns:
            The index itself.
        """
        if self.n_neighbors > len(embeddings):
            raise ConfigurationError(
                f"n_neighbors ({self.n_neighbors}) exceeds the number of "
                f"embeddings ({len(embeddings)})"
            )

        dimensions = {len(e) for e in embeddings}
        if len(dimensions) > 1:
            raise DimensionMismatchError(
                f"Embeddings have inconsistent dimensions: {sorted(dimensions)}"
            )

        self._embeddings = np.asarray(embeddings, dtype=float)
        logger.debug(
            f"Fitted index with {self._embeddings.shape[0]} vectors "
            f"of dimension {self._embeddings.shape[1]}"
        )
        return self

    def distances(self, query: Sequence[float]) -> np.ndarray:
        """Distance from the query to every stored vector, in corpus order."""
        if self._embeddings is None:
            raise NotFittedError("NearestNeighbors must be fitted before querying")

        vector = np.asarray(query, dtype=float)
        if vector.shape != (self._embeddings.shape[1],):
            raise DimensionMismatchError(
                f"Query has shape {vector.shape}, "
                f"expected ({self._embeddings.shape[1]},)"
            )

        return np.linalg.norm(self._embeddings - vector, axis=1)

    def kneighbors(
        self,
        query: Sequence[float],
        return_data: bool = False,
    ) -> list[list[float]] | list[int]:
        """Find the stored vectors closest to the query.

        Args:
            query: Query vector.
            return_data: Return the stored vectors instead of their indices.

        Returns:
            The ``n_neighbors`` closest entries by ascending distance.
            Equidistant entries keep their corpus order.
        """
        distances = self.distances(query)
        # Stable sort keeps ties in insertion order
        ranked = np.argsort(distances, kind="stable")[: self.n_neighbors]

        if return_data:
            return [self._embeddings[i].tolist() for i in ranked]
        return [int(i) for i in ranked]
