"""Semantic search and embedding modules."""

from .chunker import Chunk, PageChunker, text_to_chunks
from .embedder import EmbeddingProvider, OpenAIEmbedder
from .nearest_neighbors import NearestNeighbors, euclidean_distance
from .semantic_search import SemanticSearch

__all__ = [
    "Chunk",
    "PageChunker",
    "text_to_chunks",
    "EmbeddingProvider",
    "OpenAIEmbedder",
    "NearestNeighbors",
    "euclidean_distance",
    "SemanticSearch",
]
