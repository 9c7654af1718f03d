"""Question answering over a single PDF."""

import logging
from pathlib import Path

from ..config import (
    CHUNK_WORD_LENGTH,
    DEFAULT_NEIGHBORS,
    DEFAULT_START_PAGE,
    DOWNLOAD_PATH,
    EMBEDDING_BATCH_SIZE,
)
from ..documents import download_pdf, pdf_to_text
from ..errors import ConfigurationError, EmptyQueryError
from ..semantic.chunker import text_to_chunks
from ..semantic.embedder import EmbeddingProvider, OpenAIEmbedder
from ..semantic.semantic_search import SemanticSearch
from .answer import AnswerComposer
from .completion import CompletionBackend, OpenAICompletion

logger = logging.getLogger(__name__)


class QuestionAnswerer:
    """Loads a PDF into semantic search and answers questions about it."""

    def __init__(
        self,
        api_key: str,
        embedder: EmbeddingProvider | None = None,
        backend: CompletionBackend | None = None,
        word_length: int = CHUNK_WORD_LENGTH,
        n_neighbors: int = DEFAULT_NEIGHBORS,
        batch_size: int = EMBEDDING_BATCH_SIZE,
        download_path: Path | str = DOWNLOAD_PATH,
        show_progress: bool = False,
    ):
        """Initialize the engine.

        Args:
            api_key: OpenAI API key for the default embedder and backend.
            embedder: Embedding provider. Defaults to OpenAIEmbedder.
            backend: Completion backend. Defaults to OpenAICompletion.
            word_length: Words per chunk.
            n_neighbors: Chunks retrieved per question.
            batch_size: Chunks per embedding call.
            download_path: Where PDFs given by URL are saved.
            show_progress: Whether to show a progress bar while embedding.
        """
        self.api_key = api_key
        self.word_length = word_length
        self.n_neighbors = n_neighbors
        self.batch_size = batch_size
        self.download_path = Path(download_path)

        self._embedder = embedder
        self._backend = backend
        self._search: SemanticSearch | None = None
        self._show_progress = show_progress
        self._loaded_source: tuple | None = None

    @property
    def search(self) -> SemanticSearch:
        """Lazy load semantic search and its embedding model."""
        if self._search is None:
            embedder = self._embedder or OpenAIEmbedder(api_key=self.api_key)
            search = SemanticSearch(
                embedder,
                batch_size=self.batch_size,
                n_neighbors=self.n_neighbors,
                show_progress=self._show_progress,
            )
            search.load_model()
            self._search = search
        return self._search

    @property
    def backend(self) -> CompletionBackend:
        """Lazy load completion backend."""
        if self._backend is None:
            self._backend = OpenAICompletion(api_key=self.api_key)
        return self._backend

    def load_document(
        self,
        path: Path | str,
        start_page: int = DEFAULT_START_PAGE,
        end_page: int | None = None,
    ) -> int:
        """Chunk a PDF and fit semantic search on it.

        Loading the same pages of an unchanged file again reuses the existing
        fit. A file rewritten in place is fitted again.

        Args:
            path: PDF file.
            start_page: First page to index.
            end_page: Last page to index. Defaults to the last page.

        Returns:
            Number of chunks indexed.
        """
        source = (*self._file_signature(path), start_page, end_page)
        if source == self._loaded_source and self.search.fitted:
            logger.debug(f"Reusing fit for {path}")
            return len(self.search.chunks)

        texts = pdf_to_text(path, start_page=start_page, end_page=end_page)
        chunks = text_to_chunks(texts, word_length=self.word_length, start_page=start_page)

        self._loaded_source = None
        self.search.fit(chunks, batch=self.batch_size, n_neighbors=self.n_neighbors)
        self._loaded_source = source

        logger.info(f"Loaded {path}: {len(texts)} pages, {len(chunks)} chunks")
        return len(chunks)

    @staticmethod
    def _file_signature(path: Path | str) -> tuple[str, int | None, int | None]:
        """Resolved path plus modification time and size, if the file exists."""
        resolved = Path(path).resolve()
        try:
            stat = resolved.stat()
        except FileNotFoundError:
            return str(resolved), None, None
        return str(resolved), stat.st_mtime_ns, stat.st_size

    def ask(
        self,
        question: str,
        url: str | None = None,
        file: Path | str | None = None,
        start_page: int = DEFAULT_START_PAGE,
        end_page: int | None = None,
    ) -> str:
        """Answer a question about a PDF given by URL or by file path.

        Args:
            question: The user's question.
            url: Location of the PDF. Mutually exclusive with ``file``.
            file: Local PDF path. Mutually exclusive with ``url``.
            start_page: First page to index.
            end_page: Last page to index.

        Returns:
            The generated answer.
        """
        if not self.api_key or not self.api_key.strip():
            raise ConfigurationError("Please enter your OpenAI API key")

        has_url = bool(url and url.strip())
        if not has_url and file is None:
            raise ConfigurationError("Both URL and PDF are empty. Provide at least one.")
        if has_url and file is not None:
            raise ConfigurationError(
                "Both URL and PDF are provided. Please provide only one (either URL or PDF)."
            )

        if has_url:
            file = download_pdf(url.strip(), self.download_path)
            # The download path is reused, so its old fit is stale
            self._loaded_source = None
        self.load_document(file, start_page=start_page, end_page=end_page)

        if not question or not question.strip():
            raise EmptyQueryError("Question field is empty")

        return AnswerComposer(self.search, self.backend).answer(question)
