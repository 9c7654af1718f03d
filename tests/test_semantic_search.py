"""Tests for semantic search."""

import threading

import pytest

from docqa.errors import (
    ConcurrentFitError,
    ConfigurationError,
    DimensionMismatchError,
    EmptyCorpusError,
    NotFittedError,
    NotInitializedError,
    UpstreamError,
)
from docqa.semantic.chunker import Chunk
from docqa.semantic.semantic_search import SemanticSearch


class FakeEmbedder:
    """Deterministic embedder: looks vectors up by text, else uses word count."""

    def __init__(self, vectors=None, fail_on_call=None):
        self.vectors = vectors or {}
        self.fail_on_call = fail_on_call
        self.initialized = False
        self.calls = []

    def initialize(self):
        self.initialized = True

    def embed(self, texts):
        self.calls.append(list(texts))
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise RuntimeError("provider unavailable")
        return [list(self.vectors.get(t, [float(len(t.split())), 0.0])) for t in texts]


@pytest.fixture
def chunks():
    """Five chunks whose embeddings sit at distances [3, 1, 4, 1, 5] from the origin."""
    return [Chunk(page_number=i + 1, text=f"chunk {i}") for i in range(5)]


@pytest.fixture
def embedder(chunks):
    """Embedder with fixed vectors for the chunks and the query."""
    points = [[3.0, 0.0], [0.0, 1.0], [4.0, 0.0], [-1.0, 0.0], [0.0, 5.0]]
    vectors = {c.render(): p for c, p in zip(chunks, points)}
    vectors["where is it?"] = [0.0, 0.0]
    return FakeEmbedder(vectors)


@pytest.fixture
def search(embedder):
    """Loaded but unfitted semantic search."""
    search = SemanticSearch(embedder, batch_size=2, n_neighbors=2)
    search.load_model()
    return search


class TestSemanticSearch:
    """Tests for SemanticSearch class."""

    def test_load_model(self, embedder):
        """Test that load_model initializes the provider once."""
        search = SemanticSearch(embedder)

        assert not search.ready
        search.load_model()
        search.load_model()

        assert search.ready
        assert embedder.initialized

    def test_query_returns_indices(self, search, chunks):
        """Test that the closest chunk indices come back, ties in corpus order."""
        search.fit(chunks)

        assert search.query("where is it?", return_data=False) == [1, 3]

    def test_query_returns_rendered_chunks(self, search, chunks):
        """Test that chunk strings carry their page citations."""
        search.fit(chunks)

        assert search.query("where is it?") == ['[2] "chunk 1"', '[4] "chunk 3"']

    def test_fit_batches_in_order(self, search, chunks, embedder):
        """Test that chunks are embedded in consecutive batches."""
        search.fit(chunks, batch=2)

        assert [len(call) for call in embedder.calls] == [2, 2, 1]
        assert [t for call in embedder.calls for t in call] == [c.render() for c in chunks]
        assert len(search.embeddings) == len(search.chunks) == 5

    def test_embeddings_aligned_with_corpus(self, search, chunks, embedder):
        """Test that each embedding belongs to the chunk at the same index."""
        search.fit(chunks, batch=3)

        for chunk, embedding in zip(search.chunks, search.embeddings):
            assert list(embedding) == embedder.vectors[chunk.render()]

    def test_neighbor_count_clamped(self, search, chunks):
        """Test that asking for more neighbours than chunks is clamped."""
        search.fit(chunks, n_neighbors=50)

        assert search.n_neighbors == 5
        assert search.query("where is it?", return_data=False) == [1, 3, 0, 2, 4]

    def test_clamped_fit_matches_exact_fit(self, embedder, chunks):
        """Test that k larger than the corpus behaves like k = corpus size."""
        clamped = SemanticSearch(embedder)
        clamped.load_model()
        clamped.fit(chunks, n_neighbors=99)

        exact = SemanticSearch(embedder)
        exact.load_model()
        exact.fit(chunks, n_neighbors=len(chunks))

        assert clamped.query("where is it?") == exact.query("where is it?")

    def test_query_before_fit(self, search):
        """Test that querying before fit raises NotFittedError."""
        assert not search.fitted
        with pytest.raises(NotFittedError):
            search.query("anything")

    def test_fit_before_load_model(self, embedder, chunks):
        """Test that the model must be loaded before fit."""
        search = SemanticSearch(embedder)

        with pytest.raises(NotInitializedError):
            search.fit(chunks)

    def test_query_before_load_model(self, embedder):
        """Test that the model must be loaded before query."""
        with pytest.raises(NotInitializedError):
            SemanticSearch(embedder).query("anything")

    def test_fit_empty_corpus(self, search, embedder):
        """Test that an empty corpus is rejected without creating state."""
        with pytest.raises(EmptyCorpusError):
            search.fit([])

        assert not search.fitted
        assert embedder.calls == []

    @pytest.mark.parametrize("kwargs", [{"batch": 0}, {"batch": -5}, {"n_neighbors": 0}])
    def test_fit_invalid_settings(self, search, chunks, kwargs):
        """Test that non-positive batch sizes and neighbour counts are rejected."""
        with pytest.raises(ConfigurationError):
            search.fit(chunks, **kwargs)

    def test_failed_fit_leaves_unfitted(self, chunks):
        """Test that a provider failure partway through discards partial work."""
        embedder = FakeEmbedder(fail_on_call=2)
        search = SemanticSearch(embedder, batch_size=2)
        search.load_model()

        with pytest.raises(UpstreamError):
            search.fit(chunks)

        assert not search.fitted

    def test_failed_refit_keeps_previous_state(self, search, chunks, embedder):
        """Test that a failed refit leaves the previous fit in place."""
        search.fit(chunks)
        embedder.fail_on_call = len(embedder.calls) + 1

        with pytest.raises(UpstreamError):
            search.fit([Chunk(page_number=1, text="replacement")])

        assert len(search.chunks) == 5
        embedder.fail_on_call = None
        assert search.query("where is it?", return_data=False) == [1, 3]

    def test_refit_replaces_corpus(self, search, chunks):
        """Test that a successful refit fully replaces the corpus."""
        search.fit(chunks)
        search.fit([Chunk(page_number=9, text="only one")])

        assert search.n_neighbors == 1
        assert search.query("where is it?") == ['[9] "only one"']

    def test_wrong_batch_length_from_provider(self, chunks):
        """Test that a provider returning too few vectors is an upstream error."""

        class ShortEmbedder(FakeEmbedder):
            def embed(self, texts):
                return super().embed(texts)[:-1]

        search = SemanticSearch(ShortEmbedder())
        search.load_model()

        with pytest.raises(UpstreamError):
            search.fit(chunks)
        assert not search.fitted

    def test_query_dimension_mismatch(self, search, chunks, embedder):
        """Test that a query vector of another dimension is rejected."""
        search.fit(chunks)
        embedder.vectors["odd"] = [1.0, 2.0, 3.0]

        with pytest.raises(DimensionMismatchError, match="embedding model changed"):
            search.query("odd")

    def test_dimension(self, search, chunks):
        """Test that the corpus dimension is reported after fit."""
        with pytest.raises(NotFittedError):
            search.dimension

        search.fit(chunks)

        assert search.dimension == 2

    def test_load_model_failure(self):
        """Test that a provider that fails to load raises UpstreamError."""

        class BrokenEmbedder(FakeEmbedder):
            def initialize(self):
                raise OSError("model files missing")

        search = SemanticSearch(BrokenEmbedder())

        with pytest.raises(UpstreamError):
            search.load_model()
        assert not search.ready

    def test_concurrent_fit_refused(self, chunks):
        """Test that a second fit during a running fit is refused."""
        started = threading.Event()
        release = threading.Event()

        class SlowEmbedder(FakeEmbedder):
            def embed(self, texts):
                started.set()
                release.wait(timeout=5)
                return super().embed(texts)

        search = SemanticSearch(SlowEmbedder())
        search.load_model()

        worker = threading.Thread(target=search.fit, args=(chunks,))
        worker.start()
        try:
            assert started.wait(timeout=5)
            with pytest.raises(ConcurrentFitError):
                search.fit(chunks)
        finally:
            release.set()
            worker.join(timeout=5)

        assert search.fitted

    def test_show_progress(self, embedder, chunks):
        """Test that fitting with a progress bar gives the same result."""
        search = SemanticSearch(embedder, batch_size=2, n_neighbors=2, show_progress=True)
        search.load_model()
        search.fit(chunks)

        assert search.query("where is it?", return_data=False) == [1, 3]
