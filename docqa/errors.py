"""Exceptions raised by the retrieval and question-answering pipeline."""


class DocQAError(Exception):
    """Base class for all docqa errors."""


class ConfigurationError(DocQAError, ValueError):
    """Invalid setting, argument combination or missing credential."""


class EmptyCorpusError(DocQAError):
    """Fit was called with no chunks."""


class NotFittedError(DocQAError):
    """A query was issued before a successful fit."""


class NotInitializedError(DocQAError):
    """The embedding model was used before it was loaded."""


class DimensionMismatchError(DocQAError):
    """Two vectors that must share a dimension do not."""


class EmptyQueryError(DocQAError):
    """The question is blank."""


class UpstreamError(DocQAError):
    """An embedding provider, completion backend or download failed."""


class ConcurrentFitError(DocQAError):
    """A fit is already running on the same instance."""
