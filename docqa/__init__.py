"""Question answering over PDF documents with semantic retrieval."""

__version__ = "0.1.0"
