"""Page-aware word chunking for semantic indexing."""

import logging
from dataclasses import dataclass
from typing import Sequence

from ..config import CHUNK_WORD_LENGTH, DEFAULT_START_PAGE
from ..errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Chunk:
    """A fixed-size run of words tagged with the page it came from."""

    page_number: int
    text: str

    def render(self) -> str:
        """Render the chunk with its page citation, e.g. '[3] "some text"'."""
        return f'[{self.page_number}] "{self.text}"'

    def __str__(self) -> str:
        return self.render()


class PageChunker:
    """Splits page-indexed text into chunks of a fixed number of words.

    A short trailing chunk on any page but the last is carried onto the
    front of the next page instead of being emitted, so only the very
    last chunk of a document can be shorter than ``word_length``.
    """

    def __init__(
        self,
        word_length: int = CHUNK_WORD_LENGTH,
        start_page: int = DEFAULT_START_PAGE,
    ):
        """Initialize the chunker.

        Args:
            word_length: Number of words per chunk.
            start_page: Page number assigned to the first page of input.
        """
        if word_length <= 0:
            raise ConfigurationError(f"word_length must be positive, got {word_length}")
        if start_page < 1:
            raise ConfigurationError(f"start_page must be at least 1, got {start_page}")

        self.word_length = word_length
        self.start_page = start_page

    def chunk(self, pages: Sequence[str]) -> list[Chunk]:
        """Split pages into chunks.

        Args:
            pages: Page texts in document order.

        Returns:
            List of Chunk objects in document order.
        """
        # Any run of whitespace is one delimiter; no empty tokens
        page_words = [page.split() for page in pages]
        last_idx = len(page_words) - 1
        chunks = []

        for idx, words in enumerate(page_words):
            page_number = idx + self.start_page

            for start in range(0, len(words), self.word_length):
                window = words[start : start + self.word_length]

                if len(window) < self.word_length and idx != last_idx:
                    page_words[idx + 1] = window + page_words[idx + 1]
                    continue

                chunks.append(Chunk(page_number=page_number, text=" ".join(window).strip()))

        logger.debug(f"Split {len(pages)} pages into {len(chunks)} chunks")
        return chunks


def text_to_chunks(
    texts: Sequence[str],
    word_length: int = CHUNK_WORD_LENGTH,
    start_page: int = DEFAULT_START_PAGE,
) -> list[Chunk]:
    """Chunk page texts with a throwaway PageChunker.

    Args:
        texts: Page texts in document order.
        word_length: Number of words per chunk.
        start_page: Page number of the first text.

    Returns:
        List of chunks.
    """
    return PageChunker(word_length=word_length, start_page=start_page).chunk(texts)
