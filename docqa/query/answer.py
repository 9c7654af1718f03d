"""Retrieval-augmented prompt assembly."""

import logging
from typing import Sequence

from ..errors import DocQAError, EmptyQueryError, UpstreamError
from ..semantic.semantic_search import SemanticSearch
from .completion import CompletionBackend

logger = logging.getLogger(__name__)

PROMPT_PREAMBLE = (
    "You are answering a question about a PDF document. "
    "Use only the numbered search results below.\n\n"
)

SEARCH_RESULTS_HEADING = "search results:\n\n"

INSTRUCTIONS = (
    "Instructions: Compose a comprehensive reply to the query using the search results given. "
    "Cite each reference using [ Page Number] notation (every result has this number at the beginning). "
    "Citation should be done at the end of each sentence. If the search results mention multiple subjects "
    "with the same name, create separate answers for each. Only include information found in the results and "
    "don't add any additional information content. If the text does not relate to the query, simply state "
    "'Text Not Found in PDF'. Ignore outlier search results which have nothing to do with the question. "
    "Only answer what is asked. The answer should be short and concise. Answer step-by-step. \n\n"
)


def compose_prompt(top_chunks: Sequence[str], question: str) -> str:
    """Build the prompt sent to the completion backend.

    Args:
        top_chunks: Rendered chunks, best match first. Each already carries
            its ``[page]`` citation.
        question: The user's question.

    Returns:
        The full prompt, ending with the question.
    """
    if not question or not question.strip():
        raise EmptyQueryError("Question field is empty")

    parts = [PROMPT_PREAMBLE, SEARCH_RESULTS_HEADING]
    for chunk in top_chunks:
        parts.append(chunk + "\n\n")
    parts.append(INSTRUCTIONS)
    parts.append(f"Query: {question}\nAnswer: ")

    return "".join(parts)


class AnswerComposer:
    """Answers questions from a fitted SemanticSearch and a completion backend."""

    def __init__(self, search: SemanticSearch, backend: CompletionBackend):
        self.search = search
        self.backend = backend

    def answer(self, question: str) -> str:
        """Retrieve the top chunks for a question and generate an answer.

        Args:
            question: The user's question.

        Returns:
            The backend's answer text.
        """
        if not question or not question.strip():
            raise EmptyQueryError("Question field is empty")

        top_chunks = self.search.query(question, return_data=True)
        prompt = compose_prompt(top_chunks, question)
        logger.debug(f"Composed prompt from {len(top_chunks)} chunks ({len(prompt)} chars)")

        try:
            return self.backend.complete(prompt)
        except DocQAError:
            raise
        except Exception as e:
            logger.error(f"Error from completion backend: {e}")
            raise UpstreamError(f"Completion backend failed: {e}") from e
