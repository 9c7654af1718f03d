"""Prompt composition, completion backends and question answering."""

from .answer import AnswerComposer, compose_prompt
from .completion import CompletionBackend, OpenAICompletion
from .engine import QuestionAnswerer

__all__ = [
    "AnswerComposer",
    "compose_prompt",
    "CompletionBackend",
    "OpenAICompletion",
    "QuestionAnswerer",
]
