"""
Abstract base class for answer generators.

The generator is the final stage: it takes retrieved chunks and the
question and produces an answer. Keeping it a separate component means
generation can be tested in isolation with canned retrieval results.
"""

from abc import ABC, abstractmethod

from localrag.models.result import GenerationResult, RetrievalResult


class BaseGenerator(ABC):
    """
    Contract for answer generators.

    Every generator receives a RetrievalResult and returns a GenerationResult.
    """

    @abstractmethod
    def generate(self, query: str, retrieval: RetrievalResult) -> GenerationResult:
        """
        Generate an answer from retrieved documents.

        Args:
            query: The original user question.
            retrieval: Chunks retrieved for the question.

        Returns:
            GenerationResult with the answer, sources, and metadata.

        Raises:
            GenerationError: If the model could not produce a completion.
        """
        ...
