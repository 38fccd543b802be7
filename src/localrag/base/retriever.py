"""
Abstract base class for retrievers.

A retriever takes a query and returns the most relevant chunks from the
vector index, wrapped in a RetrievalResult so results are self-describing
(query used, strategy, candidate count).
"""

from abc import ABC, abstractmethod
from typing import Optional

from localrag.models.result import RetrievalResult


class BaseRetriever(ABC):
    """Contract for retrievers."""

    @abstractmethod
    def retrieve(self, query: str, k: Optional[int] = None) -> RetrievalResult:
        """
        Retrieve the k chunks most similar to the query.

        Args:
            query: Natural language question.
            k: Number of chunks to return (None = configured default).

        Returns:
            RetrievalResult with scored documents, best first.

        Raises:
            ConfigError: If k is not a positive integer.
            EmbeddingError: If the query could not be embedded.
        """
        ...
