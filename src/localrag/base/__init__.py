"""
Abstract base classes defining the contract for each RAG pipeline stage.

Import from here:
    from localrag.base import BaseLoader, BaseChunker, BaseRetriever, BaseGenerator
"""

from .generator import BaseGenerator
from .indexer import BaseChunker, BaseLoader
from .retriever import BaseRetriever

__all__ = [
    "BaseLoader",
    "BaseChunker",
    "BaseRetriever",
    "BaseGenerator",
]
