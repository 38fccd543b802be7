"""
Pydantic models shared across localrag.

Import from here rather than reaching into submodules:
    from localrag.models import Chunk, RetrievalResult, GenerationResult
"""

from .document import Chunk, ChunkMetadata, ScoredDocument
from .result import (
    GenerationResult,
    IndexingResult,
    LoadReport,
    RAGResponse,
    RetrievalResult,
)

__all__ = [
    # Document
    "Chunk",
    "ChunkMetadata",
    "ScoredDocument",
    # Result
    "LoadReport",
    "IndexingResult",
    "RetrievalResult",
    "GenerationResult",
    "RAGResponse",
]
