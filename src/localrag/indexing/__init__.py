"""
Indexing stage: load → chunk → embed → store.

Import from here:
    from localrag.indexing import DirectoryLoader, RecursiveChunker, VectorIndex
"""

from .chunking import OverlapTextSplitter, RecursiveChunker
from .embeddings import CheckedEmbeddings, get_embedding_model
from .loaders import DirectoryLoader
from .vectorstore import VectorIndex, chunk_id_for

__all__ = [
    "DirectoryLoader",
    "OverlapTextSplitter",
    "RecursiveChunker",
    "CheckedEmbeddings",
    "get_embedding_model",
    "VectorIndex",
    "chunk_id_for",
]
