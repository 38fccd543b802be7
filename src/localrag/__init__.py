"""
localrag: retrieval-augmented question answering over a local document folder.

    from localrag import SimpleRAG

    rag = SimpleRAG()
    rag.build_index("docs/")
    print(rag.query("What is RAG?").answer)
"""

__version__ = "0.1.0"

from localrag.config import (
    ChunkingConfig,
    EmbeddingConfig,
    GenerationConfig,
    LLMConfig,
    LLMProvider,
    RagConfig,
    RetrieverConfig,
    VectorStoreConfig,
    VectorStoreType,
)
from localrag.exceptions import (
    ConfigError,
    EmbeddingError,
    GenerationError,
    LoadError,
    RagError,
    StoreError,
)
from localrag.session import ChatSession
from localrag.techniques.simple import SimpleRAG

__all__ = [
    "SimpleRAG",
    "ChatSession",
    # Config
    "RagConfig",
    "LLMConfig",
    "LLMProvider",
    "EmbeddingConfig",
    "ChunkingConfig",
    "RetrieverConfig",
    "GenerationConfig",
    "VectorStoreConfig",
    "VectorStoreType",
    # Errors
    "RagError",
    "LoadError",
    "ConfigError",
    "EmbeddingError",
    "GenerationError",
    "StoreError",
]
