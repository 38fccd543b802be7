"""
Error hierarchy for the localrag pipeline.

Every stage raises a subclass of RagError so callers can catch the whole
family at once (the CLI does) or pick out the one they care about (the
interactive session only recovers from EmbeddingError and GenerationError).

    LoadError        a source directory or file could not be read
    ConfigError      invalid chunking / retrieval / provider settings
    EmbeddingError   the embedding backend failed or returned bad vectors
    GenerationError  the generation backend failed or returned no text
    StoreError       the vector store rejected a read or write
"""

from typing import Optional


class RagError(Exception):
    """Base class for all localrag errors."""


class LoadError(RagError):
    """A document directory or file could not be loaded."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class ConfigError(RagError):
    """Invalid configuration. Fatal at startup."""


class EmbeddingError(RagError):
    """Embedding backend unreachable, or a vector of unexpected shape."""


class GenerationError(RagError):
    """Generation backend unreachable, or a malformed completion."""


class StoreError(RagError):
    """The vector store backend failed to read or write."""
