"""
Configuration for localrag.

Split into one config per concern so each stage only receives what it
needs. RagConfig bundles them all for convenience.

Usage:
    # Defaults: Ollama on localhost, Chroma index in ./rag_index
    config = RagConfig()

    # Override specific parts
    config = RagConfig(
        llm=LLMConfig(model_name="mistral:7b"),
        chunking=ChunkingConfig(chunk_size=500, chunk_overlap=50),
    )

    # From LOCALRAG_* environment variables (and a .env file, if present)
    config = RagConfig.from_env()

Validation that the rest of the pipeline depends on (chunk overlap smaller
than chunk size, positive k) raises ConfigError rather than a pydantic
ValidationError, so callers only have to handle one error type at startup.
"""

import os
from enum import Enum
from typing import Any, Mapping, Optional

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from localrag.exceptions import ConfigError

# Load .env from the working directory (or any parent) once at import time,
# so LOCALRAG_* variables are visible to RagConfig.from_env().
load_dotenv(find_dotenv(usecwd=True))

DEFAULT_OLLAMA_URL = "http://localhost:11434"


def validate_top_k(k: Any) -> int:
    """Return k if it is a positive integer, otherwise raise ConfigError."""
    # bool is an int subclass; True would silently mean k=1
    if isinstance(k, bool) or not isinstance(k, int) or k <= 0:
        raise ConfigError(f"k must be a positive integer, got {k!r}")
    return k


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class LLMProvider(str, Enum):
    """
    Supported generation backends.

    An enum because each provider needs a different LangChain chat model
    class, so the exact set we can instantiate has to be known.
    """

    OLLAMA = "ollama"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class VectorStoreType(str, Enum):
    """Supported vector index backends."""

    CHROMA = "chroma"
    FAISS = "faiss"


# ---------------------------------------------------------------------------
# Per-concern configs
# ---------------------------------------------------------------------------

class LLMConfig(BaseModel):
    """
    Generation model configuration.

    Used by: utils/helpers.py (get_llm), generation/generate.py

    The default talks to a model served by a local Ollama runner.
    """

    provider: LLMProvider = Field(
        default=LLMProvider.OLLAMA,
        description="Which generation backend to use",
    )
    model_name: str = Field(
        default="llama3.1:8b",
        description="Model identifier (e.g. 'llama3.1:8b', 'gpt-4o-mini')",
    )
    base_url: str = Field(
        default=DEFAULT_OLLAMA_URL,
        description="Base URL of the model runner (Ollama only)",
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=2.0,
        description="Sampling temperature. 0 = deterministic, higher = more creative",
    )
    max_tokens: int = Field(
        default=1024,
        gt=0,
        description="Maximum tokens in the completion",
    )
    request_timeout: float = Field(
        default=60.0,
        gt=0,
        description="Seconds to wait for a completion before giving up",
    )
    max_retries: int = Field(
        default=0,
        ge=0,
        description="Extra attempts for a failed completion (exponential backoff)",
    )


class EmbeddingConfig(BaseModel):
    """
    Embedding model configuration.

    Used by: indexing/embeddings.py

    Provider is an open string (not an enum): the factory in
    indexing/embeddings.py maps known provider strings to LangChain
    classes and raises ConfigError for unknown ones.

    Examples:
        EmbeddingConfig()                                               # Ollama, nomic-embed-text
        EmbeddingConfig(provider="huggingface", model_name="all-MiniLM-L6-v2")
        EmbeddingConfig(provider="openai", model_name="text-embedding-3-small")
    """

    provider: str = Field(
        default="ollama",
        description="Embedding provider: 'ollama', 'openai' or 'huggingface'",
    )
    model_name: str = Field(
        default="nomic-embed-text",
        description="Embedding model identifier",
    )
    base_url: str = Field(
        default=DEFAULT_OLLAMA_URL,
        description="Base URL of the model runner (Ollama only)",
    )
    dimension: Optional[int] = Field(
        default=None,
        gt=0,
        description="Expected vector size. None = learn it from the first vector",
    )
    request_timeout: float = Field(default=60.0, gt=0)
    max_retries: int = Field(
        default=0,
        ge=0,
        description="Extra attempts for a failed embedding call (exponential backoff)",
    )
    model_kwargs: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra kwargs passed to the embedding model constructor",
    )

    @property
    def label(self) -> str:
        """provider/model string recorded in the index metadata."""
        return f"{self.provider.lower()}/{self.model_name}"


class ChunkingConfig(BaseModel):
    """
    Chunk splitter configuration.

    Used by: indexing/chunking.py

    Sizes are in characters, not tokens, so no tokenizer is needed.
    Consecutive chunks of a document share exactly chunk_overlap characters.
    """

    chunk_size: int = Field(default=800, description="Maximum chunk size in characters")
    chunk_overlap: int = Field(default=120, description="Characters shared by neighbouring chunks")

    @model_validator(mode="after")
    def validate_overlap(self) -> "ChunkingConfig":
        """Overlap must be smaller than chunk size, otherwise chunks would never advance."""
        check_chunk_sizes(self.chunk_size, self.chunk_overlap)
        return self


def check_chunk_sizes(chunk_size: int, chunk_overlap: int) -> None:
    """Raise ConfigError unless 0 <= chunk_overlap < chunk_size."""
    if chunk_size <= 0:
        raise ConfigError(f"chunk_size must be positive, got {chunk_size}")
    if chunk_overlap < 0:
        raise ConfigError(f"chunk_overlap must not be negative, got {chunk_overlap}")
    if chunk_overlap >= chunk_size:
        raise ConfigError(
            f"chunk_overlap ({chunk_overlap}) must be less than "
            f"chunk_size ({chunk_size})"
        )


class RetrieverConfig(BaseModel):
    """
    Retrieval configuration.

    Used by: retrieval/search.py

    fetch_k is the candidate pool pulled from the index before the final
    ordering (similarity, then insertion order) cuts it down to k.
    """

    k: int = Field(default=4, description="Number of chunks to return")
    fetch_k: int = Field(
        default=20,
        gt=0,
        description="Number of candidates to fetch before the final ordering (>= k)",
    )

    @field_validator("k", mode="before")
    @classmethod
    def validate_k(cls, value: Any) -> int:
        if isinstance(value, str) and value.strip().lstrip("-").isdigit():
            value = int(value)
        return validate_top_k(value)

    @model_validator(mode="after")
    def validate_fetch_k(self) -> "RetrieverConfig":
        if self.fetch_k < self.k:
            self.fetch_k = self.k
        return self


class GenerationConfig(BaseModel):
    """
    Answer generator configuration.

    Used by: generation/generate.py
    """

    max_chars_per_chunk: int = Field(
        default=1200,
        gt=0,
        description="Each retrieved chunk is truncated to this many characters in the context block",
    )


class VectorStoreConfig(BaseModel):
    """
    Vector index configuration.

    Used by: indexing/vectorstore.py

    Both backends persist to persist_directory. Chroma writes on every
    upsert; FAISS is saved with save_local() after each upsert.
    """

    store_type: VectorStoreType = Field(
        default=VectorStoreType.CHROMA,
        description="Vector index backend",
    )
    persist_directory: str = Field(
        default="./rag_index",
        description="Directory holding the on-disk index (created if absent)",
    )
    collection_name: str = Field(
        default="localrag",
        description="Collection name (Chroma only)",
    )


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------

# LOCALRAG_* variable → (section, field)
ENV_VARS: dict[str, tuple[str, str]] = {
    "LOCALRAG_LLM_PROVIDER": ("llm", "provider"),
    "LOCALRAG_LLM_MODEL": ("llm", "model_name"),
    "LOCALRAG_TEMPERATURE": ("llm", "temperature"),
    "LOCALRAG_MAX_TOKENS": ("llm", "max_tokens"),
    "LOCALRAG_LLM_RETRIES": ("llm", "max_retries"),
    "LOCALRAG_EMBED_PROVIDER": ("embedding", "provider"),
    "LOCALRAG_EMBED_MODEL": ("embedding", "model_name"),
    "LOCALRAG_EMBED_DIMENSION": ("embedding", "dimension"),
    "LOCALRAG_EMBED_RETRIES": ("embedding", "max_retries"),
    "LOCALRAG_CHUNK_SIZE": ("chunking", "chunk_size"),
    "LOCALRAG_CHUNK_OVERLAP": ("chunking", "chunk_overlap"),
    "LOCALRAG_TOP_K": ("retriever", "k"),
    "LOCALRAG_FETCH_K": ("retriever", "fetch_k"),
    "LOCALRAG_CONTEXT_CHARS": ("generation", "max_chars_per_chunk"),
    "LOCALRAG_STORE": ("vector_store", "store_type"),
    "LOCALRAG_INDEX_DIR": ("vector_store", "persist_directory"),
    "LOCALRAG_COLLECTION": ("vector_store", "collection_name"),
}


class RagConfig(BaseModel):
    """
    Complete configuration.

    SimpleRAG receives this and passes slices to each stage:
        self._chunker = RecursiveChunker(config.chunking)
        self._retriever = SimilarityRetriever(index, config.retriever)
        self._generator = ContextGenerator(config.llm, config.generation)

    All sub-configs have defaults, so RagConfig() with no arguments talks
    to a local Ollama runner and keeps its index in ./rag_index.
    """

    llm: LLMConfig = Field(default_factory=LLMConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    retriever: RetrieverConfig = Field(default_factory=RetrieverConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    vector_store: VectorStoreConfig = Field(default_factory=VectorStoreConfig)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RagConfig":
        """
        Build a config from LOCALRAG_* environment variables.

        Unset variables keep their defaults. LOCALRAG_OLLAMA_URL and
        LOCALRAG_TIMEOUT apply to both the LLM and the embedding model.

        Raises:
            ConfigError: If any value fails validation.
        """
        env = os.environ if environ is None else environ
        sections: dict[str, dict[str, Any]] = {}

        for var, (section, field) in ENV_VARS.items():
            value = env.get(var)
            if value not in (None, ""):
                sections.setdefault(section, {})[field] = value

        for var, field in (("LOCALRAG_OLLAMA_URL", "base_url"), ("LOCALRAG_TIMEOUT", "request_timeout")):
            value = env.get(var)
            if value not in (None, ""):
                sections.setdefault("llm", {})[field] = value
                sections.setdefault("embedding", {})[field] = value

        try:
            return cls(**sections)
        except ValidationError as exc:
            raise ConfigError(f"Invalid configuration: {exc}") from exc
