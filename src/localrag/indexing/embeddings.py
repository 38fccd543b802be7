"""
Embedding model factory and the checked embedding boundary.

get_embedding_model() is the single place that maps provider strings to
LangChain embedding classes:

    "ollama"      → OllamaEmbeddings (local model runner, default)
    "openai"      → OpenAIEmbeddings (API-based)
    "huggingface" → HuggingFaceEmbeddings (local sentence-transformers)

CheckedEmbeddings wraps whichever model is used and is what the vector
index actually calls. It turns backend failures into EmbeddingError and
makes sure every vector has the same, expected dimension.

Usage:
    embeddings = CheckedEmbeddings(get_embedding_model(EmbeddingConfig()))
    vector = embeddings.embed_query("What is RAG?")
"""

from typing import Any, Callable, Optional

import structlog
from langchain_core.embeddings import Embeddings
from tenacity import Retrying, stop_after_attempt, wait_exponential

from localrag.config import EmbeddingConfig
from localrag.exceptions import ConfigError, EmbeddingError

logger = structlog.get_logger()


def get_embedding_model(config: EmbeddingConfig) -> Embeddings:
    """
    Factory that returns a LangChain embedding model based on config.

    Each provider has its own LangChain integration package. We import
    them lazily (inside the if-branch) so you only need the package for
    the provider you actually use.

    Args:
        config: EmbeddingConfig with provider, model_name, and optional model_kwargs.

    Returns:
        A LangChain Embeddings instance.

    Raises:
        ConfigError: If the provider is unknown or its package is missing.
    """
    provider = config.provider.lower()

    if provider == "ollama":
        from langchain_ollama import OllamaEmbeddings

        return OllamaEmbeddings(
            model=config.model_name,
            base_url=config.base_url,
            client_kwargs={"timeout": config.request_timeout},
            **config.model_kwargs,
        )

    elif provider == "openai":
        try:
            from langchain_openai import OpenAIEmbeddings
        except ImportError:
            raise ConfigError(
                "OpenAI embeddings require langchain-openai. "
                "Install with: pip install localrag[openai]"
            )

        return OpenAIEmbeddings(
            model=config.model_name,
            request_timeout=config.request_timeout,
            **config.model_kwargs,
        )

    elif provider == "huggingface":
        try:
            from langchain_huggingface import HuggingFaceEmbeddings
        except ImportError:
            raise ConfigError(
                "HuggingFace embeddings require langchain-huggingface. "
                "Install with: pip install localrag[huggingface]"
            )

        return HuggingFaceEmbeddings(
            model_name=config.model_name,
            model_kwargs=config.model_kwargs,
        )

    else:
        raise ConfigError(
            f"Unknown embedding provider: '{config.provider}'. "
            f"Supported: 'ollama', 'openai', 'huggingface'."
        )


class CheckedEmbeddings(Embeddings):
    """
    Embeddings wrapper that enforces a consistent vector dimension.

    The expected dimension comes from config, from the index metadata when
    an existing index is opened, or from the first vector seen. Any later
    vector of a different size raises EmbeddingError, as does an empty
    vector, a non-numeric one, or a batch with the wrong number of vectors.

    Backend calls can be retried with exponential backoff (max_retries > 0).
    Validation failures are never retried.
    """

    def __init__(
        self,
        inner: Embeddings,
        dimension: Optional[int] = None,
        max_retries: int = 0,
    ):
        self.inner = inner
        self.configured_dimension = dimension
        self.dimension = dimension
        self.max_retries = max_retries

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        vectors = self._call(self.inner.embed_documents, list(texts))

        if vectors is None or len(vectors) != len(texts):
            got = "none" if vectors is None else len(vectors)
            raise EmbeddingError(f"Expected {len(texts)} embeddings, got {got}")

        return [self._check(vector) for vector in vectors]

    def embed_query(self, text: str) -> list[float]:
        return self._check(self._call(self.inner.embed_query, text))

    def reset_dimension(self) -> None:
        """Forget a learned dimension (used when the index is rebuilt)."""
        self.dimension = self.configured_dimension

    def _call(self, fn: Callable[[Any], Any], arg: Any) -> Any:
        retrying = Retrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=0.5, max=10),
            before_sleep=lambda state: logger.warning(
                "embedding_retry",
                attempt=state.attempt_number,
                error=str(state.outcome.exception()),
            ),
            reraise=True,
        )
        try:
            return retrying(fn, arg)
        except Exception as e:
            logger.error("embedding_backend_failed", error=str(e), error_type=type(e).__name__)
            raise EmbeddingError(f"Embedding backend failed: {e}") from e

    def _check(self, vector: Any) -> list[float]:
        if vector is None:
            raise EmbeddingError("Empty embedding returned by backend")

        try:
            values = [float(x) for x in vector]
        except (TypeError, ValueError) as e:
            raise EmbeddingError(f"Malformed embedding returned by backend: {e}") from e

        if not values:
            raise EmbeddingError("Empty embedding returned by backend")

        if self.dimension is None:
            self.dimension = len(values)
            logger.info("embedding_dimension_detected", dimension=self.dimension)
        elif len(values) != self.dimension:
            raise EmbeddingError(
                f"Embedding dimension mismatch: expected {self.dimension}, "
                f"got {len(values)}"
            )

        return values
