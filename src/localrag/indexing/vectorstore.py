"""
Persistent vector index.

This is the final step of the indexing pipeline:

    Loader → Chunker → Embeddings → VectorIndex (this file)

VectorIndex owns one directory on disk. Inside it live the backend's own
files and an index_meta.json sidecar recording which embedding model and
dimension the vectors were built with, so a later run with a different
model fails loudly instead of returning nonsense.

Writes are idempotent. Every chunk gets a content-derived id (parent
doc_id + text), and upsert() only embeds chunks whose id is not already
in the index. Every new chunk also gets a "seq" number, its insertion
order, which the retriever uses to break similarity ties.

Backends (both compare vectors by cosine similarity):
    Chroma  Persists automatically. Collection created with hnsw:space=cosine.
            Reads and writes are split to the client's max batch size. Default.
    FAISS   Inner product over L2-normalised vectors, saved with
            save_local() after every upsert. Requires: pip install localrag[faiss]

Usage:
    index = VectorIndex(VectorStoreConfig(persist_directory="rag_index"), embeddings)
    result = index.upsert(chunks)
    hits = index.similarity_search("What is RAG?", k=4)
"""

import hashlib
import json
from pathlib import Path
from typing import Any

import structlog
from langchain_community.vectorstores.utils import filter_complex_metadata
from langchain_core.documents import Document

from localrag.config import VectorStoreConfig, VectorStoreType
from localrag.exceptions import ConfigError, EmbeddingError, RagError, StoreError
from localrag.indexing.embeddings import CheckedEmbeddings
from localrag.models.result import IndexingResult

logger = structlog.get_logger()

META_FILENAME = "index_meta.json"


def chunk_id_for(chunk: Document) -> str:
    """Deterministic id for a chunk: same parent and same text → same id."""
    parent = str(chunk.metadata.get("doc_id") or chunk.metadata.get("source", ""))
    digest = hashlib.sha256()
    digest.update(parent.encode("utf-8"))
    digest.update(b"\x00")
    digest.update(chunk.page_content.encode("utf-8"))
    return digest.hexdigest()


class VectorIndex:
    """On-disk vector index with idempotent upsert and cosine search."""

    def __init__(
        self,
        config: VectorStoreConfig,
        embeddings: CheckedEmbeddings,
        embedding_label: str = "",
    ):
        """
        Args:
            config: Backend type, directory and collection name.
            embeddings: The embedding boundary used for both chunks and queries.
            embedding_label: provider/model string stored in the index metadata.
        """
        self.config = config
        self.directory = Path(config.persist_directory)
        self.embeddings = embeddings
        self.embedding_label = embedding_label
        self.metadata: dict[str, Any] = {}
        self._backend = _make_backend(config, self.directory, embeddings)
        self._opened = False

    @property
    def meta_path(self) -> Path:
        return self.directory / META_FILENAME

    def open(self) -> "VectorIndex":
        """
        Create the directory if needed, load and validate metadata, open the backend.

        Raises:
            EmbeddingError: If the index was built with a different embedding
                model or dimension.
            ConfigError: If the index was built with a different backend.
        """
        self.directory.mkdir(parents=True, exist_ok=True)
        self.metadata = self._read_metadata()
        self._validate_metadata()
        self._backend.open()
        self._opened = True

        logger.info(
            "vector_index_opened",
            directory=str(self.directory),
            store_type=self.config.store_type.value,
            vector_count=self.metadata.get("vector_count", 0),
        )
        return self

    def reset(self) -> None:
        """Delete every vector and the metadata sidecar (full rebuild)."""
        logger.warning("vector_index_reset", directory=str(self.directory))

        self.directory.mkdir(parents=True, exist_ok=True)
        self._backend.open()
        self._backend.reset()
        if self.meta_path.exists():
            self.meta_path.unlink()

        self.metadata = {}
        self.embeddings.reset_dimension()
        self._opened = True

    def count(self) -> int:
        self._ensure_open()
        return self._backend.count()

    def upsert(self, chunks: list[Document]) -> IndexingResult:
        """
        Embed and store chunks that are not in the index yet.

        Chunks repeated within the batch or already present are skipped, so
        re-running on an unchanged corpus adds nothing.

        Raises:
            EmbeddingError: If the embedding backend fails or returns bad vectors.
            StoreError: If the backend rejects the lookup or the write.
        """
        self._ensure_open()

        batch: dict[str, Document] = {}
        for chunk in chunks:
            batch.setdefault(chunk_id_for(chunk), chunk)

        existing = self._store_call("lookup", self._backend.existing_ids, list(batch))
        new_ids = [chunk_id for chunk_id in batch if chunk_id not in existing]

        if new_ids:
            next_seq = int(self.metadata.get("next_seq", 0))
            documents = []
            for offset, chunk_id in enumerate(new_ids):
                chunk = batch[chunk_id]
                metadata = dict(chunk.metadata, chunk_id=chunk_id, seq=next_seq + offset)
                documents.append(Document(page_content=chunk.page_content, metadata=metadata))

            # Vector stores only accept str/int/float/bool metadata values
            documents = filter_complex_metadata(documents)
            self._store_call("write", self._backend.add, documents, new_ids)
            self.metadata["next_seq"] = next_seq + len(new_ids)

        total = self._backend.count()
        self._write_metadata(total)

        result = IndexingResult(
            added=len(new_ids),
            skipped=len(chunks) - len(new_ids),
            total=total,
            chunks=len(chunks),
        )

        logger.info(
            "vector_index_upserted",
            added=result.added,
            skipped=result.skipped,
            total=result.total,
        )

        return result

    def similarity_search(self, query: str, k: int) -> list[tuple[Document, float]]:
        """
        Return up to k (Document, cosine similarity) pairs, most similar first.

        Raises:
            EmbeddingError: If the query could not be embedded.
            StoreError: If the backend search fails.
        """
        self._ensure_open()
        if k <= 0:
            return []
        return self._store_call("search", self._backend.search, query, k)

    def get_stats(self) -> dict[str, Any]:
        self._ensure_open()
        return {
            "directory": str(self.directory),
            "store_type": self.config.store_type.value,
            "vector_count": self._backend.count(),
            "embedding_model": self.metadata.get("embedding_model", self.embedding_label),
            "embedding_dimension": self.embeddings.dimension,
        }

    # -----------------------------------------------------------------------
    # Metadata sidecar
    # -----------------------------------------------------------------------

    def _ensure_open(self) -> None:
        if not self._opened:
            self.open()

    def _store_call(self, action: str, fn, *args):
        """Run a backend operation, reporting store failures as StoreError."""
        try:
            return fn(*args)
        except RagError:
            raise
        except Exception as e:
            logger.error("vector_store_failed", action=action, error=str(e))
            raise StoreError(f"Vector store {action} failed: {e}") from e

    def _read_metadata(self) -> dict[str, Any]:
        if not self.meta_path.exists():
            return {}
        try:
            with open(self.meta_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigError(f"Unreadable index metadata {self.meta_path}: {e}") from e

    def _validate_metadata(self) -> None:
        stored_type = self.metadata.get("store_type")
        if stored_type and stored_type != self.config.store_type.value:
            raise ConfigError(
                f"Index at {self.directory} is a {stored_type} index, "
                f"but store_type={self.config.store_type.value} is configured."
            )

        stored_model = self.metadata.get("embedding_model")
        if stored_model and self.embedding_label and stored_model != self.embedding_label:
            raise EmbeddingError(
                f"Index at {self.directory} was built with {stored_model}, "
                f"but {self.embedding_label} is configured. Please rebuild the index."
            )

        stored_dim = self.metadata.get("embedding_dimension")
        if stored_dim:
            if self.embeddings.dimension and self.embeddings.dimension != stored_dim:
                raise EmbeddingError(
                    f"Dimension mismatch: index has dim={stored_dim}, "
                    f"configured embeddings have dim={self.embeddings.dimension}. "
                    f"Please rebuild the index."
                )
            self.embeddings.dimension = stored_dim

    def _write_metadata(self, vector_count: int) -> None:
        self.metadata.update(
            {
                "embedding_model": self.metadata.get("embedding_model") or self.embedding_label,
                "embedding_dimension": self.embeddings.dimension,
                "store_type": self.config.store_type.value,
                "distance": "cosine",
                "vector_count": vector_count,
            }
        )
        with open(self.meta_path, "w", encoding="utf-8") as f:
            json.dump(self.metadata, f, indent=2)


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------

def _make_backend(config: VectorStoreConfig, directory: Path, embeddings: CheckedEmbeddings):
    if config.store_type == VectorStoreType.CHROMA:
        return _ChromaBackend(directory, config.collection_name, embeddings)

    elif config.store_type == VectorStoreType.FAISS:
        return _FaissBackend(directory, embeddings)

    else:
        raise ConfigError(
            f"Unknown vector store type: '{config.store_type}'. "
            f"Supported: 'chroma', 'faiss'."
        )


class _ChromaBackend:
    """Chroma collection persisted under the index directory."""

    def __init__(self, directory: Path, collection_name: str, embeddings: CheckedEmbeddings):
        self._directory = directory
        self._collection_name = collection_name
        self._embeddings = embeddings
        self._store = None

    def open(self) -> None:
        if self._store is not None:
            return

        from langchain_chroma import Chroma

        self._store = Chroma(
            collection_name=self._collection_name,
            embedding_function=self._embeddings,
            persist_directory=str(self._directory),
            collection_metadata={"hnsw:space": "cosine"},
        )

    def batch_size(self) -> int:
        # The client rejects larger requests outright; langchain-chroma does not split them
        return self._store._client.get_max_batch_size()

    def existing_ids(self, ids: list[str]) -> set[str]:
        found: set[str] = set()
        size = self.batch_size()
        for start in range(0, len(ids), size):
            result = self._store.get(ids=ids[start:start + size], include=[])
            found.update(result["ids"])
        return found

    def add(self, documents: list[Document], ids: list[str]) -> None:
        size = self.batch_size()
        for start in range(0, len(ids), size):
            self._store.add_documents(documents[start:start + size], ids=ids[start:start + size])
            logger.debug("chroma_batch_added", start=start, size=len(ids[start:start + size]))

    def count(self) -> int:
        return len(self._store.get(include=[])["ids"])

    def search(self, query: str, k: int) -> list[tuple[Document, float]]:
        # Chroma returns cosine distance (0 = identical)
        return [
            (doc, 1.0 - distance)
            for doc, distance in self._store.similarity_search_with_score(query, k=k)
        ]

    def reset(self) -> None:
        self._store.delete_collection()
        self._store = None
        self.open()


class _FaissBackend:
    """LangChain FAISS store saved with save_local()/load_local()."""

    INDEX_FILES = ("index.faiss", "index.pkl")

    def __init__(self, directory: Path, embeddings: CheckedEmbeddings):
        self._directory = directory
        self._embeddings = embeddings
        self._store = None

    def _faiss_kwargs(self) -> dict[str, Any]:
        from langchain_community.vectorstores.utils import DistanceStrategy

        # Inner product of unit vectors is cosine similarity
        return {
            "distance_strategy": DistanceStrategy.MAX_INNER_PRODUCT,
            "normalize_L2": True,
        }

    def open(self) -> None:
        if self._store is not None:
            return
        if not (self._directory / self.INDEX_FILES[0]).exists():
            # Nothing on disk yet; the store is created on the first add()
            return

        from langchain_community.vectorstores import FAISS

        self._store = FAISS.load_local(
            str(self._directory),
            self._embeddings,
            allow_dangerous_deserialization=True,
            **self._faiss_kwargs(),
        )

    def existing_ids(self, ids: list[str]) -> set[str]:
        if self._store is None:
            return set()
        return set(ids) & set(self._store.index_to_docstore_id.values())

    def add(self, documents: list[Document], ids: list[str]) -> None:
        from langchain_community.vectorstores import FAISS

        if self._store is None:
            self._store = FAISS.from_documents(
                documents, self._embeddings, ids=ids, **self._faiss_kwargs()
            )
        else:
            self._store.add_documents(documents, ids=ids)

        self._store.save_local(str(self._directory))

    def count(self) -> int:
        if self._store is None:
            return 0
        return self._store.index.ntotal

    def search(self, query: str, k: int) -> list[tuple[Document, float]]:
        if self._store is None:
            return []
        return self._store.similarity_search_with_score(query, k=k)

    def reset(self) -> None:
        for name in self.INDEX_FILES:
            path = self._directory / name
            if path.exists():
                path.unlink()
        self._store = None
