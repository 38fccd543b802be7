"""
Shared test fixtures for the localrag test suite.

Provides reusable fixtures: sample documents, configs, a deterministic
keyword embedding model and a mock chat model. Nothing here talks to a
model runner.
"""

import os

# Chroma phones home unless told not to
os.environ.setdefault("ANONYMIZED_TELEMETRY", "False")

import re
import zlib
from unittest.mock import MagicMock

import pytest
import structlog
from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings
from langchain_core.messages import AIMessage

from localrag.config import (
    ChunkingConfig,
    LLMConfig,
    RagConfig,
    RetrieverConfig,
    VectorStoreConfig,
)
from localrag.indexing.embeddings import CheckedEmbeddings
from localrag.indexing.vectorstore import VectorIndex
from localrag.models.document import Chunk, ChunkMetadata, ScoredDocument
from localrag.models.result import RetrievalResult


class KeywordEmbeddings(Embeddings):
    """
    Bag-of-words embeddings: each word bumps one hashed dimension.

    Texts sharing words are close in cosine terms, identical texts are
    identical vectors. Dimension 0 is a constant bias so no vector is zero.
    """

    def __init__(self, dimension: int = 64):
        self.dimension = dimension
        self.document_calls = 0
        self.query_calls = 0
        self.embedded_texts: list[str] = []

    def _embed(self, text: str) -> list[float]:
        vector = [0.0] * self.dimension
        vector[0] = 0.1
        for word in re.findall(r"[a-z0-9]+", text.lower()):
            vector[1 + zlib.crc32(word.encode("utf-8")) % (self.dimension - 1)] += 1.0
        return vector

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.document_calls += 1
        self.embedded_texts.extend(texts)
        return [self._embed(text) for text in texts]

    def embed_query(self, text: str) -> list[float]:
        self.query_calls += 1
        return self._embed(text)


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo configure_logging() calls made by CLI tests."""
    yield
    structlog.reset_defaults()


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def llm_config():
    return LLMConfig(model_name="llama3.1:8b", temperature=0.0)


@pytest.fixture
def chunking_config():
    return ChunkingConfig(chunk_size=200, chunk_overlap=40)


@pytest.fixture
def retriever_config():
    return RetrieverConfig(k=4, fetch_k=20)


@pytest.fixture
def index_dir(tmp_path):
    return tmp_path / "index"


@pytest.fixture
def rag_config(index_dir):
    """Defaults, with the index kept in the test's tmp_path."""
    return RagConfig(vector_store=VectorStoreConfig(persist_directory=str(index_dir)))


# ---------------------------------------------------------------------------
# Embedding / index fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def keyword_embeddings():
    return KeywordEmbeddings()


@pytest.fixture
def checked_embeddings(keyword_embeddings):
    return CheckedEmbeddings(keyword_embeddings)


@pytest.fixture
def chroma_index(rag_config, checked_embeddings):
    """An empty Chroma-backed VectorIndex in tmp_path."""
    return VectorIndex(
        rag_config.vector_store,
        checked_embeddings,
        embedding_label="keyword/test",
    ).open()


# ---------------------------------------------------------------------------
# Sample data fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_documents():
    """Sample LangChain Documents, as a loader would produce them."""
    return [
        Document(
            page_content="RAG stands for Retrieval-Augmented Generation. It combines retrieval with LLM generation.",
            metadata={"source": "docs/rag_intro.pdf", "page": 0, "doc_id": "docs/rag_intro.pdf#page=0"},
        ),
        Document(
            page_content="Vector stores like FAISS and Chroma index document embeddings for fast similarity search.",
            metadata={"source": "docs/rag_intro.pdf", "page": 1, "doc_id": "docs/rag_intro.pdf#page=1"},
        ),
        Document(
            page_content="Ollama runs language models locally and serves them over HTTP.",
            metadata={"source": "docs/ollama.md", "doc_id": "docs/ollama.md"},
        ),
        Document(
            page_content="Bananas are a yellow fruit rich in potassium.",
            metadata={"source": "docs/fruit.txt", "doc_id": "docs/fruit.txt"},
        ),
    ]


@pytest.fixture
def sample_chunks():
    """Sample Chunk objects (our internal model)."""
    return [
        Chunk(content="RAG combines retrieval with generation.", metadata=ChunkMetadata(source="doc1.pdf", page=0, chunk_index=0, seq=0)),
        Chunk(content="FAISS provides fast similarity search.", metadata=ChunkMetadata(source="doc1.pdf", page=1, chunk_index=0, seq=1)),
        Chunk(content="Ollama serves models on localhost.", metadata=ChunkMetadata(source="notes.md", chunk_index=0, seq=2)),
    ]


@pytest.fixture
def sample_scored_documents(sample_chunks):
    return [
        ScoredDocument(chunk=sample_chunks[0], score=0.95, rank=0),
        ScoredDocument(chunk=sample_chunks[1], score=0.82, rank=1),
        ScoredDocument(chunk=sample_chunks[2], score=0.71, rank=2),
    ]


@pytest.fixture
def sample_retrieval_result(sample_scored_documents):
    """A sample RetrievalResult for testing generators."""
    return RetrievalResult(
        documents=sample_scored_documents,
        query_used="What is RAG?",
        strategy="similarity",
        total_candidates=10,
    )


@pytest.fixture
def docs_dir(tmp_path):
    """A document folder with two text files and one unsupported file."""
    directory = tmp_path / "docs"
    directory.mkdir()
    (directory / "france.txt").write_text("The capital of France is Paris.", encoding="utf-8")
    (directory / "fruit.md").write_text("Bananas are a yellow fruit rich in potassium.", encoding="utf-8")
    (directory / "image.png").write_bytes(b"\x89PNG\r\n")
    return directory


# ---------------------------------------------------------------------------
# Mock fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_llm():
    """A mock chat model that always answers "Paris"."""
    llm = MagicMock()
    llm.invoke.return_value = AIMessage(content="Paris")
    return llm
