"""Tests for document models: pure Pydantic, no model runner."""

from langchain_core.documents import Document

from localrag.models.document import Chunk, ChunkMetadata, ScoredDocument


def test_chunk_metadata_defaults():
    meta = ChunkMetadata(source="test.pdf")
    assert meta.source == "test.pdf"
    assert meta.page is None
    assert meta.chunk_index == 0
    assert meta.start_index is None
    assert meta.doc_id == ""
    assert meta.chunk_id == ""
    assert meta.seq is None


def test_chunk_creation():
    chunk = Chunk(
        content="Hello world",
        metadata=ChunkMetadata(source="test.pdf", page=1, chunk_index=3),
    )
    assert chunk.content == "Hello world"
    assert chunk.metadata.page == 1
    assert set(Chunk.model_fields) == {"content", "metadata"}


def test_chunk_from_document():
    document = Document(
        page_content="Paris is the capital.",
        metadata={
            "source": "docs/france.pdf",
            "page": 2,
            "chunk_index": 1,
            "start_index": 680,
            "doc_id": "docs/france.pdf#page=2",
            "chunk_id": "abc123",
            "seq": 7,
        },
    )
    chunk = Chunk.from_document(document)

    assert chunk.content == "Paris is the capital."
    assert chunk.metadata.source == "docs/france.pdf"
    assert chunk.metadata.page == 2
    assert chunk.metadata.chunk_index == 1
    assert chunk.metadata.start_index == 680
    assert chunk.metadata.doc_id == "docs/france.pdf#page=2"
    assert chunk.metadata.chunk_id == "abc123"
    assert chunk.metadata.seq == 7


def test_chunk_from_document_missing_metadata():
    chunk = Chunk.from_document(Document(page_content="bare"), default_index=5)
    assert chunk.metadata.source == ""
    assert chunk.metadata.page is None
    assert chunk.metadata.chunk_index == 5


def test_scored_document():
    chunk = Chunk(content="RAG", metadata=ChunkMetadata(source="doc.pdf"))
    doc = ScoredDocument(chunk=chunk, score=0.85, rank=0)
    assert doc.score == 0.85
    assert doc.rank == 0
    assert doc.chunk.content == "RAG"
