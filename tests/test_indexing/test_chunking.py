"""Tests for chunking: pure text processing, no model runner."""

import pytest
from langchain_core.documents import Document

from localrag.config import ChunkingConfig
from localrag.exceptions import ConfigError
from localrag.indexing.chunking import OverlapTextSplitter, RecursiveChunker


def _long_text() -> str:
    sentences = [
        f"Sentence number {i} talks about retrieval and generation."
        for i in range(60)
    ]
    paragraphs = [" ".join(sentences[i:i + 6]) for i in range(0, 60, 6)]
    return "\n\n".join(paragraphs)


def test_recursive_chunker(sample_documents, chunking_config):
    """RecursiveChunker should split documents into chunks no longer than chunk_size."""
    chunker = RecursiveChunker(chunking_config)
    chunks = chunker.chunk(sample_documents)

    assert len(chunks) >= len(sample_documents)
    for chunk in chunks:
        assert chunk.page_content
        assert len(chunk.page_content) <= chunking_config.chunk_size


def test_recursive_chunker_preserves_metadata(sample_documents, chunking_config):
    chunks = RecursiveChunker(chunking_config).chunk(sample_documents)

    first = chunks[0]
    assert first.metadata["source"] == "docs/rag_intro.pdf"
    assert first.metadata["page"] == 0
    assert first.metadata["doc_id"] == "docs/rag_intro.pdf#page=0"
    assert first.metadata["chunk_index"] == 0
    assert first.metadata["start_index"] == 0


def test_chunk_size_bound_and_exact_overlap():
    splitter = OverlapTextSplitter(chunk_size=200, chunk_overlap=40)
    text = _long_text()
    chunks = splitter.create_documents([text])

    assert len(chunks) > 5
    for chunk in chunks:
        assert len(chunk.page_content) <= 200
        start = chunk.metadata["start_index"]
        assert text[start:start + len(chunk.page_content)] == chunk.page_content

    for prev, nxt in zip(chunks, chunks[1:]):
        assert nxt.metadata["start_index"] == prev.metadata["start_index"] + len(prev.page_content) - 40
        assert prev.page_content[-40:] == nxt.page_content[:40]


def test_chunks_cover_whole_text():
    splitter = OverlapTextSplitter(chunk_size=150, chunk_overlap=30)
    text = _long_text()
    chunks = splitter.split_text(text)

    rebuilt = chunks[0] + "".join(chunk[30:] for chunk in chunks[1:])
    assert rebuilt == text


def test_prefers_paragraph_break():
    text = "A" * 60 + "\n\n" + "B" * 20 + ". " + "C" * 100
    chunks = OverlapTextSplitter(chunk_size=100, chunk_overlap=10).split_text(text)
    assert chunks[0] == "A" * 60 + "\n\n"


def test_falls_back_to_sentence_end():
    text = "A" * 70 + ". " + "B" * 100
    chunks = OverlapTextSplitter(chunk_size=100, chunk_overlap=10).split_text(text)
    assert chunks[0] == "A" * 70 + ". "


def test_boundary_too_early_is_ignored():
    # The only space is too close to the window start to be worth cutting at
    text = "A" * 20 + " " + "B" * 200
    chunks = OverlapTextSplitter(chunk_size=100, chunk_overlap=10).split_text(text)
    assert len(chunks[0]) == 100


def test_hard_cut_without_boundaries():
    chunks = OverlapTextSplitter(chunk_size=100, chunk_overlap=10).split_text("x" * 250)
    assert [len(c) for c in chunks] == [100, 100, 70]


def test_short_text_single_chunk():
    chunks = OverlapTextSplitter(chunk_size=100, chunk_overlap=10).split_text("Short text.")
    assert chunks == ["Short text."]


def test_text_of_exactly_chunk_size():
    chunks = OverlapTextSplitter(chunk_size=100, chunk_overlap=10).split_text("y" * 100)
    assert chunks == ["y" * 100]


@pytest.mark.parametrize("text", ["", "   ", "\n\n\t"])
def test_empty_or_whitespace_produces_no_chunks(text):
    chunker = RecursiveChunker(ChunkingConfig(chunk_size=100, chunk_overlap=10))
    assert chunker.chunk([Document(page_content=text, metadata={"source": "empty.txt"})]) == []


def test_chunk_index_per_document():
    docs = [
        Document(page_content="z" * 250, metadata={"source": "a.txt"}),
        Document(page_content="w" * 250, metadata={"source": "b.txt"}),
    ]
    chunks = RecursiveChunker(ChunkingConfig(chunk_size=100, chunk_overlap=10)).chunk(docs)

    assert [c.metadata["chunk_index"] for c in chunks] == [0, 1, 2, 0, 1, 2]
    assert [c.metadata["source"] for c in chunks] == ["a.txt"] * 3 + ["b.txt"] * 3


def test_parent_metadata_not_shared():
    doc = Document(page_content="q" * 250, metadata={"source": "a.txt", "tags": ["x"]})
    chunks = RecursiveChunker(ChunkingConfig(chunk_size=100, chunk_overlap=10)).chunk([doc])

    chunks[0].metadata["tags"].append("y")
    assert doc.metadata["tags"] == ["x"]
    assert chunks[1].metadata["tags"] == ["x"]


def test_smaller_chunk_size_gives_more_chunks():
    docs = [Document(page_content="A " * 500, metadata={"source": "test.txt"})]

    small = RecursiveChunker(ChunkingConfig(chunk_size=100, chunk_overlap=20)).chunk(docs)
    large = RecursiveChunker(ChunkingConfig(chunk_size=400, chunk_overlap=20)).chunk(docs)

    assert len(small) > len(large)


@pytest.mark.parametrize("size,overlap", [(100, 100), (100, 150), (0, 0), (100, -1)])
def test_invalid_sizes_rejected_by_splitter(size, overlap):
    with pytest.raises(ConfigError):
        OverlapTextSplitter(chunk_size=size, chunk_overlap=overlap)
