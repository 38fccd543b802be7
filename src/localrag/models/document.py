"""
Document models for the RAG pipeline.

These represent data at each stage:
  Raw document (loaded) → Chunk (split + indexed) → ScoredDocument (retrieved + scored)

Loaders and splitters work on LangChain Documents, because that is what the
vector stores consume. Chunk.from_document() turns one back into a typed
model once it comes out of the index.
"""

from typing import Any, Optional

from langchain_core.documents import Document
from pydantic import BaseModel, Field


class ChunkMetadata(BaseModel):
    """
    Metadata attached to every chunk.

    Travels with the chunk from splitting through indexing to the context
    block, so every retrieved chunk can be traced to its source document.
    """

    source: str = Field(description="Where this chunk came from (file path)")
    page: Optional[int] = Field(default=None, description="0-based page number if from a PDF")
    chunk_index: int = Field(default=0, description="Position of this chunk within its parent document")
    start_index: Optional[int] = Field(default=None, description="Character offset in the parent document")
    doc_id: str = Field(default="", description="Parent document identifier")
    chunk_id: str = Field(default="", description="Content-derived id used as the index key")
    seq: Optional[int] = Field(default=None, description="Insertion order in the vector index")


class Chunk(BaseModel):
    """
    A single chunk of text after splitting.

    Built from a Document read back out of the vector index. The vector
    itself stays in the store.
    """

    content: str = Field(description="The actual text content")
    metadata: ChunkMetadata

    @classmethod
    def from_document(cls, document: Document, default_index: int = 0) -> "Chunk":
        meta: dict[str, Any] = document.metadata or {}
        return cls(
            content=document.page_content,
            metadata=ChunkMetadata(
                source=str(meta.get("source", "")),
                page=meta.get("page"),
                chunk_index=meta.get("chunk_index", default_index),
                start_index=meta.get("start_index"),
                doc_id=str(meta.get("doc_id", "")),
                chunk_id=str(meta.get("chunk_id", "")),
                seq=meta.get("seq"),
            ),
        )


class ScoredDocument(BaseModel):
    """
    A chunk with a similarity score attached.

    This is what the retrieval stage returns. score is cosine similarity
    (higher = closer); rank is the position in the result list.
    """

    chunk: Chunk
    score: float = Field(default=0.0, description="Similarity to the query (higher = more relevant)")
    rank: int = Field(default=0, description="Position in the result list")
