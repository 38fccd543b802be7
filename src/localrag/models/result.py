"""
Result models for loading, indexing, retrieval and generation outputs.
"""

from typing import Optional

from pydantic import BaseModel, Field

from .document import ScoredDocument


# ---------------------------------------------------------------------------
# Indexing results
# ---------------------------------------------------------------------------

class LoadReport(BaseModel):
    """
    What the loader did with each entry of a directory.

    Failed files never abort a load, so this is where they show up.
    """

    directory: str = ""
    loaded_files: list[str] = Field(default_factory=list)
    skipped_files: list[str] = Field(default_factory=list, description="Unsupported extensions")
    failed_files: dict[str, str] = Field(default_factory=dict, description="Path → error message")
    documents: int = Field(default=0, description="Documents produced (PDF pages count separately)")


class IndexingResult(BaseModel):
    """Output of one build/update of the vector index."""

    added: int = Field(default=0, description="Chunks embedded and written in this run")
    skipped: int = Field(default=0, description="Chunks already present (or repeated in the batch)")
    total: int = Field(default=0, description="Vectors in the index after this run")
    chunks: int = Field(default=0, description="Chunks produced by the splitter")
    load_report: Optional[LoadReport] = None


# ---------------------------------------------------------------------------
# Retrieval results
# ---------------------------------------------------------------------------

class RetrievalResult(BaseModel):
    """
    Output of the retrieval stage.

    Bundles the retrieved documents with metadata about how retrieval was done.
    """

    documents: list[ScoredDocument] = Field(default_factory=list)
    query_used: str = Field(description="The query sent to the vector index")
    strategy: str = Field(default="similarity", description="Retrieval strategy used")
    total_candidates: int = Field(
        default=0,
        description="How many chunks were considered before cutting down to k",
    )


# ---------------------------------------------------------------------------
# Generation results
# ---------------------------------------------------------------------------

class GenerationResult(BaseModel):
    """
    Output of the generation stage.

    The answer plus what is needed to understand how it was produced.
    """

    answer: str = Field(description="The model's completion, verbatim")
    sources: list[str] = Field(
        default_factory=list,
        description="Source identifiers used in the context, in retrieval order",
    )
    model: str = Field(default="", description="Model that produced this answer")
    prompt: str = Field(default="", description="The exact prompt sent to the model")


class RAGResponse(BaseModel):
    """
    The complete response for one question.

    This is what SimpleRAG.query() and ChatSession.ask() return.
    """

    answer: str = Field(description="The generated answer")
    retrieval: Optional[RetrievalResult] = Field(
        default=None, description="Retrieval details (documents, scores, strategy)",
    )
    generation: Optional[GenerationResult] = Field(
        default=None, description="Generation details (model, sources, prompt)",
    )
    technique: str = Field(default="simple_rag")
