"""
Simple RAG: the retrieve-then-generate pipeline over a local index.

This is the entry point for the localrag package:

    from localrag import SimpleRAG

    rag = SimpleRAG()
    rag.build_index("docs/")
    response = rag.query("What is RAG?")
    print(response.answer)

SimpleRAG wires the stages together from one RagConfig:
    1. Load documents from a directory (PDF, text, markdown)
    2. Split them into overlapping chunks
    3. Embed and upsert them into the persistent vector index
    4. Retrieve the most similar chunks for a question
    5. Generate an answer with the chat model

Indexing and querying are separate calls: the index lives on disk, so a
later process can answer questions without re-indexing.

Embeddings, chat model and index can be injected, which is how the tests
run the whole pipeline without a model runner.
"""

from pathlib import Path
from typing import Any, Optional, Union

import structlog
from langchain_core.embeddings import Embeddings
from langchain_core.language_models.chat_models import BaseChatModel

from localrag.config import RagConfig
from localrag.generation.generate import ContextGenerator
from localrag.indexing.chunking import RecursiveChunker
from localrag.indexing.embeddings import CheckedEmbeddings, get_embedding_model
from localrag.indexing.loaders import DirectoryLoader
from localrag.indexing.vectorstore import VectorIndex
from localrag.models.result import IndexingResult, RAGResponse
from localrag.retrieval.search import SimilarityRetriever
from localrag.session import ChatSession

logger = structlog.get_logger()


class SimpleRAG:
    """
    Basic RAG pipeline: load → chunk → embed → index, then retrieve → generate.

    No routing, no reflection, no conditional logic. Every component is
    built from the matching slice of RagConfig.
    """

    def __init__(
        self,
        config: Optional[RagConfig] = None,
        *,
        embeddings: Optional[Embeddings] = None,
        llm: Optional[BaseChatModel] = None,
        index: Optional[VectorIndex] = None,
    ):
        """
        Args:
            config: Full configuration. Defaults talk to a local Ollama runner.
            embeddings: Embedding model to use instead of the configured one.
            llm: Chat model to use instead of the configured one.
            index: Pre-built VectorIndex. If given, its embeddings are used.
        """
        self.config = config or RagConfig()
        self._llm = llm
        self._generator: Optional[ContextGenerator] = None

        if index is not None:
            self.index = index
        else:
            self.index = VectorIndex(
                self.config.vector_store,
                self._checked_embeddings(embeddings),
                embedding_label=self.config.embedding.label,
            )

        self._chunker = RecursiveChunker(self.config.chunking)
        self._retriever = SimilarityRetriever(self.index, self.config.retriever)

    def _checked_embeddings(self, embeddings: Optional[Embeddings]) -> CheckedEmbeddings:
        if isinstance(embeddings, CheckedEmbeddings):
            return embeddings
        if embeddings is None:
            embeddings = get_embedding_model(self.config.embedding)
        return CheckedEmbeddings(
            embeddings,
            dimension=self.config.embedding.dimension,
            max_retries=self.config.embedding.max_retries,
        )

    @property
    def generator(self) -> ContextGenerator:
        # Built on first use so indexing never needs a chat model
        if self._generator is None:
            self._generator = ContextGenerator(
                llm_config=self.config.llm,
                generation_config=self.config.generation,
                llm=self._llm,
            )
        return self._generator

    def build_index(self, directory: Union[str, Path], rebuild: bool = False) -> IndexingResult:
        """
        Load every supported file in a directory and upsert its chunks.

        Running it again on an unchanged directory adds nothing. New or
        edited files only add their new chunks.

        Args:
            directory: Folder with .pdf, .txt and .md files (not recursive).
            rebuild: Wipe the existing index first.

        Returns:
            IndexingResult with chunk counts and the loader's LoadReport.

        Raises:
            LoadError: If the directory does not exist.
            EmbeddingError: If the embedding backend fails.
        """
        loader = DirectoryLoader()
        documents = loader.load(directory)

        if rebuild:
            self.index.reset()

        chunks = self._chunker.chunk(documents)
        result = self.index.upsert(chunks)
        result.load_report = loader.report

        logger.info(
            "index_built",
            directory=str(directory),
            files=len(loader.report.loaded_files),
            failed=len(loader.report.failed_files),
            chunks=result.chunks,
            added=result.added,
            total=result.total,
        )

        return result

    def query(self, question: str, k: Optional[int] = None) -> RAGResponse:
        """
        Answer one question from the index.

        Args:
            question: The user's question.
            k: Number of chunks to retrieve (None = RetrieverConfig.k).

        Returns:
            RAGResponse with the answer, retrieval and generation details.

        Raises:
            ConfigError: If k is not a positive integer.
            EmbeddingError: If the question could not be embedded.
            GenerationError: If the chat model failed.
        """
        return self.session(k=k).ask(question)

    def session(self, k: Optional[int] = None, show_sources: bool = True) -> ChatSession:
        """A ChatSession sharing this pipeline's retriever and generator."""
        return ChatSession(self._retriever, self.generator, k=k, show_sources=show_sources)

    def stats(self) -> dict[str, Any]:
        """Index directory, backend, vector count and embedding model/dimension."""
        return self.index.get_stats()
