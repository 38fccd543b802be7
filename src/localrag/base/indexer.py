"""
Abstract base classes for document loading and chunking.

Loading and chunking are separate steps so either can be swapped on its own:
    loader = DirectoryLoader()
    chunker = RecursiveChunker(config)
    chunks = chunker.chunk(loader.load("docs/"))
"""

from abc import ABC, abstractmethod

from langchain_core.documents import Document

from localrag.config import ChunkingConfig


class BaseLoader(ABC):
    """
    Contract for document loaders.

    A loader takes a source (a directory, a file) and returns a list of
    LangChain Document objects, one per page or per file.

    The loader does NOT chunk. It just gets raw content into memory.
    """

    @abstractmethod
    def load(self, source: str) -> list[Document]:
        """
        Load documents from a source.

        Args:
            source: Path the loader understands.

        Returns:
            List of Document objects with page_content and metadata populated.
            Every Document carries "source" and "doc_id" metadata.
        """
        ...


class BaseChunker(ABC):
    """
    Contract for document chunkers.

    A chunker takes loaded Documents and splits them into smaller chunks
    suitable for embedding. Every chunker receives a ChunkingConfig so the
    caller controls chunk_size and chunk_overlap.
    """

    def __init__(self, config: ChunkingConfig):
        self.config = config

    @abstractmethod
    def chunk(self, documents: list[Document]) -> list[Document]:
        """
        Split documents into chunks.

        Args:
            documents: Raw documents from a loader.

        Returns:
            List of smaller Document objects, in input order, each with the
            parent's metadata plus chunk_index and start_index.
        """
        ...
