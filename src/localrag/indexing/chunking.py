"""
Document chunking.

Takes loaded Documents and splits them into overlapping character windows
for embedding.

OverlapTextSplitter is a LangChain TextSplitter, so it plugs into anything
that accepts one. Unlike RecursiveCharacterTextSplitter, which merges
pieces and only approximates the overlap, it slides a fixed window:

    - every chunk is at most chunk_size characters
    - the next chunk starts exactly chunk_overlap characters before the
      previous one ended, so neighbours share exactly chunk_overlap characters
    - inside a window the cut moves back to the last paragraph break, then
      sentence end, then newline, then space, and only falls back to a
      hard character cut when none of those is far enough into the window

Usage:
    chunker = RecursiveChunker(ChunkingConfig(chunk_size=800, chunk_overlap=120))
    chunks = chunker.chunk(documents)
"""

import copy
from typing import Any, Iterable, Optional

import structlog
from langchain_core.documents import Document
from langchain_text_splitters import TextSplitter

from localrag.base.indexer import BaseChunker
from localrag.config import ChunkingConfig, check_chunk_sizes

logger = structlog.get_logger()

# Boundary classes, tried in order. Sentence ends are one class: the last
# one in the window wins regardless of punctuation.
BOUNDARIES: tuple[tuple[str, ...], ...] = (
    ("\n\n",),
    (". ", "! ", "? ", ".\n", "!\n", "?\n"),
    ("\n",),
    (" ",),
)


class OverlapTextSplitter(TextSplitter):
    """Fixed-overlap character splitter that prefers natural boundaries."""

    def __init__(self, chunk_size: int = 800, chunk_overlap: int = 120, **kwargs: Any):
        check_chunk_sizes(chunk_size, chunk_overlap)
        kwargs.setdefault("add_start_index", True)
        # Stripping would break the exact-overlap guarantee
        kwargs["strip_whitespace"] = False
        super().__init__(chunk_size=chunk_size, chunk_overlap=chunk_overlap, **kwargs)

    def split_text(self, text: str) -> list[str]:
        return [text[start:end] for start, end in self.windows(text)]

    def windows(self, text: str) -> list[tuple[int, int]]:
        """
        Return (start, end) offsets of each chunk of text.

        Empty or whitespace-only text yields no windows. Text that fits in
        one chunk yields exactly one.
        """
        if not text or not text.strip():
            return []

        length = len(text)
        if length <= self._chunk_size:
            return [(0, length)]

        windows = []
        start = 0
        while True:
            end = min(start + self._chunk_size, length)
            if end < length:
                end = self._find_cut(text, start, end)
            windows.append((start, end))
            if end >= length:
                break
            start = end - self._chunk_overlap

        return windows

    def _find_cut(self, text: str, start: int, end: int) -> int:
        """
        Move the end of a window back to the best natural boundary.

        A cut is only accepted if the chunk keeps at least chunk_overlap
        characters plus half of the remaining window, so every step
        advances and chunks don't degenerate into slivers.
        """
        window = text[start:end]
        min_length = self._chunk_overlap + max(1, (self._chunk_size - self._chunk_overlap) // 2)

        for separators in BOUNDARIES:
            cut = max(
                (window.rfind(sep) + len(sep) for sep in separators if sep in window),
                default=-1,
            )
            if cut >= min_length:
                return start + cut

        return end

    def create_documents(
        self, texts: list[str], metadatas: Optional[list[dict]] = None
    ) -> list[Document]:
        """
        Split each text into Documents carrying the parent's metadata.

        Adds chunk_index (position within the parent) and, when
        add_start_index is set, the exact start_index of each window.
        """
        _metadatas = metadatas or [{}] * len(texts)
        documents = []

        for text, parent_metadata in zip(texts, _metadatas):
            for chunk_index, (start, end) in enumerate(self.windows(text)):
                metadata = copy.deepcopy(parent_metadata)
                metadata["chunk_index"] = chunk_index
                if self._add_start_index:
                    metadata["start_index"] = start
                documents.append(Document(page_content=text[start:end], metadata=metadata))

        return documents


class RecursiveChunker(BaseChunker):
    """
    Splits documents with OverlapTextSplitter.

    Metadata from the original document is preserved on each chunk, with
    chunk_index and start_index added so every chunk can be traced back to
    its position in the source.
    """

    def __init__(self, config: ChunkingConfig):
        super().__init__(config)
        self._splitter = OverlapTextSplitter(
            chunk_size=config.chunk_size,
            chunk_overlap=config.chunk_overlap,
        )

    def chunk(self, documents: Iterable[Document]) -> list[Document]:
        documents = list(documents)
        chunks = self._splitter.split_documents(documents)

        logger.info(
            "documents_chunked",
            documents=len(documents),
            chunks=len(chunks),
            chunk_size=self.config.chunk_size,
            chunk_overlap=self.config.chunk_overlap,
        )

        return chunks
