"""
Vector index retrieval.

SimilarityRetriever embeds the question with the same embeddings used at
indexing time and returns the k most similar chunks.

Ordering is fully deterministic: candidates are sorted by cosine similarity
(descending) and, on a tie, by insertion order (lower seq first), so two
identical chunks always come back in the order they were indexed.

Usage:
    from localrag.retrieval import SimilarityRetriever

    retriever = SimilarityRetriever(index, RetrieverConfig(k=4))
    result = retriever.retrieve("What is RAG?")
    # → RetrievalResult with up to 4 ScoredDocuments
"""

from typing import Optional

import structlog

from localrag.base.retriever import BaseRetriever
from localrag.config import RetrieverConfig, validate_top_k
from localrag.indexing.vectorstore import VectorIndex
from localrag.models.document import Chunk, ScoredDocument
from localrag.models.result import RetrievalResult

logger = structlog.get_logger()

# Scores are rounded before comparing so float noise between backends
# doesn't defeat the seq tie-break
SCORE_PRECISION = 6


class SimilarityRetriever(BaseRetriever):
    """
    Cosine similarity search over a VectorIndex.

    A pool of fetch_k candidates (at least k) is pulled from the index and
    re-sorted by (similarity, seq) before cutting down to k. When the
    lowest score in the pool equals the k-th score the pool is doubled
    until it no longer ends on that tie or covers the whole index.
    """

    def __init__(self, index: VectorIndex, config: Optional[RetrieverConfig] = None):
        self._index = index
        self._config = config or RetrieverConfig()

    def retrieve(self, query: str, k: Optional[int] = None) -> RetrievalResult:
        k = validate_top_k(self._config.k if k is None else k)

        if not query or not query.strip():
            return RetrievalResult(documents=[], query_used=query, strategy="similarity")

        count = self._index.count()
        if count == 0:
            logger.info("retrieval_empty_index")
            return RetrievalResult(documents=[], query_used=query, strategy="similarity")

        fetch_k = min(max(k, self._config.fetch_k), count)
        ordered = self._ranked_pool(query, fetch_k)

        # A tie at the k-th score may run past the pool edge, hiding earlier chunks
        while (
            fetch_k < count
            and len(ordered) == fetch_k
            and _rounded(ordered[-1]) == _rounded(ordered[k - 1])
        ):
            fetch_k = min(fetch_k * 2, count)
            logger.debug("retrieval_pool_widened", fetch_k=fetch_k)
            ordered = self._ranked_pool(query, fetch_k)

        documents = [
            ScoredDocument(
                chunk=Chunk.from_document(doc, default_index=rank),
                score=float(score),
                rank=rank,
            )
            for rank, (doc, score) in enumerate(ordered[:k])
        ]

        logger.debug(
            "chunks_retrieved",
            k=k,
            fetch_k=fetch_k,
            returned=len(documents),
            top_score=documents[0].score if documents else None,
        )

        return RetrievalResult(
            documents=documents,
            query_used=query,
            strategy="similarity",
            total_candidates=len(ordered),
        )

    def _ranked_pool(self, query: str, fetch_k: int) -> list:
        candidates = self._index.similarity_search(query, k=fetch_k)
        return sorted(
            candidates,
            key=lambda pair: (-_rounded(pair), _seq(pair[0].metadata.get("seq"))),
        )


def _rounded(pair) -> float:
    return round(pair[1], SCORE_PRECISION)


def _seq(value) -> float:
    # Chunks indexed without a seq sort after every numbered one
    if value is None:
        return float("inf")
    return float(value)
