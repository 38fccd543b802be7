from .search import SimilarityRetriever

__all__ = ["SimilarityRetriever"]
