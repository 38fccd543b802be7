from .simple import SimpleRAG

__all__ = ["SimpleRAG"]
