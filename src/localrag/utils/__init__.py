"""Shared utilities."""

from .helpers import get_llm, replace_t_with_space

__all__ = ["get_llm", "replace_t_with_space"]
