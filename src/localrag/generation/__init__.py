from .generate import ContextGenerator, build_context_block, build_prompt

__all__ = ["ContextGenerator", "build_context_block", "build_prompt"]
