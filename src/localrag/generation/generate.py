"""
Answer generation from retrieved context.

This is the final stage of the pipeline: take the question + retrieved
chunks and produce an answer grounded in them.

    1. build_context_block() renders the chunks, in retrieval order, as
       "[source] (page N)" tag lines followed by the chunk text, each
       truncated to max_chars_per_chunk so the prompt stays bounded.
    2. build_prompt() drops the block and the question into a fixed
       template that tells the model to answer only from the context.
    3. generate() makes one synchronous call to the chat model and
       returns its text verbatim as a GenerationResult.

Usage:
    from localrag.generation import ContextGenerator

    generator = ContextGenerator(llm_config=LLMConfig())
    result = generator.generate("What is RAG?", retrieval_result)
    print(result.answer)
"""

from typing import Any, Optional

import structlog
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.prompts import PromptTemplate

from localrag.base.generator import BaseGenerator
from localrag.config import GenerationConfig, LLMConfig
from localrag.exceptions import GenerationError
from localrag.models.document import ScoredDocument
from localrag.models.result import GenerationResult, RetrievalResult
from localrag.utils.helpers import get_llm

logger = structlog.get_logger()

PROMPT_TEMPLATE = (
    "You are a helpful assistant. Answer the question using only the context\n"
    "below. If the context does not contain the answer, say you don't know.\n"
    "\n"
    "CONTEXT:\n"
    "{context}\n"
    "\n"
    "QUESTION:\n"
    "{question}\n"
    "\n"
    "ANSWER:"
)

RAG_PROMPT = PromptTemplate(
    input_variables=["context", "question"],
    template=PROMPT_TEMPLATE,
)


def source_tag(doc: ScoredDocument) -> str:
    """"[path]" or "[path] (page N)" with N counted from 1."""
    meta = doc.chunk.metadata
    tag = f"[{meta.source}]"
    if meta.page is not None:
        tag += f" (page {meta.page + 1})"
    return tag


def build_context_block(documents: list[ScoredDocument], max_chars_per_chunk: int = 1200) -> str:
    """
    Render retrieved chunks as the CONTEXT section of the prompt.

    Each entry is a source tag line and the chunk text, stripped and cut
    to max_chars_per_chunk. Entries are separated by one blank line. No
    documents → empty string.
    """
    entries = []
    for doc in documents:
        text = doc.chunk.content.strip()[:max_chars_per_chunk]
        entries.append(f"{source_tag(doc)}\n{text}")
    return "\n\n".join(entries)


def build_prompt(context: str, question: str) -> str:
    return RAG_PROMPT.format(context=context, question=question)


class ContextGenerator(BaseGenerator):
    """
    Context + question → answer, with one chat model call.

    The completion is returned as-is: no post-processing, no citation
    parsing. Sources in the result come from the retrieval, not from the
    model's text.

    If the model is unreachable or answers with something that has no text
    content, GenerationError is raised. With LLMConfig.max_retries > 0 the
    call is retried with exponential backoff first (Runnable.with_retry).
    """

    def __init__(
        self,
        llm_config: Optional[LLMConfig] = None,
        generation_config: Optional[GenerationConfig] = None,
        llm: Optional[BaseChatModel] = None,
    ):
        """
        Args:
            llm_config: Provider, model and retry settings.
            generation_config: Context block settings.
            llm: Pre-built chat model. If None, one is built from llm_config.
        """
        self._llm_config = llm_config or LLMConfig()
        self._config = generation_config or GenerationConfig()
        self._llm = llm if llm is not None else get_llm(self._llm_config)
        self._model_name = f"{self._llm_config.provider.value}/{self._llm_config.model_name}"

        self._runnable = self._llm
        if self._llm_config.max_retries > 0:
            self._runnable = self._llm.with_retry(
                stop_after_attempt=self._llm_config.max_retries + 1,
                wait_exponential_jitter=True,
            )

    @property
    def model_name(self) -> str:
        return self._model_name

    def generate(self, query: str, retrieval: RetrievalResult) -> GenerationResult:
        """
        Generate an answer grounded in the retrieved chunks.

        An empty retrieval still produces a prompt (with an empty context
        block), so the model can say it doesn't know.

        Raises:
            GenerationError: If the model call fails or returns no text.
        """
        context = build_context_block(retrieval.documents, self._config.max_chars_per_chunk)
        prompt = build_prompt(context, query)

        logger.debug(
            "generation_started",
            model=self._model_name,
            chunks=len(retrieval.documents),
            prompt_chars=len(prompt),
        )

        try:
            response = self._runnable.invoke(prompt)
        except Exception as e:
            logger.error("generation_failed", model=self._model_name, error=str(e))
            raise GenerationError(f"Generation backend failed: {e}") from e

        answer = _completion_text(response)

        sources: list[str] = []
        for doc in retrieval.documents:
            source = doc.chunk.metadata.source
            if source and source not in sources:
                sources.append(source)

        logger.info(
            "answer_generated",
            model=self._model_name,
            chunks=len(retrieval.documents),
            answer_chars=len(answer),
        )

        return GenerationResult(
            answer=answer,
            sources=sources,
            model=self._model_name,
            prompt=prompt,
        )


def _completion_text(response: Any) -> str:
    """Pull the text out of a chat model response, or raise GenerationError."""
    if isinstance(response, str):
        return response

    content = getattr(response, "content", None)
    if isinstance(content, str):
        return content

    # Some providers return a list of content blocks
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(str(block.get("text", "")))
        if parts:
            return "".join(parts)

    raise GenerationError(
        f"Malformed completion from generation backend: {type(response).__name__}"
    )
