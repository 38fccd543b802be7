"""
Shared utility functions.

Helpers used across the package: chat model factory, text cleaning.
"""

from langchain_core.documents import Document
from langchain_core.language_models.chat_models import BaseChatModel

from localrag.config import LLMConfig, LLMProvider
from localrag.exceptions import ConfigError


def get_llm(config: LLMConfig) -> BaseChatModel:
    """
    Factory that returns a LangChain chat model based on config.

    Same pattern as the embedding factory: lazy imports so you only need
    the integration package for the provider you actually use. Ollama is a
    core dependency; openai and anthropic are extras.

    Constructing the model does not contact the backend, so an unreachable
    runner only shows up on the first invoke().

    Args:
        config: LLMConfig with provider, model_name, temperature, max_tokens.

    Returns:
        A LangChain BaseChatModel instance.

    Raises:
        ConfigError: If the provider is unknown or its package is missing.
    """
    if config.provider == LLMProvider.OLLAMA:
        from langchain_ollama import ChatOllama

        return ChatOllama(
            model=config.model_name,
            base_url=config.base_url,
            temperature=config.temperature,
            num_predict=config.max_tokens,
            client_kwargs={"timeout": config.request_timeout},
        )

    elif config.provider == LLMProvider.OPENAI:
        try:
            from langchain_openai import ChatOpenAI
        except ImportError:
            raise ConfigError(
                "The openai provider requires langchain-openai. "
                "Install with: pip install localrag[openai]"
            )

        return ChatOpenAI(
            model=config.model_name,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            timeout=config.request_timeout,
        )

    elif config.provider == LLMProvider.ANTHROPIC:
        try:
            from langchain_anthropic import ChatAnthropic
        except ImportError:
            raise ConfigError(
                "The anthropic provider requires langchain-anthropic. "
                "Install with: pip install localrag[anthropic]"
            )

        return ChatAnthropic(
            model=config.model_name,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            timeout=config.request_timeout,
        )

    else:
        raise ConfigError(
            f"Unknown LLM provider: '{config.provider}'. "
            f"Supported: 'ollama', 'openai', 'anthropic'."
        )


def replace_t_with_space(documents: list[Document]) -> list[Document]:
    """
    Replace tab characters with spaces in document content.

    PDF-extracted text often has stray tabs. Modifies in place and returns
    the same list.
    """
    for doc in documents:
        doc.page_content = doc.page_content.replace("\t", " ")
    return documents
