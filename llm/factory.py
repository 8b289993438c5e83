"""LLM client factory."""

import logging
from enum import Enum
from typing import Optional

from config.settings import Settings
from .base_client import BaseLLMClient
from .openai_client import OpenAIClient
from .anthropic_client import AnthropicClient

logger = logging.getLogger(__name__)


class LLMProvider(str, Enum):
    """Supported reply-generation providers."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


def create_llm_client(
    provider: LLMProvider,
    api_key: Optional[str] = None,
    model: Optional[str] = None
) -> BaseLLMClient:
    """
    Create an LLM client for the specified provider.

    Raises:
        ValueError: If provider is not supported
    """
    if provider == LLMProvider.OPENAI:
        return OpenAIClient(api_key=api_key, model=model)
    elif provider == LLMProvider.ANTHROPIC:
        return AnthropicClient(api_key=api_key, model=model)
    else:
        raise ValueError(f"Unsupported LLM provider: {provider}")


def create_reply_client(settings: Settings) -> Optional[BaseLLMClient]:
    """
    Build the client that answers the user, from settings.

    Returns:
        The client, or None when no key is configured or the provider is
        unusable. Replies then fall back to an apology.
    """
    api_key = settings.get_llm_api_key()

    if not api_key:
        logger.warning(
            f"No API key for {settings.llm_provider}. "
            "Replies will fall back to an apology message."
        )
        return None

    try:
        client = create_llm_client(
            provider=LLMProvider(settings.llm_provider),
            api_key=api_key,
            model=settings.llm_model
        )
    except Exception as e:
        logger.error(f"Failed to initialize LLM client: {e}")
        return None

    logger.info(
        f"LLM client initialized: {client.get_provider_name()} "
        f"({client.get_model_name()})"
    )
    return client
