"""Chat completion clients used for reply generation."""

from .base_client import BaseLLMClient, LLMResponse
from .factory import LLMProvider, create_llm_client, create_reply_client

__all__ = [
    "BaseLLMClient",
    "LLMResponse",
    "LLMProvider",
    "create_llm_client",
    "create_reply_client",
]
