"""Reply generation on top of an LLM client."""

import asyncio
import logging
from typing import Optional, List

from llm.base_client import BaseLLMClient
from schemas.conversation import Message, Role
from .errors import ReplyError

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = """
You are a helpful and friendly AI voice assistant providing customer support.
Your goal is to help users with their account questions, technical issues, and other inquiries.
Be conversational, helpful, and make the user feel valued and heard.
Use a friendly tone and be concise in your responses.

When helping users, follow these guidelines:
- If the user asks about resetting passwords, guide them through the process step by step
- If the user asks for specific information, provide clear answers
- If the user asks about account details, ask for verification information first
- Be empathetic and understanding
- Remember information from previous exchanges in the conversation
- Do not use special characters like asterisks or quotation marks in your responses as they will be spoken aloud
""".strip()

APOLOGY_REPLY = (
    "I'm sorry, I'm having trouble processing your request right now. "
    "Could you please try again?"
)


class ReplyGenerator:
    """Asks the language model for the assistant's next reply."""

    def __init__(
        self,
        llm_client: Optional[BaseLLMClient],
        system_prompt: str = SYSTEM_PROMPT,
        temperature: float = 0.7,
        max_tokens: int = 500
    ):
        self.llm_client = llm_client
        self.system_prompt = system_prompt
        self.temperature = temperature
        self.max_tokens = max_tokens

    def build_messages(self, messages: List[Message]) -> List[Message]:
        """Prepend the persona instruction to the conversation."""
        return [Message(role=Role.SYSTEM, content=self.system_prompt), *messages]

    async def generate_reply(self, messages: List[Message]) -> str:
        """
        Generate the assistant reply for a conversation.

        Raises:
            ReplyError: If no client is configured or the provider call fails
        """
        if self.llm_client is None:
            raise ReplyError("No LLM client configured")

        try:
            response = await asyncio.to_thread(
                self.llm_client.chat,
                self.build_messages(messages),
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except Exception as e:
            logger.error(f"Error getting AI response: {e}")
            raise ReplyError(f"Reply generation failed: {e}") from e

        return response.content
