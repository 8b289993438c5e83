"""Conversation schemas: messages, conversation records and users."""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    """Speaker of a message."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """A single transcript message. Immutable once created."""
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    role: Role
    content: str
    is_greeting: bool = Field(False, description="Synthetic greeting, not model output")


class ConversationRecord(BaseModel):
    """One session's transcript, keyed by the session id."""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    date: datetime = Field(default_factory=datetime.now)
    email: Optional[str] = Field(None, description="Owner of the conversation")
    messages: list[Message] = Field(default_factory=list)

    def has_non_system_messages(self) -> bool:
        """True when the record holds anything besides system messages."""
        return any(msg.role != Role.SYSTEM.value for msg in self.messages)

    def user_messages(self) -> list[Message]:
        return [msg for msg in self.messages if msg.role == Role.USER.value]


class UserRecord(BaseModel):
    """A user and their conversations. The last conversation is the current one."""
    name: str
    email: str
    conversations: list[ConversationRecord] = Field(default_factory=list)

    def find_conversation(self, conversation_id: str) -> Optional[ConversationRecord]:
        for conversation in self.conversations:
            if conversation.id == conversation_id:
                return conversation
        return None


class LastSession(BaseModel):
    """Name and email used to start the most recent session."""
    name: str
    email: str
