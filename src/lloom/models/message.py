"""Message models for lloom.

A message is one entry in a space's conversation history.
"""

from enum import StrEnum

from pydantic import BaseModel, Field

__all__ = [
    "ChatMessage",
    "MessageRole",
]


class MessageRole(StrEnum):
    """Author of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel, frozen=True):
    """Single entry in a space's history.

    Messages are immutable once created. A space only ever appends
    new messages, so insertion order is display order.

    Attributes:
        id: Opaque unique identifier
        content: Message text
        role: Message author
        timestamp: Creation time in epoch milliseconds
        model: Model that produced the message (assistant messages only)
    """

    id: str = Field(description="Opaque unique identifier")
    content: str
    role: MessageRole
    timestamp: int = Field(description="Epoch milliseconds")
    model: str | None = Field(default=None, description="Producing model")

    @property
    def is_user(self) -> bool:
        """Check if the message was written by the user."""
        return self.role == MessageRole.USER
