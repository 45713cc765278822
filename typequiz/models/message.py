"""Chat message type definitions for database operations."""

from datetime import datetime
from enum import Enum
from typing import TypedDict


class MessageRole(str, Enum):
    """Author of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"

    @classmethod
    def from_stored(cls, value: str) -> "MessageRole":
        """Parse a stored role; older rows label assistant replies as "model"."""
        if value == "model":
            return cls.ASSISTANT
        return cls(value)


class Rating(str, Enum):
    """A user rating on an assistant message."""

    LIKE = "like"
    DISLIKE = "dislike"


class Tag(str, Enum):
    """Rating marker persisted inside assistant message content."""

    LIKE = "like"
    DISLIKE = "dislike"
    NEUTRAL = "neutral"

    @classmethod
    def from_rating(cls, rating: Rating | None) -> "Tag":
        if rating is None:
            return cls.NEUTRAL
        return cls(rating.value)

    @property
    def rating(self) -> Rating | None:
        """The user rating this tag carries; neutral carries none."""
        if self is Tag.NEUTRAL:
            return None
        return Rating(self.value)


class ChatHistoryRow(TypedDict):
    """chat_history table row representation."""

    id: int
    phone: str
    role: str
    content: str
    created_at: datetime
