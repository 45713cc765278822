"""Chat Pydantic schemas for API request/response models."""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from typequiz.models.message import MessageRole, Rating


class ChatMessage(BaseModel):
    """A chat message in display form.

    ``text`` never carries a rating tag; tags exist only in stored content.
    ``id`` stays unset until the message has been confirmed by the store.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int | None = Field(default=None, description="Store identifier, once known")
    role: MessageRole = Field(description="Message author")
    text: str = Field(description="Display text")
    rating: Rating | None = Field(default=None, description="User rating")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp",
    )


class SendMessageRequest(BaseModel):
    """Schema for sending a chat message."""

    text: str = Field(..., min_length=1, max_length=10000, description="Message text")


class RateMessageRequest(BaseModel):
    """Schema for rating an assistant message. Repeating a rating clears it."""

    rating: Rating = Field(description="like or dislike")


class ChatMessageListResponse(BaseModel):
    """Schema for the full chat log."""

    messages: list[ChatMessage] = Field(default_factory=list)
