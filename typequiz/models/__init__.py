"""Database model type definitions."""

from typequiz.models.message import ChatHistoryRow, MessageRole, Rating, Tag
from typequiz.models.quiz_result import QuizResultRow

__all__ = [
    "ChatHistoryRow",
    "MessageRole",
    "QuizResultRow",
    "Rating",
    "Tag",
]
