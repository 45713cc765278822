"""quiz_results table type definitions for database operations."""

from datetime import datetime
from typing import TypedDict


class QuizResultRow(TypedDict, total=False):
    """quiz_results table row representation.

    One row per canonical phone holding the profile and, once the quiz is
    finished, the latest typology result.
    """

    phone: str
    first_name: str
    last_name: str
    password: str
    age: int
    interests: list[str]
    personality_type: str | None
    ei_score: int | None
    sn_score: int | None
    ft_score: int | None
    jp_score: int | None
    updated_at: datetime
