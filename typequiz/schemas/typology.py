"""Quiz and typology Pydantic schemas for API request/response models."""

from pydantic import BaseModel, ConfigDict, Field

from typequiz.models.quiz import MAX_MAGNITUDE, MIN_MAGNITUDE, Axis


class TypologyResult(BaseModel):
    """Scored quiz outcome.

    Axis values are the raw weighted sums; ``code`` is derived from them by
    per-axis thresholding and never set independently.
    """

    model_config = ConfigDict(frozen=True)

    ei: int = Field(description="Extraversion/Introversion raw score")
    sn: int = Field(description="Sensing/Intuition raw score")
    ft: int = Field(description="Feeling/Thinking raw score")
    jp: int = Field(description="Judging/Perceiving raw score")
    code: str = Field(min_length=4, max_length=4, description="Four-letter typology code")


class QuizItemResponse(BaseModel):
    """Schema for a questionnaire item."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(description="Item identifier (1-based)")
    prompt_a: str = Field(description="Statement at the low end of the scale")
    prompt_b: str = Field(description="Statement at the high end of the scale")
    axis: Axis = Field(description="Axis this item contributes to")


class AnswerRequest(BaseModel):
    """Schema for selecting an answer on the current question."""

    value: int = Field(..., ge=MIN_MAGNITUDE, le=MAX_MAGNITUDE, description="Answer magnitude (1-5)")


class ResultResponse(BaseModel):
    """Schema for the committed result with its type description."""

    result: TypologyResult = Field(description="Scored result")
    name: str = Field(description="Type display name")
    description: str = Field(description="Short type description")
    save_error: str | None = Field(default=None, description="Non-blocking persistence error, if any")


class AnalysisResponse(BaseModel):
    """Schema for the narrative elaboration of a result."""

    code: str = Field(description="Typology code the analysis describes")
    analysis: str = Field(description="Narrative text")
