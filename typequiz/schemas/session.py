"""Respondent session Pydantic schemas for API request/response models."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from typequiz.services.flow_controller import FlowController, View


class FlowStateResponse(BaseModel):
    """Schema for the flow state of a respondent session."""

    model_config = ConfigDict(from_attributes=True)

    view: View = Field(description="Current screen")
    step_index: int = Field(description="Question index; equals item_count while the result is committed")
    item_count: int = Field(description="Number of questionnaire items")
    progress_percent: int = Field(description="Progress through the questionnaire")
    current_item_id: int | None = Field(default=None, description="Item on screen")
    current_answer: int | None = Field(default=None, description="Recorded answer for the item on screen")
    advancing: bool = Field(description="Moving between questions")
    confirming: bool = Field(description="Highlighting a picked answer")
    finalizing: bool = Field(description="Scoring and entering the result")
    answered: int = Field(description="Number of answered items")
    chat_open: bool = Field(description="Chat overlay is open")
    reset_locked: bool = Field(description="Retaking the test is not yet available")
    result_code: str | None = Field(default=None, description="Committed typology code")

    @classmethod
    def from_flow(cls, flow: FlowController) -> "FlowStateResponse":
        return cls(**flow.snapshot())


class SessionResponse(BaseModel):
    """Schema for a respondent session."""

    flow: FlowStateResponse
    theme: Literal["light", "dark"]
    has_profile: bool = Field(description="A profile is cached for this session")
    resumed: bool = Field(default=False, description="Session resumed into a cached result")


class NavigateRequest(BaseModel):
    """Schema for moving between screens."""

    view: View = Field(description="Target screen")


class ThemeUpdate(BaseModel):
    """Schema for updating the display theme."""

    theme: Literal["light", "dark"]


class AnswerAccepted(BaseModel):
    """Schema for the outcome of a quiz input."""

    accepted: bool = Field(description="False when the input was ignored because a transition is running")
    flow: FlowStateResponse
