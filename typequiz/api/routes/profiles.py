"""Profile and interest routes."""

from fastapi import APIRouter

from typequiz.api.deps import Respondent
from typequiz.api.middleware.error_handler import NotFoundError
from typequiz.models.interests import INTERESTS_LIST
from typequiz.schemas.profile import InterestRequest, ProfileResponse

router = APIRouter(prefix="/profiles", tags=["profiles"])

NO_PROFILE = "No profile in this session. Register or log in first."


@router.get(
    "/interests",
    response_model=list[str],
    summary="List preset interests",
)
async def list_interests() -> list[str]:
    """Return the preset interest labels."""
    return list(INTERESTS_LIST)


@router.get(
    "/me",
    response_model=ProfileResponse,
    summary="Get the session profile",
    responses={404: {"description": "No profile in this session"}},
)
async def get_my_profile(session: Respondent) -> ProfileResponse:
    """Return the cached profile of the session.

    Raises:
        NotFoundError: 404 if no profile is cached.
    """
    profile = session.reconciler.profile
    if profile is None:
        raise NotFoundError(NO_PROFILE)
    return ProfileResponse.from_profile(profile)


@router.post(
    "/me/interests/toggle",
    response_model=ProfileResponse,
    summary="Select or deselect a preset interest",
    responses={404: {"description": "No profile in this session"}},
)
async def toggle_my_interest(data: InterestRequest, session: Respondent) -> ProfileResponse:
    """Toggle a preset interest. Labels are stored up to the first slash."""
    if session.reconciler.profile is None:
        raise NotFoundError(NO_PROFILE)
    profile = await session.reconciler.toggle_interest(data.label)
    return ProfileResponse.from_profile(profile)


@router.post(
    "/me/interests",
    response_model=ProfileResponse,
    summary="Add a typed-in interest",
    responses={404: {"description": "No profile in this session"}},
)
async def add_my_interest(data: InterestRequest, session: Respondent) -> ProfileResponse:
    """Add a custom interest; adding one that is already selected changes nothing."""
    if session.reconciler.profile is None:
        raise NotFoundError(NO_PROFILE)
    profile = await session.reconciler.add_interest(data.label)
    return ProfileResponse.from_profile(profile)
