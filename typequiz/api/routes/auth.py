"""Registration and login routes."""

import logging

from fastapi import APIRouter, status

from typequiz.api.deps import Respondent
from typequiz.api.middleware.error_handler import (
    AuthenticationError,
    ConflictError,
    UpstreamError,
    ValidationError,
)
from typequiz.schemas.profile import LoginRequest, LoginResponse, ProfileResponse, RegisterRequest
from typequiz.services.flow_controller import FlowTransitionError
from typequiz.services.profile_service import LoginFailed, profile_from_registration, validate_registration

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=LoginResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a respondent",
    responses={
        409: {"description": "Not on the register screen"},
        422: {"description": "One or more fields are invalid"},
        502: {"description": "The profile could not be saved"},
    },
)
async def register(data: RegisterRequest, session: Respondent) -> LoginResponse:
    """Create a profile from the registration form.

    Every invalid field is reported together. On success the profile is
    saved remotely, cached, and the flow continues to the interests screen.

    Raises:
        ValidationError: 422 with one detail per invalid field.
        ConflictError: 409 if the session is not on the register screen.
        UpstreamError: 502 if the store rejected the profile; the view is unchanged.
    """
    errors = validate_registration(data)
    if errors:
        raise ValidationError("Please correct the highlighted fields", details=errors)

    profile = profile_from_registration(data)
    try:
        await session.register(profile)
    except FlowTransitionError as e:
        raise ConflictError(e.message) from e
    except Exception as e:
        logger.error("Failed to create profile: %s", str(e))
        raise UpstreamError("Failed to create profile.") from e

    return LoginResponse(
        profile=ProfileResponse.from_profile(profile),
        view=session.flow.state.view.value,
    )


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Log in with phone and password",
    responses={
        401: {"description": "Unknown phone or wrong password"},
        409: {"description": "Not on the login screen"},
        502: {"description": "The store could not be reached"},
    },
)
async def login(data: LoginRequest, session: Respondent) -> LoginResponse:
    """Log in and route the respondent to their result or the next screen.

    Raises:
        AuthenticationError: 401 if the phone is unknown or the password is wrong.
        ConflictError: 409 if the session is not on the login screen.
        UpstreamError: 502 if the store could not be reached.
    """
    try:
        profile, result = await session.login(data.phone, data.password)
    except LoginFailed as e:
        field = "phone" if e.reason == "not_found" else "password"
        raise AuthenticationError(
            e.message,
            details=[{"loc": [field], "msg": e.message, "type": e.reason}],
        ) from e
    except FlowTransitionError as e:
        raise ConflictError(e.message) from e
    except Exception as e:
        logger.error("Login failed: %s", str(e))
        raise UpstreamError("Server error.") from e

    return LoginResponse(
        profile=ProfileResponse.from_profile(profile),
        result=result,
        view=session.flow.state.view.value,
    )
