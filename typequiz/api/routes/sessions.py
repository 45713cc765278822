"""Session API routes for respondent session management."""

from fastapi import APIRouter, Request, Response, status

from typequiz.api.deps import Registry, Respondent, get_session_token, set_session_cookie
from typequiz.api.middleware.error_handler import ConflictError
from typequiz.schemas.session import FlowStateResponse, NavigateRequest, SessionResponse, ThemeUpdate
from typequiz.services.flow_controller import FlowTransitionError
from typequiz.services.respondent_session import RespondentSession

router = APIRouter(prefix="/sessions", tags=["sessions"])


def session_response(session: RespondentSession, resumed: bool = False) -> SessionResponse:
    return SessionResponse(
        flow=FlowStateResponse.from_flow(session.flow),
        theme=session.cache.theme,
        has_profile=session.reconciler.profile is not None,
        resumed=resumed,
    )


@router.post(
    "",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start a respondent session",
    description="Returns the current session when the token is still live; otherwise creates one and sets the session cookie.",
)
async def create_session(request: Request, response: Response, registry: Registry) -> SessionResponse:
    """Start or resume a respondent session.

    A session whose cache holds both a profile and a result resumes
    straight into the result view.

    Args:
        request: FastAPI request object for reading the token.
        response: FastAPI response object for setting cookie.
        registry: Session registry.

    Returns:
        SessionResponse: The session state.
    """
    session = registry.get(get_session_token(request))
    if session is None:
        session = registry.create()

    set_session_cookie(response, session.token)
    return session_response(session, resumed=session.flow.state.result is not None)


@router.get(
    "/me",
    response_model=SessionResponse,
    summary="Get current session",
)
async def get_my_session(session: Respondent) -> SessionResponse:
    """Get the current session state."""
    return session_response(session)


@router.post(
    "/me/navigate",
    response_model=SessionResponse,
    summary="Move to another screen",
    responses={409: {"description": "Move not allowed from the current screen"}},
)
async def navigate(data: NavigateRequest, session: Respondent) -> SessionResponse:
    """Move between screens outside the quiz.

    Raises:
        ConflictError: 409 if the move is not allowed.
    """
    try:
        session.navigate(data.view)
    except FlowTransitionError as e:
        raise ConflictError(e.message) from e

    return session_response(session)


@router.post(
    "/me/reset",
    response_model=SessionResponse,
    summary="Take the test again",
    responses={409: {"description": "No result yet, or reset still locked"}},
)
async def reset_session(session: Respondent) -> SessionResponse:
    """Forget the session (keeping the theme) and return to the sign-in choice.

    Raises:
        ConflictError: 409 if there is no result or the cooldown has not passed.
    """
    try:
        session.reset()
    except FlowTransitionError as e:
        raise ConflictError(e.message) from e

    return session_response(session)


@router.put(
    "/me/theme",
    response_model=SessionResponse,
    summary="Set the display theme",
)
async def update_theme(data: ThemeUpdate, session: Respondent) -> SessionResponse:
    """Persist the display theme in the session cache."""
    session.cache.theme = data.theme
    return session_response(session)
