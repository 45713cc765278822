"""FastAPI dependency injection functions."""

from typing import Annotated

from fastapi import Depends, Request, Response

from typequiz.api.middleware.error_handler import AuthenticationError
from typequiz.core.config import get_settings
from typequiz.services.respondent_session import (
    RespondentSession,
    SessionRegistry,
    get_session_registry,
)

SESSION_TOKEN_HEADER = "x-session-token"


def get_session_cookie_config() -> dict:
    """Get session cookie configuration from settings."""
    settings = get_settings()
    # SameSite=None requires Secure=True; use Lax for local development
    samesite = "none" if settings.session_cookie_secure else "lax"
    return {
        "key": settings.session_cookie_name,
        "max_age": settings.session_cookie_max_age,
        "httponly": True,
        "secure": settings.session_cookie_secure,
        "samesite": samesite,
        "path": "/",
    }


def get_session_token(request: Request) -> str | None:
    """Extract session token from X-Session-Token header or cookie.

    Checks header first (works when third-party cookies are blocked),
    then falls back to cookie.

    Args:
        request: FastAPI request object.

    Returns:
        str | None: The session token or None if not present.
    """
    header_token = request.headers.get(SESSION_TOKEN_HEADER)
    if header_token:
        return header_token

    config = get_session_cookie_config()
    return request.cookies.get(config["key"])


def set_session_cookie(response: Response, token: str) -> None:
    """Set session cookie on response and expose the token as a header.

    Args:
        response: FastAPI response object.
        token: The session token to set.
    """
    config = get_session_cookie_config()
    response.set_cookie(
        key=config["key"],
        value=token,
        max_age=config["max_age"],
        httponly=config["httponly"],
        secure=config["secure"],
        samesite=config["samesite"],
        path=config["path"],
    )
    response.headers[SESSION_TOKEN_HEADER] = token


def get_registry() -> SessionRegistry:
    return get_session_registry()


async def get_respondent(
    request: Request,
    registry: Annotated[SessionRegistry, Depends(get_registry)],
) -> RespondentSession:
    """Resolve the respondent session for the request.

    Raises:
        AuthenticationError: 401 if no live session matches the token.
    """
    session = registry.get(get_session_token(request))
    if session is None:
        raise AuthenticationError("No respondent session. Create one with POST /api/v1/sessions")
    return session


Registry = Annotated[SessionRegistry, Depends(get_registry)]
Respondent = Annotated[RespondentSession, Depends(get_respondent)]
