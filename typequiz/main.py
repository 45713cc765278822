"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from typequiz.api.middleware.error_handler import error_handler_middleware
from typequiz.api.middleware.latency_logging import latency_logging_middleware
from typequiz.api.routes import auth, chat, health, profiles, quiz, sessions
from typequiz.core.config import get_settings
from typequiz.services.respondent_session import init_session_registry, shutdown_session_registry
from typequiz.services.store import QuizStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events.

    Args:
        app: FastAPI application instance.

    Yields:
        None: Control back to the application.
    """
    settings = get_settings()
    logger.info("Starting %s in %s mode", settings.app_name, settings.app_env)
    if settings.mock_openai:
        logger.info("OpenAI mock mode enabled")

    # Keep an idle Supabase project awake
    if settings.heartbeat_on_startup:
        try:
            await QuizStore().heartbeat()
            logger.info("Database heartbeat written")
        except Exception as e:
            logger.warning("Database heartbeat failed: %s", str(e))

    await init_session_registry()
    logger.info("Session registry initialized")

    yield

    await shutdown_session_registry()
    logger.info("Session registry shutdown")
    logger.info("Shutting down %s", settings.app_name)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="TypeQuiz API",
        description="Personality questionnaire with typology scoring and a result chat",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["x-session-token"],
    )

    # Add error handler middleware (outermost - catches all errors)
    app.add_middleware(BaseHTTPMiddleware, dispatch=error_handler_middleware)

    # Add latency logging middleware (tracks request timing)
    app.add_middleware(BaseHTTPMiddleware, dispatch=latency_logging_middleware)

    # Mount health routes at root level (no prefix)
    app.include_router(health.router)

    # Create API v1 router for versioned endpoints
    api_v1_router = APIRouter(prefix="/api/v1")
    api_v1_router.include_router(sessions.router)
    api_v1_router.include_router(auth.router)
    api_v1_router.include_router(profiles.router)
    api_v1_router.include_router(quiz.router)
    api_v1_router.include_router(chat.router)

    app.include_router(api_v1_router)

    return app


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "typequiz.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
