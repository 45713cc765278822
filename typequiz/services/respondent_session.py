"""In-memory registry of respondent sessions with TTL cleanup."""

import asyncio
import logging
import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from threading import Lock

from typequiz.core.scheduler import AsyncioScheduler, Scheduler
from typequiz.schemas.profile import Profile
from typequiz.schemas.typology import TypologyResult
from typequiz.services.chat_service import ChatService
from typequiz.services.flow_controller import FlowController, FlowTimings, FlowTransitionError, View
from typequiz.services.local_cache import LocalCache
from typequiz.services.session_reconciler import SessionReconciler
from typequiz.services.store import QuizStore

logger = logging.getLogger(__name__)


@dataclass
class RespondentSession:
    """One respondent's flow, cache and reconciler, bound to a session token."""

    token: str
    cache: LocalCache
    scheduler: Scheduler
    flow: FlowController
    reconciler: SessionReconciler
    chat_busy: bool = False
    last_seen: float = field(default_factory=time.time)

    def touch(self) -> None:
        self.last_seen = time.time()

    def resume(self) -> bool:
        """Jump to the cached result when both a result and a profile are cached.

        Returns:
            bool: True when the session resumed into the result view.
        """
        result = self.cache.load_result()
        if result is None or self.cache.load_profile() is None:
            return False
        self.flow.resume_result(result)
        logger.info("Session resumed into result %s", result.code)
        return True

    def navigate(self, target: View) -> None:
        """Move between screens; the interests screen needs a profile.

        Raises:
            FlowTransitionError: If the move is not allowed.
        """
        if target is View.INTERESTS and self.reconciler.profile is None:
            raise FlowTransitionError("Sign in or register first", self.flow.state.view)
        self.flow.navigate(target)

    def _require_view(self, view: View) -> None:
        if self.flow.state.view is not view:
            raise FlowTransitionError(f"Only available on the {view.value} screen", self.flow.state.view)

    async def register(self, profile: Profile) -> None:
        """Save a validated registration and continue to the interests screen."""
        self._require_view(View.REGISTER)
        await self.reconciler.register(profile)
        self.flow.navigate(View.INTERESTS)

    async def login(self, phone: str, password: str) -> tuple[Profile, TypologyResult | None]:
        """Log in and route the respondent.

        A stored result opens the result view unless the respondent chose to
        retake the test, which leads back to the welcome screen. Without a
        stored result the respondent continues to the interests screen.

        Returns:
            tuple: (profile, result shown to the respondent or None)

        Raises:
            LoginFailed: If the phone is unknown or the password is wrong.
        """
        self._require_view(View.LOGIN)
        profile, result, retake = await self.reconciler.login(phone, password)

        if retake:
            self.flow.navigate(View.WELCOME)
            return profile, None
        if result is not None:
            self.flow.resume_result(result)
            return profile, result

        self.flow.navigate(View.INTERESTS)
        return profile, None

    def reset(self) -> None:
        """Take the test again: forget the session except the theme.

        Raises:
            FlowTransitionError: If the result is not shown or reset is still locked.
        """
        self.flow.reset()
        self.cache.start_retake()
        self.reconciler.close_chat()
        self.reconciler.messages = []
        self.reconciler.last_error = None
        self.chat_busy = False

    def close(self) -> None:
        cancel_all = getattr(self.scheduler, "cancel_all", None)
        if cancel_all is not None:
            cancel_all()


@dataclass
class SessionRegistryConfig:
    """Configuration for the session registry."""

    ttl_seconds: int = 86400
    cleanup_interval_seconds: int = 600
    cache_dir: Path | None = None

    @classmethod
    def from_settings(cls) -> "SessionRegistryConfig":
        """Create config from application settings."""
        from typequiz.core.config import get_settings

        settings = get_settings()
        return cls(
            ttl_seconds=settings.session_ttl_seconds,
            cache_dir=Path(settings.local_cache_dir) if settings.local_cache_dir else None,
        )


class SessionRegistry:
    """Thread-safe map of session tokens to respondent sessions."""

    def __init__(
        self,
        config: SessionRegistryConfig | None = None,
        scheduler_factory: Callable[[], Scheduler] = AsyncioScheduler,
        store_factory: Callable[[], QuizStore] = QuizStore,
        chat_service_factory: Callable[[], ChatService] = ChatService,
        timings: FlowTimings | None = None,
    ) -> None:
        """Initialize the registry.

        Args:
            config: Optional registry configuration.
            scheduler_factory: Builds the scheduler for each new session.
            store_factory: Builds the remote store for each new session.
            chat_service_factory: Builds the chat service for each new session.
            timings: Flow phase durations; read from settings when None.
        """
        self.config = config or SessionRegistryConfig()
        self.scheduler_factory = scheduler_factory
        self.store_factory = store_factory
        self.chat_service_factory = chat_service_factory
        self.timings = timings
        self._sessions: dict[str, RespondentSession] = {}
        self._lock = Lock()
        self._cleanup_task: asyncio.Task | None = None

    def _cache_path(self, token: str) -> Path | None:
        if self.config.cache_dir is None:
            return None
        return self.config.cache_dir / f"{token}.json"

    def _build(self, token: str) -> RespondentSession:
        cache = LocalCache(self._cache_path(token))
        scheduler = self.scheduler_factory()
        reconciler = SessionReconciler(
            cache=cache,
            store=self.store_factory(),
            chat_service=self.chat_service_factory(),
        )
        flow = FlowController(
            scheduler=scheduler,
            timings=self.timings or FlowTimings.from_settings(),
            on_finalize=reconciler.commit_result,
        )
        session = RespondentSession(
            token=token,
            cache=cache,
            scheduler=scheduler,
            flow=flow,
            reconciler=reconciler,
        )
        session.resume()
        return session

    def create(self, token: str | None = None) -> RespondentSession:
        """Create a session, restoring a persisted cache when the token has one."""
        token = token or secrets.token_urlsafe(32)
        session = self._build(token)
        with self._lock:
            previous = self._sessions.pop(token, None)
            self._sessions[token] = session
        if previous is not None:
            previous.close()
        logger.debug("Created respondent session (view=%s)", session.flow.state.view.value)
        return session

    def get(self, token: str | None) -> RespondentSession | None:
        """Get a live session, or restore one whose cache file still exists."""
        if not token:
            return None

        with self._lock:
            session = self._sessions.get(token)

        if session is None:
            path = self._cache_path(token)
            if path is None or not path.exists():
                return None
            session = self.create(token)
            logger.info("Restored respondent session from its cache file")
        elif time.time() - session.last_seen > self.config.ttl_seconds:
            self.discard(token)
            return None

        session.touch()
        return session

    def discard(self, token: str) -> None:
        with self._lock:
            session = self._sessions.pop(token, None)
        if session is not None:
            session.close()

    async def start_cleanup_task(self) -> None:
        """Start background cleanup task."""
        if self._cleanup_task is None:
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())
            logger.info("Session registry cleanup task started")

    async def stop_cleanup_task(self) -> None:
        """Stop background cleanup task."""
        if self._cleanup_task:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None
            logger.info("Session registry cleanup task stopped")

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.cleanup_interval_seconds)
            count = self.cleanup()
            if count > 0:
                logger.debug("Session registry dropped %d idle sessions", count)

    def cleanup(self) -> int:
        """Drop sessions idle for longer than the TTL.

        Returns:
            Number of sessions removed.
        """
        cutoff = time.time() - self.config.ttl_seconds
        with self._lock:
            expired = [token for token, s in self._sessions.items() if s.last_seen < cutoff]
            removed = [self._sessions.pop(token) for token in expired]
        for session in removed:
            session.close()
        return len(removed)

    def close_all(self) -> int:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.close()
        return len(sessions)

    def get_stats(self) -> dict:
        """Get registry statistics for monitoring."""
        with self._lock:
            views: dict[str, int] = {}
            for session in self._sessions.values():
                view = session.flow.state.view.value
                views[view] = views.get(view, 0) + 1
            return {
                "active_sessions": len(self._sessions),
                "by_view": views,
                "ttl_seconds": self.config.ttl_seconds,
            }


# Global singleton instance
_session_registry: SessionRegistry | None = None


def get_session_registry() -> SessionRegistry:
    """Get or create the global session registry."""
    global _session_registry
    if _session_registry is None:
        _session_registry = SessionRegistry(SessionRegistryConfig.from_settings())
    return _session_registry


def set_session_registry(registry: SessionRegistry | None) -> None:
    """Replace the global registry (tests)."""
    global _session_registry
    _session_registry = registry


async def init_session_registry() -> SessionRegistry:
    """Initialize the session registry with cleanup task. Call at app startup."""
    registry = get_session_registry()
    await registry.start_cleanup_task()
    return registry


async def shutdown_session_registry() -> None:
    """Stop cleanup and cancel pending session timers. Call at app shutdown."""
    global _session_registry
    if _session_registry:
        await _session_registry.stop_cleanup_task()
        count = _session_registry.close_all()
        logger.info("Closed %d respondent sessions", count)
