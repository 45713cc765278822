"""Pytest configuration and fixtures."""

import heapq
import itertools
import os
from collections.abc import Callable, Coroutine, Generator
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing application modules
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SECRET_KEY", "test-secret-key")
os.environ.setdefault("OPENAI_API_KEY", "sk-test-openai-key")
os.environ.setdefault("MOCK_OPENAI", "true")
os.environ.setdefault("HEARTBEAT_ON_STARTUP", "false")
os.environ.setdefault("SESSION_COOKIE_SECURE", "false")


# Absorbs float drift when delays are summed, e.g. 0.4 + 0.3
CLOCK_TOLERANCE = 1e-6


class ManualScheduler:
    """Scheduler on a virtual clock.

    Timers fire only when the test advances the clock. Spawned coroutines
    are collected and run by ``drain``.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._timers: list[tuple[float, int, Callable[[], None]]] = []
        self._seq = itertools.count()
        self.spawned: list[Coroutine[Any, Any, Any]] = []

    def after(self, delay: float, callback: Callable[[], None]) -> None:
        heapq.heappush(self._timers, (self.now + delay, next(self._seq), callback))

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        self.spawned.append(coro)

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due timers in order."""
        target = self.now + seconds
        while self._timers and self._timers[0][0] <= target + CLOCK_TOLERANCE:
            due, _, callback = heapq.heappop(self._timers)
            self.now = due
            callback()
        self.now = target

    def run_all(self) -> None:
        """Fire every pending timer, including ones scheduled while firing."""
        while self._timers:
            self.advance(self._timers[0][0] - self.now)

    @property
    def pending(self) -> int:
        return len(self._timers)

    async def drain(self) -> list[Any]:
        """Await spawned coroutines in order and return their results."""
        results = []
        while self.spawned:
            results.append(await self.spawned.pop(0))
        return results

    def cancel_all(self) -> None:
        self._timers.clear()
        for coro in self.spawned:
            coro.close()
        self.spawned.clear()


@pytest.fixture
def scheduler() -> Generator[ManualScheduler, None, None]:
    """Provide a virtual-clock scheduler."""
    manual = ManualScheduler()
    yield manual
    manual.cancel_all()


@pytest.fixture
def scheduler_factory() -> Callable[[], ManualScheduler]:
    """Provide a factory of virtual-clock schedulers, one per session."""
    return ManualScheduler


@pytest.fixture(scope="session")
def test_settings() -> Generator[Any, None, None]:
    """Provide test settings with cleared cache.

    Yields:
        Settings: Test configuration settings.
    """
    from typequiz.core.config import get_settings

    get_settings.cache_clear()

    settings = get_settings()
    yield settings

    get_settings.cache_clear()


@pytest.fixture
def mock_supabase_client() -> Generator[MagicMock, None, None]:
    """Provide a mocked Supabase client.

    Yields:
        MagicMock: Mocked Supabase client for testing.
    """
    mock_client = MagicMock()

    mock_response = MagicMock()
    mock_response.data = []
    mock_client.table.return_value.select.return_value.limit.return_value.execute.return_value = (
        mock_response
    )

    with (
        patch("typequiz.core.supabase.get_supabase_client", return_value=mock_client),
        patch("typequiz.services.store.get_supabase_client", return_value=mock_client),
    ):
        yield mock_client


@pytest.fixture
def registry(
    mock_supabase_client: MagicMock, scheduler_factory: Callable[[], ManualScheduler]
) -> Generator[Any, None, None]:
    """Provide a session registry whose sessions run on virtual clocks."""
    from typequiz.services.flow_controller import FlowTimings
    from typequiz.services.respondent_session import (
        SessionRegistry,
        SessionRegistryConfig,
        set_session_registry,
    )

    session_registry = SessionRegistry(
        SessionRegistryConfig(),
        scheduler_factory=scheduler_factory,
        timings=FlowTimings(),
    )
    set_session_registry(session_registry)
    yield session_registry
    session_registry.close_all()
    set_session_registry(None)


@pytest.fixture
def client(registry: Any) -> Generator[TestClient, None, None]:
    """Provide a test client for the FastAPI application.

    Yields:
        TestClient: FastAPI test client.
    """
    from typequiz.main import app

    with TestClient(app) as test_client:
        yield test_client
