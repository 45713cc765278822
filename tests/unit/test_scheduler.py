"""Unit tests for AsyncioScheduler."""

import asyncio

import pytest

from typequiz.core.scheduler import AsyncioScheduler


class TestAsyncioScheduler:
    """Tests for the event loop scheduler."""

    @pytest.mark.asyncio
    async def test_after_runs_callback(self) -> None:
        scheduler = AsyncioScheduler()
        fired: list[str] = []

        scheduler.after(0.01, lambda: fired.append("done"))
        assert scheduler.pending == 1

        await asyncio.sleep(0.05)

        assert fired == ["done"]
        assert scheduler.pending == 0

    @pytest.mark.asyncio
    async def test_failing_callback_is_contained(self) -> None:
        scheduler = AsyncioScheduler()
        fired: list[str] = []

        def boom() -> None:
            raise RuntimeError("boom")

        scheduler.after(0.01, boom)
        scheduler.after(0.02, lambda: fired.append("next"))
        await asyncio.sleep(0.05)

        assert fired == ["next"]

    @pytest.mark.asyncio
    async def test_spawn_tracks_task(self) -> None:
        scheduler = AsyncioScheduler()
        done = asyncio.Event()

        async def work() -> None:
            done.set()

        scheduler.spawn(work())
        await asyncio.wait_for(done.wait(), timeout=1)
        await asyncio.sleep(0)

        assert scheduler.pending == 0

    @pytest.mark.asyncio
    async def test_cancel_all(self) -> None:
        scheduler = AsyncioScheduler()
        fired: list[str] = []

        scheduler.after(0.01, lambda: fired.append("late"))
        scheduler.spawn(asyncio.sleep(10))
        scheduler.cancel_all()
        await asyncio.sleep(0.05)

        assert fired == []
        assert scheduler.pending == 0

    @pytest.mark.asyncio
    async def test_failing_task_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        scheduler = AsyncioScheduler()

        async def commit() -> None:
            raise RuntimeError("store down")

        scheduler.spawn(commit())
        await asyncio.sleep(0.01)

        assert scheduler.pending == 0
        assert "Background task failed: store down" in caplog.text
