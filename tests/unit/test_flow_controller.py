"""Unit tests for the respondent flow controller."""

from typing import Any
from unittest.mock import AsyncMock

import pytest

from typequiz.models.quiz import QUIZ_ITEMS
from typequiz.services.flow_controller import FlowController, FlowTimings, FlowTransitionError, View
from typequiz.services.scoring import compute_type

CONFIRM = 0.4
ADVANCE = 0.3
PAUSE = 0.6
FINALIZE = 1.2
COOLDOWN = 30.0


def start_quiz(flow: FlowController) -> None:
    flow.navigate(View.INTERESTS)
    flow.navigate(View.TUTORIAL)
    flow.start_quiz()


def answer_all_but_last(flow: FlowController, scheduler: Any, value: int = 3) -> None:
    for _ in range(len(QUIZ_ITEMS) - 1):
        assert flow.select_answer(value) is True
        scheduler.advance(CONFIRM + ADVANCE)


@pytest.fixture
def on_finalize() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def flow(scheduler: Any, on_finalize: AsyncMock) -> FlowController:
    """Create a controller on the virtual clock, already in the quiz."""
    controller = FlowController(scheduler, FlowTimings(), on_finalize=on_finalize)
    start_quiz(controller)
    return controller


class TestNavigation:
    """Tests for screen navigation."""

    def test_starts_on_welcome(self, scheduler: Any) -> None:
        assert FlowController(scheduler).state.view is View.WELCOME

    def test_allowed_moves(self, scheduler: Any) -> None:
        """Test the sign-in path through to the tutorial."""
        flow = FlowController(scheduler)

        flow.navigate(View.AUTH_CHOICE)
        flow.navigate(View.REGISTER)
        flow.navigate(View.INTERESTS)
        flow.navigate(View.TUTORIAL)

        assert flow.state.view is View.TUTORIAL

    def test_disallowed_move_raises(self, scheduler: Any) -> None:
        """Test that the result cannot be reached by navigation."""
        flow = FlowController(scheduler)

        with pytest.raises(FlowTransitionError) as exc_info:
            flow.navigate(View.RESULT)

        assert exc_info.value.view is View.WELCOME
        assert flow.state.view is View.WELCOME

    def test_quiz_starts_only_from_tutorial(self, scheduler: Any) -> None:
        flow = FlowController(scheduler)

        with pytest.raises(FlowTransitionError):
            flow.start_quiz()

    def test_start_quiz_resets_step(self, flow: FlowController) -> None:
        assert flow.state.view is View.QUIZ
        assert flow.state.step_index == 0
        assert flow.current_item == QUIZ_ITEMS[0]

    def test_chat_only_on_result(self, scheduler: Any) -> None:
        flow = FlowController(scheduler)

        with pytest.raises(FlowTransitionError):
            flow.open_chat()

    def test_resume_result(self, scheduler: Any) -> None:
        """Test that a cached result opens the result view with reset locked."""
        flow = FlowController(scheduler)
        result = compute_type({})

        flow.resume_result(result)

        assert flow.state.view is View.RESULT
        assert flow.state.result == result
        assert flow.state.reset_locked is True

    def test_resume_result_not_during_quiz(self, flow: FlowController) -> None:
        with pytest.raises(FlowTransitionError):
            flow.resume_result(compute_type({}))


class TestSelectAnswer:
    """Tests for answering questions."""

    def test_rejects_out_of_range(self, flow: FlowController) -> None:
        with pytest.raises(ValueError):
            flow.select_answer(6)
        with pytest.raises(ValueError):
            flow.select_answer(0)

    def test_ignored_outside_quiz(self, scheduler: Any) -> None:
        assert FlowController(scheduler).select_answer(3) is False

    def test_confirm_then_advance(self, flow: FlowController, scheduler: Any) -> None:
        """Test the confirm and advance phases of a single answer."""
        assert flow.select_answer(4) is True
        assert flow.state.answers == {1: 4}
        assert flow.state.guards.confirming is True

        scheduler.advance(CONFIRM)
        assert flow.state.guards.confirming is False
        assert flow.state.guards.advancing is True
        assert flow.state.step_index == 0

        scheduler.advance(ADVANCE)
        assert flow.state.guards.active is False
        assert flow.state.step_index == 1

    def test_burst_while_guarded_is_ignored(self, flow: FlowController, scheduler: Any) -> None:
        """Test that rapid repeated picks keep the first value and move once."""
        assert flow.select_answer(4) is True
        for value in (1, 2, 5, 5, 1):
            assert flow.select_answer(value) is False

        scheduler.advance(CONFIRM)
        assert flow.select_answer(2) is False

        scheduler.advance(ADVANCE)

        assert flow.state.answers == {1: 4}
        assert flow.state.step_index == 1
        assert scheduler.pending == 0

    def test_guards_are_mutually_exclusive(self, flow: FlowController, scheduler: Any) -> None:
        flow.select_answer(3)
        for _ in range(8):
            guards = flow.state.guards
            assert sum([guards.advancing, guards.confirming, guards.finalizing]) <= 1
            scheduler.advance(0.1)


class TestStepNavigation:
    """Tests for next_step and prev_step."""

    def test_next_requires_answer(self, flow: FlowController) -> None:
        assert flow.next_step() is False

    def test_prev_at_first_question(self, flow: FlowController) -> None:
        assert flow.prev_step() is False

    def test_back_then_forward_keeps_answers(self, flow: FlowController, scheduler: Any) -> None:
        """Test moving back to an answered question and forward again."""
        flow.select_answer(5)
        scheduler.advance(CONFIRM + ADVANCE)

        assert flow.prev_step() is True
        assert flow.state.guards.advancing is True
        assert flow.prev_step() is False
        scheduler.advance(ADVANCE)

        assert flow.state.step_index == 0
        assert flow.current_answer == 5

        assert flow.next_step() is True
        scheduler.advance(ADVANCE)
        assert flow.state.step_index == 1

    def test_changing_a_previous_answer(self, flow: FlowController, scheduler: Any) -> None:
        flow.select_answer(5)
        scheduler.advance(CONFIRM + ADVANCE)
        flow.prev_step()
        scheduler.advance(ADVANCE)

        flow.select_answer(1)
        scheduler.advance(CONFIRM + ADVANCE)

        assert flow.state.answers[1] == 1
        assert flow.state.step_index == 1

    def test_progress_percent(self, flow: FlowController, scheduler: Any) -> None:
        assert flow.progress_percent == 0
        answer_all_but_last(flow, scheduler)
        assert flow.progress_percent == round(31 / 32 * 100)


class TestCommit:
    """Tests for finishing the quiz."""

    def test_all_neutral_answers_reach_result_once(
        self, flow: FlowController, scheduler: Any, on_finalize: AsyncMock
    ) -> None:
        """Test the full closing sequence after the last answer."""
        answer_all_but_last(flow, scheduler)
        assert flow.state.step_index == 31

        assert flow.select_answer(3) is True
        scheduler.advance(CONFIRM)

        assert flow.state.step_index == 32
        assert flow.progress_percent == 100
        assert flow.state.guards.confirming is True
        assert flow.current_item is None
        assert flow.prev_step() is False

        scheduler.advance(PAUSE)
        assert flow.state.guards.finalizing is True
        assert flow.state.guards.confirming is False
        assert flow.state.result == compute_type({})
        assert flow.state.view is View.QUIZ
        assert flow.select_answer(3) is False

        scheduler.advance(FINALIZE)
        assert flow.state.view is View.RESULT
        assert flow.state.guards.active is False
        assert flow.state.result.code == "ISFJ"
        on_finalize.assert_called_once()
        assert on_finalize.call_args.args[0] == {item.id: 3 for item in QUIZ_ITEMS}

    def test_next_on_last_question_commits(
        self, flow: FlowController, scheduler: Any, on_finalize: AsyncMock
    ) -> None:
        """Test that next on an answered last question uses the commit path."""
        answer_all_but_last(flow, scheduler)
        flow.select_answer(5)
        scheduler.advance(CONFIRM + PAUSE + FINALIZE)
        assert flow.state.view is View.RESULT

        flow2 = FlowController(scheduler, FlowTimings(), on_finalize=on_finalize)
        start_quiz(flow2)
        answer_all_but_last(flow2, scheduler)
        flow2.state.answers[QUIZ_ITEMS[-1].id] = 4

        assert flow2.next_step() is True
        assert flow2.state.guards.confirming is True
        scheduler.advance(CONFIRM + PAUSE + FINALIZE)

        assert flow2.state.view is View.RESULT
        assert on_finalize.call_count == 2

    @pytest.mark.asyncio
    async def test_failing_commit_still_reaches_result(self, scheduler: Any) -> None:
        """Test that a persistence failure in the background leaves no guard set."""
        failing = AsyncMock(side_effect=RuntimeError("store down"))
        flow = FlowController(scheduler, FlowTimings(), on_finalize=failing)
        start_quiz(flow)
        answer_all_but_last(flow, scheduler)

        flow.select_answer(3)
        scheduler.advance(CONFIRM + PAUSE)
        with pytest.raises(RuntimeError):
            await scheduler.drain()
        scheduler.advance(FINALIZE)

        failing.assert_awaited_once()
        assert flow.state.view is View.RESULT
        assert flow.state.guards.active is False
        assert flow.state.result == compute_type({item.id: 3 for item in QUIZ_ITEMS})

    def test_no_guard_left_set(self, flow: FlowController, scheduler: Any) -> None:
        answer_all_but_last(flow, scheduler, value=2)
        flow.select_answer(2)
        scheduler.run_all()

        assert flow.state.guards.active is False
        assert flow.state.view is View.RESULT


class TestReset:
    """Tests for taking the test again."""

    def _finish(self, flow: FlowController, scheduler: Any) -> None:
        answer_all_but_last(flow, scheduler)
        flow.select_answer(3)
        scheduler.advance(CONFIRM + PAUSE + FINALIZE)

    def test_reset_locked_after_result(self, flow: FlowController, scheduler: Any) -> None:
        self._finish(flow, scheduler)

        assert flow.state.reset_locked is True
        with pytest.raises(FlowTransitionError):
            flow.reset()

    def test_reset_after_cooldown(self, flow: FlowController, scheduler: Any) -> None:
        """Test that reset clears answers and result and returns to sign-in."""
        self._finish(flow, scheduler)
        scheduler.advance(COOLDOWN)

        flow.reset()

        assert flow.state.view is View.AUTH_CHOICE
        assert flow.state.answers == {}
        assert flow.state.result is None
        assert flow.state.step_index == 0

    def test_reset_only_from_result(self, flow: FlowController) -> None:
        with pytest.raises(FlowTransitionError):
            flow.reset()

    def test_resume_restarts_cooldown(self, scheduler: Any) -> None:
        """Test that a timer from before a second resume no longer applies."""
        flow = FlowController(scheduler, FlowTimings())
        flow.resume_result(compute_type({}))
        scheduler.advance(10)
        flow.resume_result(compute_type({1: 5}))

        scheduler.advance(COOLDOWN - 10)
        assert flow.state.reset_locked is True

        scheduler.advance(10)
        assert flow.state.reset_locked is False


class TestSnapshot:
    """Tests for snapshot."""

    def test_snapshot_fields(self, flow: FlowController) -> None:
        snapshot = flow.snapshot()

        assert snapshot["view"] == "quiz"
        assert snapshot["item_count"] == 32
        assert snapshot["current_item_id"] == 1
        assert snapshot["current_answer"] is None
        assert snapshot["result_code"] is None
