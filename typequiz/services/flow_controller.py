"""Respondent journey state machine.

The journey runs welcome -> auth -> interests -> tutorial -> quiz -> result,
with the chat as an overlay on the result. Inside the quiz, each answer plays
out as timed phases. Three mutually exclusive guards mark those phases:

- ``confirming``: the picked answer is highlighted before moving on
- ``advancing``: the transition to the neighbouring question
- ``finalizing``: scoring and the transition into the result view

While any guard is set, answer picks and forward/back moves are ignored, so
every question keeps the value of the last accepted pick and a burst of
clicks moves the step index at most once.
"""

import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from typequiz.core.scheduler import Scheduler
from typequiz.models.quiz import MAX_MAGNITUDE, MIN_MAGNITUDE, QUIZ_ITEMS, QuizItem
from typequiz.schemas.typology import TypologyResult
from typequiz.services.scoring import compute_type

logger = logging.getLogger(__name__)

FinalizeHook = Callable[[dict[int, int]], Awaitable[Any]]


class View(str, Enum):
    """Top-level screens of the journey."""

    WELCOME = "welcome"
    AUTH_CHOICE = "auth_choice"
    LOGIN = "login"
    REGISTER = "register"
    INTERESTS = "interests"
    TUTORIAL = "tutorial"
    QUIZ = "quiz"
    RESULT = "result"


# Moves a respondent may request directly. The quiz is entered through
# start_quiz() and the result only through the commit sequence, a login or
# a cache resume.
NAVIGATION: dict[View, frozenset[View]] = {
    View.WELCOME: frozenset({View.AUTH_CHOICE, View.LOGIN, View.REGISTER, View.INTERESTS}),
    View.AUTH_CHOICE: frozenset({View.WELCOME, View.LOGIN, View.REGISTER}),
    View.LOGIN: frozenset({View.AUTH_CHOICE, View.WELCOME, View.INTERESTS}),
    View.REGISTER: frozenset({View.AUTH_CHOICE, View.INTERESTS}),
    View.INTERESTS: frozenset({View.TUTORIAL}),
    View.TUTORIAL: frozenset({View.INTERESTS}),
    View.QUIZ: frozenset(),
    View.RESULT: frozenset(),
}


class FlowTransitionError(Exception):
    """Raised when a requested move is not allowed from the current state."""

    def __init__(self, message: str, view: "View") -> None:
        self.message = message
        self.view = view
        super().__init__(message)


@dataclass
class FlowTimings:
    """Phase durations in seconds."""

    confirm_delay: float = 0.4
    advance_delay: float = 0.3
    completion_pause: float = 0.6
    finalize_transition: float = 1.2
    reset_cooldown: float = 30.0

    @classmethod
    def from_settings(cls) -> "FlowTimings":
        """Create timings from application settings."""
        from typequiz.core.config import get_settings

        settings = get_settings()
        return cls(
            confirm_delay=settings.confirm_delay_seconds,
            advance_delay=settings.advance_delay_seconds,
            completion_pause=settings.completion_pause_seconds,
            finalize_transition=settings.finalize_transition_seconds,
            reset_cooldown=settings.reset_cooldown_seconds,
        )


@dataclass
class Guards:
    """Flags that block input while a timed phase runs."""

    advancing: bool = False
    confirming: bool = False
    finalizing: bool = False

    @property
    def active(self) -> bool:
        return self.advancing or self.confirming or self.finalizing


@dataclass
class FlowState:
    """Everything the controller owns for one respondent session."""

    view: View = View.WELCOME
    step_index: int = 0
    guards: Guards = field(default_factory=Guards)
    answers: dict[int, int] = field(default_factory=dict)
    result: TypologyResult | None = None
    chat_open: bool = False
    reset_locked: bool = False


class FlowController:
    """Drives a single respondent through the journey."""

    def __init__(
        self,
        scheduler: Scheduler,
        timings: FlowTimings | None = None,
        items: Sequence[QuizItem] = QUIZ_ITEMS,
        on_finalize: FinalizeHook | None = None,
    ) -> None:
        """Initialize the controller.

        Args:
            scheduler: Runs the timed phase continuations.
            timings: Phase durations; defaults match the client animations.
            items: Questionnaire items in order.
            on_finalize: Persists a finished answer set. Spawned in the
                background; its outcome does not hold up the result view.
        """
        self.scheduler = scheduler
        self.timings = timings or FlowTimings()
        self.items = tuple(items)
        self.on_finalize = on_finalize
        self.state = FlowState()
        # Bumped whenever pending timers must stop applying (reset, resume).
        self._epoch = 0

    @property
    def item_count(self) -> int:
        return len(self.items)

    @property
    def current_item(self) -> QuizItem | None:
        """The question on screen, or None when the progress bar is full."""
        if self.state.view is not View.QUIZ or self.state.step_index >= self.item_count:
            return None
        return self.items[self.state.step_index]

    @property
    def current_answer(self) -> int | None:
        item = self.current_item
        if item is None:
            return None
        return self.state.answers.get(item.id)

    @property
    def progress_percent(self) -> int:
        return round(self.state.step_index / self.item_count * 100)

    # View navigation

    def navigate(self, target: View) -> None:
        """Move between screens outside the quiz.

        Raises:
            FlowTransitionError: If the move is not allowed from the current view.
        """
        current = self.state.view
        if target not in NAVIGATION[current]:
            raise FlowTransitionError(f"Cannot move from {current.value} to {target.value}", current)
        self.state.view = target
        logger.debug("Flow moved %s -> %s", current.value, target.value)

    def start_quiz(self) -> None:
        """Enter the quiz from the tutorial at the first question."""
        if self.state.view is not View.TUTORIAL:
            raise FlowTransitionError("The quiz starts from the tutorial", self.state.view)
        self.state.view = View.QUIZ
        self.state.step_index = 0

    def resume_result(self, result: TypologyResult) -> None:
        """Jump straight to a previously committed result (cache resume or login)."""
        if self.state.view is View.QUIZ:
            raise FlowTransitionError("Cannot resume a result during the quiz", self.state.view)
        self._epoch += 1
        self.state.guards = Guards()
        self.state.result = result
        self._enter_result()

    def open_chat(self) -> None:
        if self.state.view is not View.RESULT:
            raise FlowTransitionError("Chat is only available on the result", self.state.view)
        self.state.chat_open = True

    def close_chat(self) -> None:
        self.state.chat_open = False

    def reset(self) -> None:
        """Start over after a result ("take the test again")."""
        if self.state.view is not View.RESULT:
            raise FlowTransitionError("Only a finished quiz can be reset", self.state.view)
        if self.state.reset_locked:
            raise FlowTransitionError("Reset is not available yet", self.state.view)
        self._epoch += 1
        self.state = FlowState(view=View.AUTH_CHOICE)

    # Quiz input

    def select_answer(self, value: int) -> bool:
        """Record an answer for the question on screen.

        Args:
            value: Magnitude from 1 to 5.

        Returns:
            bool: False when the pick was ignored because a phase is running.

        Raises:
            ValueError: If the magnitude is outside 1-5.
        """
        if not MIN_MAGNITUDE <= value <= MAX_MAGNITUDE:
            raise ValueError(f"Answer must be between {MIN_MAGNITUDE} and {MAX_MAGNITUDE}, got {value}")

        item = self.current_item
        if item is None or self.state.guards.active:
            return False

        self.state.answers[item.id] = value
        self.state.guards.confirming = True
        self._after(self.timings.confirm_delay, self._after_confirm)
        return True

    def next_step(self) -> bool:
        """Move forward from an answered question.

        On the last question this replays the answer through select_answer so
        the result is committed by exactly one code path.
        """
        answer = self.current_answer
        if answer is None or self.state.guards.active:
            return False

        if self.state.step_index >= self.item_count - 1:
            return self.select_answer(answer)

        self._advance(1)
        return True

    def prev_step(self) -> bool:
        """Move back one question."""
        if (
            self.state.view is not View.QUIZ
            or self.state.step_index == 0
            or self.state.guards.active
        ):
            return False

        self._advance(-1)
        return True

    # Timed phases

    def _after(self, delay: float, transition: Callable[[], None]) -> None:
        epoch = self._epoch

        def run() -> None:
            if epoch == self._epoch:
                transition()

        self.scheduler.after(delay, run)

    def _advance(self, delta: int) -> None:
        self.state.guards.advancing = True
        self._after(self.timings.advance_delay, lambda: self._finish_advance(delta))

    def _finish_advance(self, delta: int) -> None:
        self.state.step_index = max(0, min(self.state.step_index + delta, self.item_count - 1))
        self.state.guards.advancing = False
        self.state.guards.confirming = False

    def _after_confirm(self) -> None:
        if self.state.step_index < self.item_count - 1:
            self.state.guards.confirming = False
            self._advance(1)
            return

        # Last question: show the full progress bar, still guarded.
        self.state.step_index = self.item_count
        self._after(self.timings.completion_pause, self._begin_finalize)

    def _begin_finalize(self) -> None:
        guards = self.state.guards
        guards.confirming = False
        guards.finalizing = True

        answers = dict(self.state.answers)
        self.state.result = compute_type(answers)
        # Persistence failures surface through the scheduler; the view still advances.
        if self.on_finalize is not None:
            self.scheduler.spawn(self.on_finalize(answers))

        self._after(self.timings.finalize_transition, self._finish_finalize)

    def _finish_finalize(self) -> None:
        self.state.guards.finalizing = False
        self._enter_result()
        logger.info("Quiz committed with code %s", self.state.result.code if self.state.result else None)

    def _enter_result(self) -> None:
        self.state.view = View.RESULT
        self.state.chat_open = False
        self.state.reset_locked = True
        self._after(self.timings.reset_cooldown, self._unlock_reset)

    def _unlock_reset(self) -> None:
        self.state.reset_locked = False

    def snapshot(self) -> Mapping[str, Any]:
        """Plain view of the state for responses and logs."""
        state = self.state
        item = self.current_item
        return {
            "view": state.view.value,
            "step_index": state.step_index,
            "item_count": self.item_count,
            "progress_percent": self.progress_percent,
            "current_item_id": item.id if item else None,
            "current_answer": self.current_answer,
            "advancing": state.guards.advancing,
            "confirming": state.guards.confirming,
            "finalizing": state.guards.finalizing,
            "answered": len(state.answers),
            "chat_open": state.chat_open,
            "reset_locked": state.reset_locked,
            "result_code": state.result.code if state.result else None,
        }
