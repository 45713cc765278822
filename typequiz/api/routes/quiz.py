"""Questionnaire and result routes."""

from fastapi import APIRouter

from typequiz.api.deps import Respondent
from typequiz.api.middleware.error_handler import ConflictError, NotFoundError
from typequiz.models.quiz import QUIZ_ITEMS
from typequiz.models.typology import get_type_profile
from typequiz.schemas.session import AnswerAccepted, FlowStateResponse
from typequiz.schemas.typology import AnalysisResponse, AnswerRequest, QuizItemResponse, ResultResponse
from typequiz.services.flow_controller import FlowTransitionError, View
from typequiz.services.respondent_session import RespondentSession

router = APIRouter(prefix="/quiz", tags=["quiz"])

NO_RESULT = "No result yet. Finish the quiz first."


def _require_quiz(session: RespondentSession) -> None:
    if session.flow.state.view is not View.QUIZ:
        raise ConflictError("The quiz is not in progress")


def _accepted(session: RespondentSession, accepted: bool) -> AnswerAccepted:
    return AnswerAccepted(accepted=accepted, flow=FlowStateResponse.from_flow(session.flow))


@router.get(
    "/items",
    response_model=list[QuizItemResponse],
    summary="List questionnaire items",
)
async def list_items() -> list[QuizItemResponse]:
    """Return the questionnaire items in order."""
    return [QuizItemResponse.model_validate(item) for item in QUIZ_ITEMS]


@router.post(
    "/start",
    response_model=FlowStateResponse,
    summary="Start the quiz from the tutorial",
    responses={409: {"description": "Not on the tutorial screen"}},
)
async def start_quiz(session: Respondent) -> FlowStateResponse:
    """Enter the quiz at the first question."""
    try:
        session.flow.start_quiz()
    except FlowTransitionError as e:
        raise ConflictError(e.message) from e
    return FlowStateResponse.from_flow(session.flow)


@router.post(
    "/answer",
    response_model=AnswerAccepted,
    summary="Answer the question on screen",
    responses={409: {"description": "The quiz is not in progress"}},
)
async def answer(data: AnswerRequest, session: Respondent) -> AnswerAccepted:
    """Pick an answer for the current question.

    The pick is ignored (``accepted`` false) while a transition is running.
    Answering the last question commits the result after the closing
    transition.
    """
    _require_quiz(session)
    return _accepted(session, session.flow.select_answer(data.value))


@router.post(
    "/next",
    response_model=AnswerAccepted,
    summary="Go to the next question",
    responses={409: {"description": "The quiz is not in progress"}},
)
async def next_question(session: Respondent) -> AnswerAccepted:
    """Move forward from an answered question; on the last one, commit."""
    _require_quiz(session)
    return _accepted(session, session.flow.next_step())


@router.post(
    "/back",
    response_model=AnswerAccepted,
    summary="Go to the previous question",
    responses={409: {"description": "The quiz is not in progress"}},
)
async def previous_question(session: Respondent) -> AnswerAccepted:
    """Move back one question."""
    _require_quiz(session)
    return _accepted(session, session.flow.prev_step())


@router.get(
    "/result",
    response_model=ResultResponse,
    summary="Get the committed result",
    responses={404: {"description": "No result yet"}},
)
async def get_result(session: Respondent) -> ResultResponse:
    """Return the result with its type description.

    ``save_error`` is set when the result could not be saved remotely; the
    result itself is kept.
    """
    result = session.flow.state.result
    if session.flow.state.view is not View.RESULT or result is None:
        raise NotFoundError(NO_RESULT)

    profile = get_type_profile(result.code)
    return ResultResponse(
        result=result,
        name=profile["name"],
        description=profile["description"],
        save_error=session.reconciler.last_error,
    )


@router.get(
    "/result/analysis",
    response_model=AnalysisResponse,
    summary="Get the narrative analysis of the result",
    responses={404: {"description": "No result yet"}},
)
async def get_analysis(session: Respondent) -> AnalysisResponse:
    """Return the narrative analysis, requested once per result."""
    result = session.flow.state.result
    if session.flow.state.view is not View.RESULT or result is None:
        raise NotFoundError(NO_RESULT)

    try:
        analysis = await session.reconciler.detailed_analysis()
    except ValueError as e:
        raise NotFoundError(NO_RESULT) from e
    return AnalysisResponse(code=result.code, analysis=analysis)
