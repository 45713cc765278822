"""Chat routes for talking about the result with the assistant."""

import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from typequiz.api.deps import Respondent
from typequiz.api.middleware.error_handler import ConflictError, NotFoundError, ValidationError
from typequiz.schemas.chat import ChatMessage, ChatMessageListResponse, RateMessageRequest, SendMessageRequest
from typequiz.schemas.session import FlowStateResponse
from typequiz.services.flow_controller import FlowTransitionError
from typequiz.services.respondent_session import RespondentSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post(
    "/open",
    response_model=ChatMessageListResponse,
    summary="Open the chat on the result",
    responses={
        404: {"description": "No result is cached for the session"},
        409: {"description": "No result is shown"},
    },
)
async def open_chat(session: Respondent) -> ChatMessageListResponse:
    """Open the chat overlay, loading the stored conversation."""
    try:
        session.flow.open_chat()
    except FlowTransitionError as e:
        raise ConflictError(e.message) from e

    try:
        messages = await session.reconciler.open_chat()
    except ValueError as e:
        session.flow.close_chat()
        raise NotFoundError("No result is cached for this session") from e
    return ChatMessageListResponse(messages=messages)


@router.post(
    "/close",
    response_model=FlowStateResponse,
    summary="Close the chat",
)
async def close_chat(session: Respondent) -> FlowStateResponse:
    """Hide the chat overlay. The conversation context is kept."""
    session.flow.close_chat()
    return FlowStateResponse.from_flow(session.flow)


@router.get(
    "/messages",
    response_model=ChatMessageListResponse,
    summary="List chat messages",
)
async def list_messages(session: Respondent) -> ChatMessageListResponse:
    """Return the conversation as shown, oldest first."""
    return ChatMessageListResponse(messages=session.reconciler.messages)


async def _stream_reply(session: RespondentSession, text: str) -> AsyncIterator[str]:
    try:
        async for chunk in session.reconciler.send_message(text):
            yield chunk
    finally:
        session.chat_busy = False


@router.post(
    "/messages",
    summary="Send a message",
    response_class=StreamingResponse,
    responses={
        200: {"content": {"text/plain": {}}, "description": "The reply, streamed as it is generated"},
        409: {"description": "Chat is closed or a reply is still streaming"},
    },
)
async def send_message(data: SendMessageRequest, session: Respondent) -> StreamingResponse:
    """Send a message and stream the assistant's reply as plain text.

    Both turns are stored once the reply is complete. If the assistant is
    unavailable a short explanation is streamed instead.
    """
    text = data.text.strip()
    if not text:
        raise ValidationError(
            "Message is empty",
            details=[{"loc": ["text"], "msg": "Message is empty", "type": "value_error"}],
        )
    if not session.flow.state.chat_open:
        raise ConflictError("Open the chat first")
    if session.chat_busy:
        raise ConflictError("A reply is still being written")

    session.chat_busy = True
    return StreamingResponse(_stream_reply(session, text), media_type="text/plain; charset=utf-8")


@router.post(
    "/messages/{index}/rating",
    response_model=ChatMessage,
    summary="Rate an assistant message",
    responses={
        404: {"description": "No message at this index"},
        422: {"description": "Only assistant messages can be rated"},
    },
)
async def rate_message(index: int, data: RateMessageRequest, session: Respondent) -> ChatMessage:
    """Like or dislike an assistant message; repeating a rating clears it."""
    try:
        return await session.reconciler.toggle_rating(index, data.rating)
    except IndexError as e:
        raise NotFoundError(f"No message at index {index}") from e
    except ValueError as e:
        raise ValidationError(str(e)) from e
