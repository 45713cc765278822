"""Conversational assistant backed by OpenAI chat completions."""

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence
from typing import Any

from openai import OpenAIError

from typequiz.core.config import get_settings
from typequiz.core.openai import TimedOpenAIClient, get_openai_client
from typequiz.models.message import MessageRole
from typequiz.schemas.chat import ChatMessage

logger = logging.getLogger(__name__)

CHAT_SYSTEM_PROMPT = """You are a warm, attentive psychologist chatting with {first_name} ({age} years old).
Their personality test result is {code} ("{type_name}").
Their interests: {interests}.

Guidelines:
- Speak in a friendly, supportive, conversational tone; address them by first name.
- Draw on what their type suggests about how they perceive the world and make decisions,
  but treat it as a lens, never a verdict.
- Connect advice to their interests when it helps.
- Keep replies concise (2-4 short paragraphs) and end with a gentle question when natural.
- You are not a substitute for professional care; suggest one if they describe a crisis."""

ANALYSIS_PROMPT = """Write a personal description of the {code} ("{type_name}") personality type
for {first_name}, who is {age} years old. Cover strengths, growth areas, how they relate to others,
and a few concrete suggestions. Use short markdown sections. Address {first_name} directly."""

ANALYSIS_FALLBACK = "The detailed description is not available right now. Please try again a little later."

GENERIC_FALLBACK = (
    "Sorry, something didn't work on my side. Please try again a little later. I'm here for you! 💚"
)
QUOTA_FALLBACK = (
    "I'm so sorry! My request limit for today has run out. Come back tomorrow, I'll be waiting for you! 💫"
)
DAILY_LIMIT_FALLBACK = (
    "Looks like I've reached my daily limit for helping. It's not forever, let's talk tomorrow! 🌟"
)

MOCK_REPLY = (
    "[MOCK] Thank you for sharing that with me. It sounds like this matters a lot to you. "
    "What feels most important about it right now?"
)


def fallback_message_for(error: BaseException) -> str:
    """Pick the reply shown when the provider fails."""
    text = str(error).lower()
    if "429" in text or "quota" in text or "exhausted" in text:
        return QUOTA_FALLBACK
    if "limit" in text or "usage" in text:
        return DAILY_LIMIT_FALLBACK
    return GENERIC_FALLBACK


class PsychologistChat:
    """One conversational context.

    The context is seeded once with the respondent's details and prior
    turns. A reply stream cannot be restarted; create a new context to retry.
    """

    def __init__(
        self,
        client: TimedOpenAIClient | None,
        model: str,
        messages: list[dict[str, str]],
        mock: bool = False,
    ) -> None:
        self._client = client
        self._model = model
        self.messages = messages
        self._mock = mock

    async def send_message_stream(self, text: str) -> AsyncIterator[str]:
        """Send a user message and yield the reply in chunks.

        Raises:
            OpenAIError: If the provider rejects the request or the stream breaks.
        """
        self.messages.append({"role": MessageRole.USER.value, "content": text})
        reply: list[str] = []

        if self._mock:
            for word in MOCK_REPLY.split(" "):
                chunk = word + " "
                reply.append(chunk)
                yield chunk
        else:
            stream = self._client.chat.stream(model=self._model, messages=self.messages, temperature=0.8)
            while True:
                # The SDK stream is blocking; pull each chunk off the event loop.
                chunk = await asyncio.to_thread(next, stream, None)
                if chunk is None:
                    break
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    reply.append(delta)
                    yield delta

        self.messages.append({"role": MessageRole.ASSISTANT.value, "content": "".join(reply).strip()})


class ChatService:
    """Creates chat contexts and one-off narrative analyses."""

    def __init__(self, client: TimedOpenAIClient | None = None) -> None:
        """Initialize the chat service.

        Args:
            client: Optional OpenAI client for testing.
        """
        self.settings = get_settings()
        self.client = client or get_openai_client()

    def create_chat(
        self,
        code: str,
        type_name: str,
        first_name: str,
        age: int | str,
        interests: Sequence[str],
        history: Sequence[ChatMessage],
    ) -> PsychologistChat:
        """Build a conversational context seeded with the profile and prior turns."""
        system_prompt = CHAT_SYSTEM_PROMPT.format(
            first_name=first_name or "friend",
            age=age or "unknown",
            code=code,
            type_name=type_name,
            interests=", ".join(interests) if interests else "not specified",
        )
        messages: list[dict[str, str]] = [{"role": "system", "content": system_prompt}]
        for message in history:
            messages.append({"role": message.role.value, "content": message.text})

        return PsychologistChat(
            client=self.client,
            model=self.settings.openai_model,
            messages=messages,
            mock=bool(self.settings.mock_openai),
        )

    async def detailed_analysis(self, code: str, type_name: str, first_name: str, age: int | str) -> str:
        """Request a narrative description of a result.

        Returns:
            str: The narrative, or a fallback text when the provider fails.
        """
        if self.settings.mock_openai:
            logger.info("Mock mode enabled - returning mock analysis")
            return f"[MOCK] {first_name}, as {code} ({type_name}) you bring a distinctive way of seeing the world."

        prompt = ANALYSIS_PROMPT.format(code=code, type_name=type_name, first_name=first_name, age=age)
        try:
            response: Any = await asyncio.to_thread(
                self.client.chat.create,
                model=self.settings.openai_model,
                messages=[{"role": "user", "content": prompt}],
                max_completion_tokens=1200,
                temperature=0.7,
            )
        except OpenAIError as e:
            logger.error("OpenAI analysis error: %s", str(e))
            return ANALYSIS_FALLBACK

        return response.choices[0].message.content or ANALYSIS_FALLBACK
