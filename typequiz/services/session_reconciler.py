"""Keeps the local session cache and the remote store in step.

The local cache is written first and always wins: a remote failure is
logged and surfaced as ``last_error`` but never rolls back what the
respondent already sees.
"""

import logging
from collections.abc import AsyncIterator, Mapping
from typing import Any

from openai import OpenAIError

from typequiz.core.config import get_settings
from typequiz.models.message import MessageRole, Rating
from typequiz.models.typology import get_type_profile
from typequiz.schemas.chat import ChatMessage
from typequiz.schemas.profile import Profile
from typequiz.schemas.typology import TypologyResult
from typequiz.services.chat_service import (
    ANALYSIS_FALLBACK,
    ChatService,
    PsychologistChat,
    fallback_message_for,
)
from typequiz.services.local_cache import LocalCache
from typequiz.services.message_tags import sanitize_model_text, strip_tag, with_tag
from typequiz.services.phone import ANONYMOUS_PHONE, canonicalize, is_anonymous
from typequiz.services.profile_service import ProfileService, add_interest, toggle_interest
from typequiz.services.scoring import compute_type
from typequiz.services.store import QuizStore

logger = logging.getLogger(__name__)

SAVE_RESULT_FAILED = "Failed to save results."


class SessionReconciler:
    """Owns one respondent's profile, result and chat log."""

    def __init__(
        self,
        cache: LocalCache,
        store: QuizStore | None = None,
        chat_service: ChatService | None = None,
        profile_service: ProfileService | None = None,
    ) -> None:
        """Initialize the reconciler.

        Args:
            cache: Session cache; the source of truth for this session.
            store: Optional remote store for testing.
            chat_service: Optional chat service for testing.
            profile_service: Optional profile service for testing.
        """
        self.settings = get_settings()
        self.cache = cache
        self.store = store or QuizStore()
        self.chat_service = chat_service or ChatService()
        self.profile_service = profile_service or ProfileService(self.store)
        self.messages: list[ChatMessage] = []
        self.chat: PsychologistChat | None = None
        self.last_error: str | None = None
        self._analysis: tuple[str, str] | None = None

    @property
    def profile(self) -> Profile | None:
        return self.cache.load_profile()

    @property
    def result(self) -> TypologyResult | None:
        return self.cache.load_result()

    @property
    def phone(self) -> str:
        """Canonical phone of the session, or the anonymous sentinel."""
        return self.cache.phone or ANONYMOUS_PHONE

    # Results

    async def commit_result(self, answers: Mapping[int, int]) -> TypologyResult:
        """Score a finished answer set, cache it, then save it remotely.

        Returns:
            TypologyResult: The committed result, also when the remote save failed.
        """
        result = compute_type(answers)
        profile = self.profile

        self.cache.save_result(result)
        if profile is not None:
            self.cache.save_profile(profile)
        self.last_error = None
        self._analysis = None

        if profile is None or is_anonymous(profile.phone):
            logger.debug("No profile for this session, result kept locally only")
            return result

        try:
            await self.store.upsert_result(profile, result)
        except Exception as e:
            logger.error("Failed to save result for %s: %s", profile.canonical_phone, str(e))
            self.last_error = SAVE_RESULT_FAILED

        return result

    async def detailed_analysis(self) -> str:
        """Narrative for the committed result, requested once per result code.

        Raises:
            ValueError: If no result has been committed.
        """
        result = self.result
        if result is None:
            raise ValueError("No result to analyse")

        if self._analysis is not None and self._analysis[0] == result.code:
            return self._analysis[1]

        profile = self.profile
        text = await self.chat_service.detailed_analysis(
            code=result.code,
            type_name=get_type_profile(result.code)["name"],
            first_name=profile.first_name if profile else "",
            age=profile.age if profile else "",
        )
        if text != ANALYSIS_FALLBACK:
            self._analysis = (result.code, text)
        return text

    # Profile

    async def register(self, profile: Profile) -> None:
        """Save a new profile remotely, then cache it.

        Raises:
            Exception: Whatever the store raised; nothing is cached in that case.
        """
        await self.store.upsert_profile(profile)
        self.cache.save_profile(profile)
        logger.info("Registered profile %s", profile.canonical_phone)

    async def login(self, phone: str, password: str) -> tuple[Profile, TypologyResult | None, bool]:
        """Log in with a phone and password.

        Returns:
            tuple: (profile, stored result, whether the respondent is retaking the test).
                The stored result is only cached when not retaking.

        Raises:
            LoginFailed: If the phone is unknown or the password is wrong.
        """
        profile, result = await self.profile_service.login(phone, password)
        retake = self.cache.pop_retake()

        self.cache.save_profile(profile)
        if result is not None and not retake:
            self.cache.save_result(result)
        return profile, result, retake

    async def toggle_interest(self, label: str) -> Profile:
        """Select or deselect an interest on the cached profile."""
        return await self._update_interests(toggle_interest, label)

    async def add_interest(self, label: str) -> Profile:
        """Add a typed-in interest to the cached profile."""
        return await self._update_interests(add_interest, label)

    async def _update_interests(self, change: Any, label: str) -> Profile:
        profile = self.profile
        if profile is None:
            raise ValueError("No profile in this session")

        updated = profile.model_copy(update={"interests": change(profile.interests, label)})
        self.cache.save_profile(updated)
        try:
            await self.store.upsert_profile(updated)
        except Exception as e:
            logger.error("Failed to sync interests for %s: %s", updated.canonical_phone, str(e))
        return updated

    # Chat persistence

    async def append_message(
        self,
        phone: str,
        role: MessageRole,
        text: str,
        rating: Rating | None = None,
    ) -> int | None:
        """Store one chat message.

        Assistant messages are stored with a rating tag (neutral when
        unrated); user messages are stored as typed.

        Returns:
            int | None: The row id when the store reports one.
        """
        if is_anonymous(phone):
            return None

        content = with_tag(text, rating) if role is MessageRole.ASSISTANT else text
        try:
            row = await self.store.append_chat_row(canonicalize(phone), role, content)
        except Exception as e:
            logger.error("Failed to save %s message: %s", role.value, str(e))
            return None

        return row.get("id") if row else None

    async def set_rating(self, phone: str, message: ChatMessage, rating: Rating | None) -> bool:
        """Persist a rating change on an assistant message.

        Messages without a known id are matched against the most recent rows
        of the same role by their decoded text. When two recent messages
        share the same text the newest one is updated.

        Returns:
            bool: False when the message could not be found or the write failed.

        Raises:
            ValueError: If the message is not an assistant message.
        """
        if message.role is not MessageRole.ASSISTANT:
            raise ValueError("Only assistant messages can be rated")
        if is_anonymous(phone):
            return False

        phone = canonicalize(phone)
        try:
            if message.id is not None:
                message_id = message.id
                content = await self.store.get_chat_content(message_id)
            else:
                rows = await self.store.list_chat_rows(
                    phone,
                    role=message.role,
                    newest_first=True,
                    limit=self.settings.rating_lookup_window,
                )
                match = next(
                    (row for row in rows if strip_tag(row.get("content")).display_text == message.text),
                    None,
                )
                if match is None:
                    logger.debug("No stored message matches the rated text, rating not saved")
                    return False
                message_id = match["id"]
                content = match.get("content")
                message.id = message_id

            if content is None:
                logger.debug("Message %s no longer stored, rating not saved", message_id)
                return False

            await self.store.patch_chat_content(message_id, with_tag(strip_tag(content).display_text, rating))
        except Exception as e:
            logger.error("Failed to save rating: %s", str(e))
            return False

        return True

    async def load_history(self, phone: str) -> list[ChatMessage]:
        """Load the full chat log for a phone, oldest first."""
        if is_anonymous(phone):
            return []

        try:
            rows = await self.store.list_chat_rows(
                canonicalize(phone),
                limit=self.settings.max_history_messages,
            )
        except Exception as e:
            logger.error("Failed to load chat history: %s", str(e))
            return []

        messages: list[ChatMessage] = []
        for row in rows:
            try:
                role = MessageRole.from_stored(row.get("role", ""))
            except ValueError:
                logger.warning("Skipping chat row %s with unknown role %r", row.get("id"), row.get("role"))
                continue

            decoded = strip_tag(row.get("content"))
            fields: dict[str, Any] = {
                "id": row.get("id"),
                "role": role,
                "text": decoded.display_text,
                "rating": decoded.rating if role is MessageRole.ASSISTANT else None,
            }
            if row.get("created_at"):
                fields["created_at"] = row["created_at"]
            messages.append(ChatMessage(**fields))

        return messages

    # Chat session

    async def open_chat(self) -> list[ChatMessage]:
        """Load history and seed a new conversational context.

        Raises:
            ValueError: If no result has been committed.
        """
        result = self.result
        if result is None:
            raise ValueError("Chat needs a committed result")

        profile = self.profile
        self.messages = await self.load_history(self.phone)
        self.chat = self.chat_service.create_chat(
            code=result.code,
            type_name=get_type_profile(result.code)["name"],
            first_name=profile.first_name if profile else "",
            age=profile.age if profile else "",
            interests=profile.interests if profile else [],
            history=self.messages,
        )
        logger.info("Chat opened with %d stored messages", len(self.messages))
        return self.messages

    async def send_message(self, text: str) -> AsyncIterator[str]:
        """Send a user message and yield the display-safe reply.

        Both turns are stored once the reply has finished streaming. When
        the provider fails, a fallback reply is shown but not stored.
        """
        if self.chat is None:
            await self.open_chat()

        user_message = ChatMessage(role=MessageRole.USER, text=text)
        self.messages.append(user_message)

        parts: list[str] = []
        try:
            async for chunk in self.chat.send_message_stream(text):
                clean = sanitize_model_text(chunk)
                if clean:
                    parts.append(clean)
                    yield clean
        except OpenAIError as e:
            logger.error("Chat provider error: %s", str(e))
            fallback = fallback_message_for(e)
            self.messages.append(ChatMessage(role=MessageRole.ASSISTANT, text=fallback))
            yield fallback
            return

        reply = sanitize_model_text("".join(parts)).strip()
        assistant_message = ChatMessage(role=MessageRole.ASSISTANT, text=reply)
        self.messages.append(assistant_message)

        phone = self.phone
        user_message.id = await self.append_message(phone, MessageRole.USER, text)
        assistant_message.id = await self.append_message(phone, MessageRole.ASSISTANT, reply)

    async def toggle_rating(self, index: int, rating: Rating) -> ChatMessage:
        """Apply a rating click; clicking the current rating again clears it.

        Raises:
            IndexError: If there is no message at ``index``.
            ValueError: If the message is not an assistant message.
        """
        if not 0 <= index < len(self.messages):
            raise IndexError(f"No message at index {index}")

        message = self.messages[index]
        if message.role is not MessageRole.ASSISTANT:
            raise ValueError("Only assistant messages can be rated")

        message.rating = None if message.rating is rating else rating
        await self.set_rating(self.phone, message, message.rating)
        return message

    def close_chat(self) -> None:
        self.chat = None
