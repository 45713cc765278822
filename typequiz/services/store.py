"""Supabase-backed remote store for profiles, results and chat history."""

import logging
from datetime import datetime, timezone
from typing import Any

from typequiz.core.supabase import get_supabase_client
from typequiz.models.message import ChatHistoryRow, MessageRole
from typequiz.models.quiz_result import QuizResultRow
from typequiz.schemas.profile import Profile
from typequiz.schemas.typology import TypologyResult
from typequiz.services.phone import ANONYMOUS_PHONE, canonicalize

logger = logging.getLogger(__name__)

RESULTS_TABLE = "quiz_results"
CHAT_TABLE = "chat_history"


def _parse_age(age: Any) -> int:
    try:
        return int(age)
    except (TypeError, ValueError):
        return 0


class QuizStore:
    """Row store keyed by canonical phone.

    Profile rows are written with upserts on ``phone`` so repeated writes
    merge into one row per respondent.
    """

    def __init__(self) -> None:
        """Initialize the store with the Supabase client."""
        self.client = get_supabase_client()

    def _profile_payload(self, profile: Profile) -> dict[str, Any]:
        return {
            "phone": profile.canonical_phone,
            "first_name": profile.first_name,
            "last_name": profile.last_name or "",
            "password": profile.credential or "",
            "age": _parse_age(profile.age),
            "interests": list(profile.interests),
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }

    async def upsert_profile(self, profile: Profile) -> None:
        """Create or update the profile columns of a respondent's row."""
        (
            self.client.table(RESULTS_TABLE)
            .upsert(self._profile_payload(profile), on_conflict="phone")
            .execute()
        )

    async def upsert_result(self, profile: Profile, result: TypologyResult) -> None:
        """Create or update a respondent's row with the profile and result."""
        payload = self._profile_payload(profile)
        payload.update(
            {
                "personality_type": result.code,
                "ei_score": result.ei,
                "sn_score": result.sn,
                "ft_score": result.ft,
                "jp_score": result.jp,
            }
        )
        self.client.table(RESULTS_TABLE).upsert(payload, on_conflict="phone").execute()

    async def get_profile_row(self, phone: str) -> QuizResultRow | None:
        """Fetch the single row stored for a phone.

        Args:
            phone: Phone in any formatting; canonicalized here.

        Returns:
            dict | None: The row or None if not found.
        """
        response = (
            self.client.table(RESULTS_TABLE)
            .select("*")
            .eq("phone", canonicalize(phone))
            .limit(1)
            .execute()
        )

        return response.data[0] if response.data else None

    async def append_chat_row(self, phone: str, role: MessageRole, content: str) -> ChatHistoryRow | None:
        """Append a chat row.

        Returns:
            dict | None: The inserted row when the store returns it.
        """
        response = (
            self.client.table(CHAT_TABLE)
            .insert({"phone": phone, "role": role.value, "content": content})
            .execute()
        )

        return response.data[0] if response.data else None

    async def get_chat_content(self, message_id: int) -> str | None:
        """Fetch the stored content of one chat row."""
        response = (
            self.client.table(CHAT_TABLE)
            .select("content")
            .eq("id", message_id)
            .execute()
        )

        return response.data[0].get("content") if response.data else None

    async def list_chat_rows(
        self,
        phone: str,
        role: MessageRole | None = None,
        newest_first: bool = False,
        limit: int = 3000,
    ) -> list[ChatHistoryRow]:
        """List chat rows for a phone ordered by creation time.

        Args:
            phone: Canonical phone.
            role: Optional role filter.
            newest_first: Order descending instead of ascending.
            limit: Maximum rows to return.

        Returns:
            list[dict]: Rows with id, role, content and created_at.
        """
        query = (
            self.client.table(CHAT_TABLE)
            .select("id, role, content, created_at")
            .eq("phone", phone)
        )

        if role is not None:
            query = query.eq("role", role.value)

        response = query.order("created_at", desc=newest_first).limit(limit).execute()

        return response.data or []

    async def patch_chat_content(self, message_id: int, content: str) -> None:
        """Replace the content of one chat row."""
        self.client.table(CHAT_TABLE).update({"content": content}).eq("id", message_id).execute()

    async def heartbeat(self) -> None:
        """Upsert the system row so an idle project stays active."""
        self.client.table(RESULTS_TABLE).upsert(
            {
                "phone": ANONYMOUS_PHONE,
                "first_name": "System",
                "personality_type": "INITIALIZED",
                "updated_at": datetime.now(timezone.utc).isoformat(),
            },
            on_conflict="phone",
        ).execute()
