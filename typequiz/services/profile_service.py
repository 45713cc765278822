"""Registration, login and interest handling for respondent profiles."""

import re
from typing import Any

from typequiz.models.quiz_result import QuizResultRow
from typequiz.schemas.profile import Profile, RegisterRequest
from typequiz.schemas.typology import TypologyResult
from typequiz.services.store import QuizStore

MIN_NAME_LENGTH = 2
MIN_PASSWORD_LENGTH = 6
MAX_AGE = 100
PHONE_DIGITS = 11

USER_NOT_FOUND = "User not found. Take the test to create a profile."
WRONG_PASSWORD = "Incorrect password. Please try again."


class LoginFailed(Exception):
    """Raised when phone and password do not match a stored profile."""

    def __init__(self, message: str, reason: str) -> None:
        self.message = message
        self.reason = reason
        super().__init__(message)


def normalize_interest(label: str) -> str:
    """Keep the part of a label before the first slash, trimmed."""
    return label.split("/")[0].strip()


def toggle_interest(interests: list[str], label: str) -> list[str]:
    """Select an interest, or deselect it when already selected."""
    clean = normalize_interest(label)
    if not clean:
        return list(interests)
    if clean in interests:
        return [item for item in interests if item != clean]
    return [*interests, clean]


def add_interest(interests: list[str], label: str) -> list[str]:
    """Add a typed-in interest; adding a present one changes nothing."""
    clean = normalize_interest(label)
    if not clean or clean in interests:
        return list(interests)
    return [*interests, clean]


def validate_registration(data: RegisterRequest) -> list[dict[str, Any]]:
    """Check the registration form.

    Returns:
        list[dict]: One error detail per failing field; empty when valid.
    """
    errors: list[dict[str, Any]] = []

    def fail(field: str, msg: str) -> None:
        errors.append({"loc": [field], "msg": msg, "type": "value_error"})

    if len(data.first_name.strip()) < MIN_NAME_LENGTH:
        fail("first_name", f"First name must be at least {MIN_NAME_LENGTH} characters")
    if len(data.last_name.strip()) < MIN_NAME_LENGTH:
        fail("last_name", f"Last name must be at least {MIN_NAME_LENGTH} characters")

    age = data.age.strip()
    if not age.isdecimal() or not 0 < int(age) <= MAX_AGE:
        fail("age", f"Age must be a whole number from 1 to {MAX_AGE}")

    if len(re.sub(r"\D", "", data.phone)) != PHONE_DIGITS:
        fail("phone", f"Phone must contain {PHONE_DIGITS} digits")

    if len(data.password) < MIN_PASSWORD_LENGTH:
        fail("password", f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    elif data.password != data.confirm_password:
        fail("confirm_password", "Passwords do not match")

    return errors


def profile_from_registration(data: RegisterRequest) -> Profile:
    """Build a profile from a validated registration form."""
    return Profile(
        first_name=data.first_name.strip(),
        last_name=data.last_name.strip(),
        phone=data.phone,
        age=int(data.age.strip()),
        credential=data.password,
    )


def result_from_row(row: QuizResultRow) -> TypologyResult | None:
    """Rebuild a stored result; None when the row has no finished quiz."""
    code = row.get("personality_type")
    if not code or len(code) != 4:
        return None
    return TypologyResult(
        ei=row.get("ei_score") or 0,
        sn=row.get("sn_score") or 0,
        ft=row.get("ft_score") or 0,
        jp=row.get("jp_score") or 0,
        code=code,
    )


class ProfileService:
    """Looks up stored profiles for login."""

    def __init__(self, store: QuizStore | None = None) -> None:
        """Initialize profile service.

        Args:
            store: Optional store for testing.
        """
        self.store = store or QuizStore()

    async def login(self, phone: str, password: str) -> tuple[Profile, TypologyResult | None]:
        """Check a phone and password against the stored row.

        Passwords are compared as stored, in plaintext.

        Returns:
            tuple: (profile, stored result or None)

        Raises:
            LoginFailed: If no row exists or the password differs.
        """
        row = await self.store.get_profile_row(phone)
        if not row:
            raise LoginFailed(USER_NOT_FOUND, reason="not_found")

        if row.get("password") != password:
            raise LoginFailed(WRONG_PASSWORD, reason="wrong_password")

        profile = Profile(
            first_name=row.get("first_name") or "",
            last_name=row.get("last_name") or "",
            phone=row["phone"],
            age=row.get("age") or 0,
            credential=row.get("password") or "",
            interests=row.get("interests") or [],
        )
        return profile, result_from_row(row)
