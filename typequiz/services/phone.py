"""Phone number canonicalization.

The canonical phone is the only key that ties a profile to its chat log, so
two inputs that canonicalize the same belong to the same respondent.
"""

import re

# Stands for "no identity"; records under it are never written.
ANONYMOUS_PHONE = "00000000000"

CANONICAL_LENGTH = 11

_NON_DIGITS = re.compile(r"\D")


def canonicalize(raw: str | None) -> str:
    """Normalize free-form phone text to an 11-digit ``7XXXXXXXXXX`` key.

    Args:
        raw: Phone as typed, in any formatting.

    Returns:
        str: Canonical phone, or ANONYMOUS_PHONE when no digits are present.
    """
    digits = _NON_DIGITS.sub("", raw or "")
    if not digits:
        return ANONYMOUS_PHONE

    if digits.startswith("8"):
        digits = "7" + digits[1:]
    elif len(digits) == 10:
        digits = "7" + digits

    if len(digits) > CANONICAL_LENGTH:
        return digits[-CANONICAL_LENGTH:]
    return digits


def is_anonymous(raw: str | None) -> bool:
    """Check whether a phone maps to the anonymous sentinel."""
    return canonicalize(raw) == ANONYMOUS_PHONE


def format_phone_display(raw: str | None) -> str:
    """Render a phone with the ``8 XXX XXX XX XX`` input mask.

    Args:
        raw: Phone as typed.

    Returns:
        str: Masked phone, or an empty string when there are no digits.
    """
    digits = _NON_DIGITS.sub("", raw or "")
    if not digits:
        return ""

    if digits[0] == "7":
        digits = "8" + digits[1:]
    if digits[0] != "8":
        digits = "8" + digits
    digits = digits[:CANONICAL_LENGTH]

    groups = [digits[0], digits[1:4], digits[4:7], digits[7:9], digits[9:11]]
    return " ".join(group for group in groups if group)
