"""Typology scoring.

Each axis is a fixed signed sum of eight item magnitudes plus a base offset.
The weights are part of the stored data contract: results already saved were
produced by exactly these formulas, so they must not be rebalanced.
"""

from collections.abc import Mapping

from typequiz.models.quiz import NEUTRAL_MAGNITUDE
from typequiz.schemas.typology import TypologyResult

# axis -> (base offset, ((item id, sign), ...), letter above threshold, letter otherwise)
AXIS_FORMULAS: tuple[tuple[str, int, tuple[tuple[int, int], ...], str, str], ...] = (
    ("ei", 30, ((3, -1), (7, -1), (11, -1), (15, 1), (19, -1), (23, 1), (27, 1), (31, -1)), "E", "I"),
    ("sn", 12, ((4, 1), (8, 1), (12, 1), (16, 1), (20, 1), (24, -1), (28, -1), (32, 1)), "N", "S"),
    ("ft", 30, ((2, -1), (6, 1), (10, 1), (14, -1), (18, -1), (22, 1), (26, -1), (30, -1)), "T", "F"),
    ("jp", 18, ((1, 1), (5, 1), (9, -1), (13, 1), (17, -1), (21, 1), (25, -1), (29, 1)), "P", "J"),
)

THRESHOLD = 24


def compute_type(answers: Mapping[int, int]) -> TypologyResult:
    """Score an answer set.

    Unanswered items count as the neutral magnitude 3, so any mapping
    (including an empty one) yields a result.

    Args:
        answers: Item id to magnitude (1-5).

    Returns:
        TypologyResult: Raw axis sums and the four-letter code.
    """
    scores: dict[str, int] = {}
    letters: list[str] = []

    for axis, base, weights, high, low in AXIS_FORMULAS:
        value = base + sum(sign * answers.get(item_id, NEUTRAL_MAGNITUDE) for item_id, sign in weights)
        scores[axis] = value
        letters.append(high if value > THRESHOLD else low)

    return TypologyResult(**scores, code="".join(letters))
