"""Rating tags carried inside stored chat message content.

The chat_history table has no rating column. An assistant message is stored
with one trailing ``[TAG:like]``, ``[TAG:dislike]`` or ``[TAG:neutral]``
marker. Rows written before the bracket format carry `` #liked``,
`` #disliked`` or `` #neutral`` suffixes instead, and both forms must keep
decoding.
"""

import re
from typing import NamedTuple

from typequiz.models.message import Rating, Tag

TAG_PATTERN = re.compile(r"\[TAG:(like|dislike|neutral)\]\s*$")
TAG_FRAGMENT_PATTERN = re.compile(r"\[TAG:(like|dislike|neutral)\]")
LEGACY_PATTERN = re.compile(r" #liked| #disliked| #neutral")

LEGACY_LIKE = " #liked"
LEGACY_DISLIKE = " #disliked"


class DecodedContent(NamedTuple):
    """Stored content split into display text and rating.

    ``tag`` is None when the content had no bracket tag (untagged or legacy).
    """

    display_text: str
    rating: Rating | None
    tag: Tag | None


def strip_tag(stored: str | None) -> DecodedContent:
    """Decode stored message content.

    A trailing bracket tag wins; only when it is absent are the legacy
    markers looked for, and then every occurrence is removed. A bracket tag
    left exposed by removing the markers is dropped as well.

    Args:
        stored: Content as read from the store.

    Returns:
        DecodedContent: Tag-free, right-trimmed text with its rating.
    """
    text = stored or ""
    rating: Rating | None = None
    tag: Tag | None = None

    match = TAG_PATTERN.search(text)
    if match:
        tag = Tag(match.group(1))
        rating = tag.rating
        text = text[: match.start()]
    else:
        if LEGACY_LIKE in text:
            rating = Rating.LIKE
        elif LEGACY_DISLIKE in text:
            rating = Rating.DISLIKE
        text = TAG_PATTERN.sub("", LEGACY_PATTERN.sub("", text))

    return DecodedContent(display_text=text.rstrip(), rating=rating, tag=tag)


def remove_tags(content: str) -> str:
    """Remove all legacy markers and a trailing bracket tag, then right-trim."""
    content = LEGACY_PATTERN.sub("", content)
    content = TAG_PATTERN.sub("", content)
    return content.rstrip()


def with_tag(text: str, rating: Rating | Tag | None) -> str:
    """Encode a rating into content for storage.

    Any existing tag, new or legacy, is dropped first so that repeated
    re-rating never stacks markers.

    Args:
        text: Display text or previously stored content.
        rating: New rating; None stores the neutral tag.

    Returns:
        str: Content ending in exactly one bracket tag.
    """
    if isinstance(rating, Tag):
        tag = rating
    else:
        tag = Tag.from_rating(rating)
    return f"{remove_tags(text)}[TAG:{tag.value}]"


def sanitize_model_text(text: str) -> str:
    """Drop tag fragments a model echoes back from its context."""
    return TAG_FRAGMENT_PATTERN.sub("", text)
