"""Preset interest labels offered before the quiz.

A label may carry an alternative after a slash; only the part before the
first slash is stored on the profile.
"""

INTERESTS_LIST: tuple[str, ...] = (
    "Music / Concerts",
    "Travel",
    "Sports / Fitness",
    "Reading",
    "Cinema / Series",
    "Cooking",
    "Art / Design",
    "Psychology",
    "Technology",
    "Nature / Hiking",
    "Photography",
    "Games",
    "Dancing",
    "Languages",
    "Volunteering",
    "Business / Startups",
    "Fashion",
    "Meditation / Yoga",
    "Science",
    "Pets",
)
