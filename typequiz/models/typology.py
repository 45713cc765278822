"""Display names and short descriptions for the sixteen typology codes."""

from typing import TypedDict


class TypeProfile(TypedDict):
    """Human-facing description of a typology code."""

    code: str
    name: str
    description: str


PERSONALITY_TYPES: dict[str, TypeProfile] = {
    "ISTJ": {"code": "ISTJ", "name": "Inspector", "description": "Reliable, thorough and loyal to duty."},
    "ISFJ": {"code": "ISFJ", "name": "Protector", "description": "Warm, conscientious and quietly devoted to others."},
    "INFJ": {"code": "INFJ", "name": "Counselor", "description": "Insightful, principled and driven by meaning."},
    "INTJ": {"code": "INTJ", "name": "Mastermind", "description": "Strategic, independent and determined."},
    "ISTP": {"code": "ISTP", "name": "Craftsperson", "description": "Practical problem-solver who learns by doing."},
    "ISFP": {"code": "ISFP", "name": "Composer", "description": "Gentle, sensitive and attuned to the present."},
    "INFP": {"code": "INFP", "name": "Healer", "description": "Idealistic, empathetic and true to their values."},
    "INTP": {"code": "INTP", "name": "Architect", "description": "Analytical, curious and drawn to ideas."},
    "ESTP": {"code": "ESTP", "name": "Dynamo", "description": "Energetic, pragmatic and quick to act."},
    "ESFP": {"code": "ESFP", "name": "Performer", "description": "Spontaneous, sociable and fun-loving."},
    "ENFP": {"code": "ENFP", "name": "Champion", "description": "Enthusiastic, creative and inspiring."},
    "ENTP": {"code": "ENTP", "name": "Visionary", "description": "Inventive, outspoken and fond of debate."},
    "ESTJ": {"code": "ESTJ", "name": "Supervisor", "description": "Organized, decisive and dependable."},
    "ESFJ": {"code": "ESFJ", "name": "Provider", "description": "Caring, cooperative and community-minded."},
    "ENFJ": {"code": "ENFJ", "name": "Teacher", "description": "Charismatic, supportive and people-focused."},
    "ENTJ": {"code": "ENTJ", "name": "Commander", "description": "Bold, efficient and natural leaders."},
}


def get_type_profile(code: str) -> TypeProfile:
    """Look up a typology code, falling back to the code itself as the name."""
    return PERSONALITY_TYPES.get(code, {"code": code, "name": code, "description": ""})
