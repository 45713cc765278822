"""Questionnaire item definitions.

Each item is a forced choice between two statements. Answers are given on a
five-point scale where 1 leans fully to ``prompt_a`` and 5 leans fully to
``prompt_b``.
"""

from dataclasses import dataclass
from enum import Enum


class Axis(str, Enum):
    """Typology axes in code order."""

    EI = "EI"
    SN = "SN"
    FT = "FT"
    JP = "JP"


@dataclass(frozen=True)
class QuizItem:
    """A single forced-choice questionnaire item."""

    id: int
    prompt_a: str
    prompt_b: str
    axis: Axis


QUIZ_ITEMS: tuple[QuizItem, ...] = (
    QuizItem(1, "I like to settle plans well in advance", "I prefer to keep my options open", Axis.JP),
    QuizItem(2, "I decide by weighing facts and logic", "I decide by how it affects people", Axis.FT),
    QuizItem(3, "I recharge among a lot of people", "I recharge in quiet and solitude", Axis.EI),
    QuizItem(4, "I trust what I can see and measure", "I trust hunches and patterns", Axis.SN),
    QuizItem(5, "Deadlines keep me on track", "Deadlines feel like suggestions", Axis.JP),
    QuizItem(6, "Harmony in a team matters most", "Getting it right matters most", Axis.FT),
    QuizItem(7, "I think out loud", "I think things through before speaking", Axis.EI),
    QuizItem(8, "I focus on the details in front of me", "I focus on the big picture", Axis.SN),
    QuizItem(9, "I improvise as I go", "I follow a routine", Axis.JP),
    QuizItem(10, "I tend to spare people's feelings", "I tell it like it is", Axis.FT),
    QuizItem(11, "I start conversations with strangers easily", "I wait for others to approach me", Axis.EI),
    QuizItem(12, "I prefer proven, practical methods", "I like to try new ideas", Axis.SN),
    QuizItem(13, "A tidy workspace helps me think", "A bit of chaos keeps me creative", Axis.JP),
    QuizItem(14, "Arguments should be won on logic", "Arguments should end with everyone heard", Axis.FT),
    QuizItem(15, "I have a few close friends", "I have a wide circle of acquaintances", Axis.EI),
    QuizItem(16, "I remember facts and specifics", "I remember impressions and meanings", Axis.SN),
    QuizItem(17, "I leave packing to the last minute", "I pack days before a trip", Axis.JP),
    QuizItem(18, "Fairness means the same rules for all", "Fairness means considering each case", Axis.FT),
    QuizItem(19, "Parties give me energy", "Parties wear me out", Axis.EI),
    QuizItem(20, "I read instructions step by step", "I skim and figure it out", Axis.SN),
    QuizItem(21, "I finish one task before starting another", "I juggle several tasks at once", Axis.JP),
    QuizItem(22, "Compassion guides my choices", "Principles guide my choices", Axis.FT),
    QuizItem(23, "I enjoy working alone", "I enjoy working in a group", Axis.EI),
    QuizItem(24, "I like imagining what could be", "I like dealing with what is", Axis.SN),
    QuizItem(25, "I go with the flow", "I like a clear schedule", Axis.JP),
    QuizItem(26, "Critique helps people grow", "Encouragement helps people grow", Axis.FT),
    QuizItem(27, "I prefer a quiet evening at home", "I prefer a night out with friends", Axis.EI),
    QuizItem(28, "Theories and possibilities excite me", "Concrete results excite me", Axis.SN),
    QuizItem(29, "I make lists and stick to them", "I decide on the spot", Axis.JP),
    QuizItem(30, "I value being competent", "I value being kind", Axis.FT),
    QuizItem(31, "I am quick to share my news", "I keep news to myself for a while", Axis.EI),
    QuizItem(32, "I describe things literally", "I describe things with metaphors", Axis.SN),
)

MIN_MAGNITUDE = 1
MAX_MAGNITUDE = 5
NEUTRAL_MAGNITUDE = 3
