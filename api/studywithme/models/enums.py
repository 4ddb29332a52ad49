"""
Model enums.
"""
from enum import Enum


class QuestionType(str, Enum):
    """Kinds of quiz questions."""
    MULTIPLE_CHOICE = "mcq"
    FILL_BLANK = "fill-blank"
    SHORT_ANSWER = "short-answer"
    TRUE_FALSE = "true-false"


class Difficulty(str, Enum):
    """Difficulty tag of a quiz question."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
