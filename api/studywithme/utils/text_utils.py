"""
Text utility functions.
"""
import re
from typing import Optional

from studywithme.core.exceptions import ValidationError

# Everything except word characters, whitespace and []{}(),.:;
_DISALLOWED_ANSWER_CHARS = re.compile(r"[^\w\s\[\]{}(),.:;]")
_WHITESPACE_RUN = re.compile(r"\s+")
_BOLD_TERM = re.compile(r"\*\*(.+?)\*\*")


def require_text(value: Optional[str], field_name: str) -> str:
    """
    Return the value stripped of surrounding whitespace, or raise if nothing is left.

    Args:
        value: Raw text from the caller
        field_name: Name used in the error message

    Returns:
        The stripped text

    Raises:
        ValidationError: If the value is missing or blank
    """
    if value is None or not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} must be a non-empty string")
    return value.strip()


def normalize_answer(answer: str) -> str:
    """
    Normalize a quiz answer for comparison.

    Lowercases, drops punctuation other than []{}(),.:;, collapses whitespace
    runs to a single space and trims. Leading and trailing dots are trimmed
    last, so "Paris." equals "Paris" while "3.14" keeps its dot.

    Args:
        answer: Submitted or canonical answer text

    Returns:
        Normalized answer
    """
    if not answer:
        return ""

    normalized = _DISALLOWED_ANSWER_CHARS.sub("", answer.lower())
    normalized = _WHITESPACE_RUN.sub(" ", normalized).strip()

    # Sentence-ending dots are not part of the answer
    return normalized.strip(". ")


def answers_match(user_answer: str, correct_answer: str) -> bool:
    """Compare two answers after normalization. Empty answers never match."""
    if not user_answer or not correct_answer:
        return False

    normalized_user = normalize_answer(user_answer)
    if not normalized_user:
        return False
    return normalized_user == normalize_answer(correct_answer)


def extract_bold_term(line: str) -> Optional[str]:
    """Return the first **bold** term of a markdown line, if any."""
    match = _BOLD_TERM.search(line)
    if not match:
        return None
    return match.group(1)
