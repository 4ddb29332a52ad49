"""
SRS (Spaced Repetition System) service implementing a simplified SM-2 algorithm.

These functions hold no state of their own; they compute the next scheduling
state of a flashcard from its current state and a recall quality.
"""
import logging
import math
from typing import Iterable, List, Tuple

from studywithme.schemas.flashcard import Flashcard
from studywithme.utils.time_utils import days_to_ms

logger = logging.getLogger(__name__)


DEFAULT_INTERVAL = 1  # days
DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3
# Fixed intervals (days) for the first two consecutive passes
FIRST_PASS_INTERVAL = 1
SECOND_PASS_INTERVAL = 6


def is_valid_quality(quality) -> bool:
    """Quality must be an integer from 0 to 5. Booleans are not qualities."""
    return (
        isinstance(quality, int)
        and not isinstance(quality, bool)
        and MIN_QUALITY <= quality <= MAX_QUALITY
    )


def calculate_ease_factor(ease_factor: float, quality: int) -> float:
    """
    Apply the SM-2 ease update for one review.

    Quality 5 raises the ease by 0.1, quality 4 keeps it, lower qualities
    lower it progressively. The result never drops below 1.3.

    Args:
        ease_factor: Current ease factor
        quality: Recall quality (0-5)

    Returns:
        New ease factor
    """
    miss = MAX_QUALITY - quality
    return max(MIN_EASE_FACTOR, ease_factor + (0.1 - miss * (0.08 + miss * 0.02)))


def calculate_interval(repetitions: int, interval: int, ease_factor: float) -> int:
    """
    Calculate the interval in days after a passing review.

    Args:
        repetitions: Consecutive passes before this review
        interval: Current interval in days
        ease_factor: Ease factor before this review's update

    Returns:
        Interval in days
    """
    if repetitions == 0:
        return FIRST_PASS_INTERVAL
    elif repetitions == 1:
        return SECOND_PASS_INTERVAL

    # Round half up, e.g. 6 * 2.25 = 13.5 -> 14
    return int(math.floor(interval * ease_factor + 0.5))


def calculate_next_state(
    repetitions: int,
    interval: int,
    ease_factor: float,
    quality: int
) -> Tuple[int, int, float]:
    """
    Compute the scheduling state after one review.

    A failed review (quality below 3) resets the card to the start of the
    learning progression: one day, then six, then ease-scaled.

    Args:
        repetitions: Current consecutive-pass counter
        interval: Current interval in days
        ease_factor: Current ease factor
        quality: Recall quality (0-5)

    Returns:
        (repetitions, interval, ease_factor) after the review
    """
    if quality < PASSING_QUALITY:
        new_repetitions = 0
        new_interval = DEFAULT_INTERVAL
    else:
        new_interval = calculate_interval(repetitions, interval, ease_factor)
        new_repetitions = repetitions + 1

    # Ease is updated on every review, including failures
    new_ease_factor = calculate_ease_factor(ease_factor, quality)

    return new_repetitions, new_interval, new_ease_factor


def apply_review(card: Flashcard, quality: int, now: int) -> Flashcard:
    """
    Update a card in place for a review at time `now` (epoch ms).

    Args:
        card: Card to update
        quality: Recall quality (0-5), already validated
        now: Review time in epoch ms

    Returns:
        The same card instance
    """
    card.last_reviewed_at = now

    repetitions, interval, ease_factor = calculate_next_state(
        card.repetitions, card.interval, card.ease_factor, quality
    )
    card.repetitions = repetitions
    card.interval = interval
    card.ease_factor = ease_factor
    card.next_review_at = now + days_to_ms(interval)

    logger.debug(
        f"Card {card.id}: quality={quality}, repetitions={repetitions}, "
        f"interval={interval}d, ease_factor={ease_factor:.2f}"
    )
    return card


def is_due(card: Flashcard, now: int) -> bool:
    return card.next_review_at <= now


def select_due_cards(cards: Iterable[Flashcard], now: int) -> List[Flashcard]:
    """Cards with next_review_at <= now, most overdue first. Ties keep their input order."""
    due = [card for card in cards if is_due(card, now)]
    return sorted(due, key=lambda card: card.next_review_at)
