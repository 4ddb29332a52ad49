"""
Reward (XP) service consumed by the review and quiz engines.

Reward amounts are policy constants; they are not part of the scheduling or
grading algorithms.
"""
import logging
from threading import Lock
from typing import Callable, Optional

from pydantic import TypeAdapter

from studywithme.core.exceptions import ValidationError
from studywithme.schemas.progress import XPEvent, XPLedger
from studywithme.services.storage_service import (
    SnapshotStorage,
    XP_LEDGER_KEY,
    load_collection,
    save_collection,
)
from studywithme.utils.time_utils import now_ms

logger = logging.getLogger(__name__)


# Reason tags
DECK_CREATED = "deck_created"
CARD_CREATED = "card_created"
CARD_REVIEWED = "card_reviewed"
QUIZ_COMPLETED = "quiz_completed"

DECK_CREATED_XP = 10
CARD_CREATED_XP = 5

# (minimum quality, xp), checked in order
REVIEW_XP_TIERS = [(4, 10), (3, 5)]
REVIEW_BASE_XP = 2

# (minimum percentage, xp), checked in order
QUIZ_XP_TIERS = [(90, 50), (80, 40), (70, 30), (50, 20)]
QUIZ_BASE_XP = 10  # for completing a quiz at all


def review_xp(quality: int) -> int:
    """XP for reviewing a card with the given quality."""
    for min_quality, xp in REVIEW_XP_TIERS:
        if quality >= min_quality:
            return xp
    return REVIEW_BASE_XP


def quiz_xp(percentage: float) -> int:
    """XP for finishing a quiz with the given percentage correct."""
    for min_percentage, xp in QUIZ_XP_TIERS:
        if percentage >= min_percentage:
            return xp
    return QUIZ_BASE_XP


_ledger_adapter = TypeAdapter(XPLedger)


class RewardService:
    """Keeps the XP ledger. Engines call award_points after a successful mutation."""

    def __init__(self, storage: Optional[SnapshotStorage] = None, clock: Callable[[], int] = now_ms):
        self.storage = storage
        self.clock = clock
        self._lock = Lock()
        if storage is not None:
            self._ledger = load_collection(storage, XP_LEDGER_KEY, _ledger_adapter, XPLedger)
        else:
            self._ledger = XPLedger()

    def award_points(self, amount: int, reason: str) -> XPEvent:
        """
        Record an award.

        Raises:
            ValidationError: If amount is negative or reason is empty
        """
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            raise ValidationError(f"XP amount must be a non-negative integer, got {amount!r}")
        if not reason:
            raise ValidationError("XP reason is required")

        with self._lock:
            event = XPEvent(amount=amount, reason=reason, awarded_at=self.clock())
            self._ledger.total += amount
            self._ledger.history.append(event)
            if self.storage is not None:
                save_collection(self.storage, XP_LEDGER_KEY, _ledger_adapter, self._ledger)

        logger.info(f"Awarded {amount} XP ({reason}), total={self._ledger.total}")
        return event

    def get_ledger(self) -> XPLedger:
        with self._lock:
            return self._ledger.model_copy(deep=True)

    @property
    def total(self) -> int:
        return self._ledger.total
