"""
Flashcard service: decks, cards and the review scheduler.
"""
import logging
import random
import uuid
from threading import Lock
from typing import Callable, List, Optional

from pydantic import TypeAdapter

from studywithme.core.exceptions import NotFoundError, ValidationError
from studywithme.schemas.flashcard import Flashcard, FlashcardDeck
from studywithme.services import reward_service
from studywithme.services.event_service import EventEmitter, Listener
from studywithme.services.reward_service import RewardService
from studywithme.services.srs_service import (
    DEFAULT_EASE_FACTOR,
    DEFAULT_INTERVAL,
    apply_review,
    is_valid_quality,
    select_due_cards,
)
from studywithme.services.storage_service import (
    FLASHCARDS_KEY,
    SnapshotStorage,
    load_collection,
    save_collection,
)
from studywithme.utils.text_utils import extract_bold_term, require_text
from studywithme.utils.time_utils import now_ms

logger = logging.getLogger(__name__)


DECK_COLORS = [
    '#6366f1', '#8b5cf6', '#ec4899', '#f43f5e', '#f97316',
    '#eab308', '#22c55e', '#14b8a6', '#06b6d4', '#3b82f6',
]

# A generated card's back must be longer than this to be kept
MIN_GENERATED_BACK_LENGTH = 20

_decks_adapter = TypeAdapter(List[FlashcardDeck])


class FlashcardService:
    """
    Owns every deck and card. All reads return copies; all writes go through
    the methods below, which persist the whole collection and then notify
    subscribers.
    """

    def __init__(
        self,
        storage: Optional[SnapshotStorage] = None,
        events: Optional[EventEmitter] = None,
        rewards: Optional[RewardService] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.storage = storage
        self.events = events or EventEmitter("flashcards")
        self.rewards = rewards
        self.clock = clock
        self._lock = Lock()
        if storage is not None:
            self._decks: List[FlashcardDeck] = load_collection(storage, FLASHCARDS_KEY, _decks_adapter, list)
        else:
            self._decks = []
        logger.info(f"Flashcard service ready with {len(self._decks)} deck(s)")

    # ============ SUBSCRIPTIONS ============

    def subscribe(self, listener: Listener) -> Callable[[], bool]:
        return self.events.subscribe(listener)

    # ============ DECKS ============

    def get_decks(self) -> List[FlashcardDeck]:
        with self._lock:
            return [deck.model_copy(deep=True) for deck in self._decks]

    def get_deck(self, deck_id: str) -> Optional[FlashcardDeck]:
        with self._lock:
            deck = self._find_deck(deck_id)
            return deck.model_copy(deep=True) if deck else None

    def create_deck(
        self,
        name: str,
        description: Optional[str] = None,
        color: Optional[str] = None
    ) -> FlashcardDeck:
        """
        Create an empty deck.

        Raises:
            ValidationError: If name is blank
        """
        name = require_text(name, "Deck name")

        with self._lock:
            deck = self._new_deck(name, description, color, self.clock())
            self._decks.append(deck)
            self._save()
            created = deck.model_copy(deep=True)

        self.events.emit()
        logger.info(f"Created deck {deck.id} '{name}'")
        self._award(reward_service.DECK_CREATED_XP, reward_service.DECK_CREATED)
        return created

    def delete_deck(self, deck_id: str) -> None:
        """
        Delete a deck together with its cards.

        Raises:
            NotFoundError: If the deck does not exist
        """
        with self._lock:
            deck = self._require_deck(deck_id)
            self._decks = [d for d in self._decks if d.id != deck_id]
            self._save()

        self.events.emit()
        logger.info(f"Deleted deck {deck_id} and its {len(deck.cards)} card(s)")

    # ============ CARDS ============

    def add_card(
        self,
        deck_id: str,
        front: str,
        back: str,
        topic: Optional[str] = None
    ) -> Flashcard:
        """
        Add a card to a deck. The card is due immediately.

        Raises:
            ValidationError: If front or back is blank, or topic is given but blank
            NotFoundError: If the deck does not exist
        """
        front = require_text(front, "Card front")
        back = require_text(back, "Card back")
        if topic is not None:
            topic = require_text(topic, "Card topic")

        with self._lock:
            deck = self._require_deck(deck_id)
            card = self._new_card(front, back, topic or deck.name, self.clock())
            deck.cards.append(card)
            self._save()
            created = card.model_copy(deep=True)

        self.events.emit()
        logger.info(f"Added card {card.id} to deck {deck_id}")
        self._award(reward_service.CARD_CREATED_XP, reward_service.CARD_CREATED)
        return created

    def delete_card(self, deck_id: str, card_id: str) -> None:
        """
        Remove a card from its deck.

        Raises:
            NotFoundError: If the deck or card does not exist
        """
        with self._lock:
            deck = self._require_deck(deck_id)
            self._require_card(deck, card_id)
            deck.cards = [c for c in deck.cards if c.id != card_id]
            self._save()

        self.events.emit()
        logger.info(f"Deleted card {card_id} from deck {deck_id}")

    def review_card(self, deck_id: str, card_id: str, quality: int) -> Flashcard:
        """
        Record a review and reschedule the card with SM-2.

        Args:
            deck_id: Deck holding the card
            card_id: Card being reviewed
            quality: Recall quality, 0 (total failure) to 5 (perfect recall)

        Returns:
            The card's new state

        Raises:
            ValidationError: If quality is not an integer from 0 to 5
            NotFoundError: If the deck or card does not exist
        """
        if not is_valid_quality(quality):
            raise ValidationError(f"Quality must be an integer from 0 to 5, got {quality!r}")

        with self._lock:
            deck = self._require_deck(deck_id)
            card = self._require_card(deck, card_id)
            apply_review(card, quality, self.clock())
            self._save()
            reviewed = card.model_copy(deep=True)

        self.events.emit()
        logger.info(
            f"Reviewed card {card_id} (quality={quality}): repetitions={reviewed.repetitions}, "
            f"interval={reviewed.interval}d, ease_factor={reviewed.ease_factor:.2f}"
        )
        self._award(reward_service.review_xp(quality), reward_service.CARD_REVIEWED)
        return reviewed

    def get_due_cards(self, deck_id: Optional[str] = None) -> List[Flashcard]:
        """
        Cards whose next review time has passed, most overdue first.

        Args:
            deck_id: Restrict to one deck. An unknown deck has no due cards.
        """
        now = self.clock()
        with self._lock:
            if deck_id is not None:
                deck = self._find_deck(deck_id)
                cards = deck.cards if deck else []
            else:
                cards = [card for deck in self._decks for card in deck.cards]
            return [card.model_copy(deep=True) for card in select_due_cards(cards, now)]

    def get_due_count(self) -> int:
        return len(self.get_due_cards())

    # ============ GENERATION ============

    def generate_from_conversation(self, topic: str, content: str) -> FlashcardDeck:
        """
        Build a deck from a tutoring reply.

        Every **bold** term (except on the last line) becomes a "What is ...?"
        card whose back is that line and the two following it.

        Raises:
            ValidationError: If topic is blank
        """
        topic = require_text(topic, "Topic")
        lines = (content or "").split("\n")

        with self._lock:
            now = self.clock()
            deck = self._new_deck(topic, f"Auto-generated from chat about {topic}", None, now)
            for i, raw_line in enumerate(lines):
                term = extract_bold_term(raw_line.strip())
                if not term or i >= len(lines) - 1:
                    continue
                back = "\n".join(lines[i:i + 3]).replace("**", "")
                if len(back) > MIN_GENERATED_BACK_LENGTH:
                    deck.cards.append(self._new_card(f"What is {term}?", back, topic, now))
            self._decks.append(deck)
            self._save()
            created = deck.model_copy(deep=True)

        self.events.emit()
        logger.info(f"Generated deck {deck.id} '{topic}' with {len(created.cards)} card(s)")
        self._award(reward_service.DECK_CREATED_XP, reward_service.DECK_CREATED)
        for _ in created.cards:
            self._award(reward_service.CARD_CREATED_XP, reward_service.CARD_CREATED)
        return created

    # ============ INTERNALS ============

    def _find_deck(self, deck_id: str) -> Optional[FlashcardDeck]:
        for deck in self._decks:
            if deck.id == deck_id:
                return deck
        return None

    def _require_deck(self, deck_id: str) -> FlashcardDeck:
        deck = self._find_deck(deck_id)
        if deck is None:
            raise NotFoundError(f"Deck {deck_id} not found")
        return deck

    @staticmethod
    def _require_card(deck: FlashcardDeck, card_id: str) -> Flashcard:
        for card in deck.cards:
            if card.id == card_id:
                return card
        raise NotFoundError(f"Card {card_id} not found in deck {deck.id}")

    @staticmethod
    def _new_deck(name: str, description: Optional[str], color: Optional[str], now: int) -> FlashcardDeck:
        return FlashcardDeck(
            id=f"deck_{uuid.uuid4().hex}",
            name=name,
            description=description,
            color=color or random.choice(DECK_COLORS),
            cards=[],
            created_at=now,
        )

    @staticmethod
    def _new_card(front: str, back: str, topic: str, now: int) -> Flashcard:
        return Flashcard(
            id=f"card_{uuid.uuid4().hex}",
            front=front,
            back=back,
            topic=topic,
            created_at=now,
            next_review_at=now,
            interval=DEFAULT_INTERVAL,
            ease_factor=DEFAULT_EASE_FACTOR,
            repetitions=0,
        )

    def _save(self) -> None:
        # Called with the lock held; listeners are notified after it is released
        if self.storage is not None:
            save_collection(self.storage, FLASHCARDS_KEY, _decks_adapter, self._decks)

    def _award(self, amount: int, reason: str) -> None:
        if self.rewards is None:
            return
        try:
            self.rewards.award_points(amount, reason)
        except Exception as e:
            logger.error(f"Failed to award {amount} XP ({reason}): {e}", exc_info=True)
