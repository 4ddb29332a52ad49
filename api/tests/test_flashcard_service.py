"""
Tests for FlashcardService - decks, cards, reviews and due queries.
"""
import pytest

from studywithme.core.exceptions import NotFoundError, PersistenceError, ValidationError
from studywithme.services.event_service import EventEmitter
from studywithme.services.flashcard_service import DECK_COLORS, FlashcardService
from studywithme.services.storage_service import FLASHCARDS_KEY, SnapshotStorage
from studywithme.utils.time_utils import MS_PER_DAY


class FailingStorage(SnapshotStorage):
    """Storage whose writes always fail."""

    def save(self, key, data):
        raise PersistenceError(f"disk full while writing '{key}'")


class FailingRewards:
    def award_points(self, amount, reason):
        raise RuntimeError("reward service unavailable")


@pytest.fixture
def capitals(flashcard_service):
    deck = flashcard_service.create_deck("Capitals")
    card = flashcard_service.add_card(deck.id, "Capital of France?", "Paris")
    return deck, card


class TestDecks:

    def test_create_deck(self, flashcard_service, clock):
        deck = flashcard_service.create_deck("  Biology  ", "Cells and more")
        assert deck.id.startswith("deck_")
        assert deck.name == "Biology"
        assert deck.description == "Cells and more"
        assert deck.color in DECK_COLORS
        assert deck.cards == []
        assert deck.created_at == clock.now

    def test_create_deck_keeps_given_color(self, flashcard_service):
        deck = flashcard_service.create_deck("History", color="#000000")
        assert deck.color == "#000000"

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_blank_name_rejected(self, flashcard_service, name):
        with pytest.raises(ValidationError):
            flashcard_service.create_deck(name)
        assert flashcard_service.get_decks() == []

    def test_deck_ids_are_unique(self, flashcard_service):
        ids = {flashcard_service.create_deck(f"Deck {i}").id for i in range(20)}
        assert len(ids) == 20

    def test_delete_deck_cascades_to_cards(self, flashcard_service, capitals):
        deck, _ = capitals
        flashcard_service.delete_deck(deck.id)
        assert flashcard_service.get_deck(deck.id) is None
        assert flashcard_service.get_due_cards() == []

    def test_delete_missing_deck(self, flashcard_service):
        with pytest.raises(NotFoundError):
            flashcard_service.delete_deck("deck_missing")


class TestCards:

    def test_new_card_defaults(self, flashcard_service, capitals, clock):
        _, card = capitals
        assert card.interval == 1
        assert card.ease_factor == 2.5
        assert card.repetitions == 0
        assert card.next_review_at == clock.now
        assert card.last_reviewed_at is None

    def test_topic_defaults_to_deck_name(self, capitals):
        _, card = capitals
        assert card.topic == "Capitals"

    def test_explicit_topic(self, flashcard_service, capitals):
        deck, _ = capitals
        card = flashcard_service.add_card(deck.id, "Capital of Peru?", "Lima", topic="South America")
        assert card.topic == "South America"

    @pytest.mark.parametrize("front, back, topic", [
        ("", "Paris", None),
        ("Capital of France?", "  ", None),
        ("Capital of France?", "Paris", " "),
    ])
    def test_blank_fields_rejected(self, flashcard_service, capitals, front, back, topic):
        deck, _ = capitals
        with pytest.raises(ValidationError):
            flashcard_service.add_card(deck.id, front, back, topic)
        assert len(flashcard_service.get_deck(deck.id).cards) == 1

    def test_add_card_to_missing_deck(self, flashcard_service):
        with pytest.raises(NotFoundError):
            flashcard_service.add_card("deck_missing", "Q", "A")

    def test_new_card_is_due_immediately(self, flashcard_service, capitals):
        _, card = capitals
        assert [c.id for c in flashcard_service.get_due_cards()] == [card.id]

    def test_delete_card(self, flashcard_service, capitals):
        deck, card = capitals
        flashcard_service.delete_card(deck.id, card.id)
        assert flashcard_service.get_deck(deck.id).cards == []

    def test_delete_missing_card(self, flashcard_service, capitals):
        deck, _ = capitals
        with pytest.raises(NotFoundError):
            flashcard_service.delete_card(deck.id, "card_missing")


class TestReviewCard:

    def test_perfect_review_then_again(self, flashcard_service, capitals, clock):
        deck, card = capitals
        reviewed = flashcard_service.review_card(deck.id, card.id, 5)
        assert reviewed.repetitions == 1
        assert reviewed.interval == 1
        assert reviewed.next_review_at == clock.now + MS_PER_DAY
        assert reviewed.ease_factor > 2.5

        clock.advance(MS_PER_DAY)
        reviewed = flashcard_service.review_card(deck.id, card.id, 5)
        assert reviewed.repetitions == 2
        assert reviewed.interval == 6

    def test_reviewed_card_leaves_due_list(self, flashcard_service, capitals, clock):
        deck, card = capitals
        flashcard_service.review_card(deck.id, card.id, 4)
        assert flashcard_service.get_due_count() == 0
        clock.advance(MS_PER_DAY)
        assert flashcard_service.get_due_count() == 1

    @pytest.mark.parametrize("quality", [-1, 6, 2.5, "3", None, True])
    def test_invalid_quality_changes_nothing(self, flashcard_service, capitals, quality):
        deck, card = capitals
        with pytest.raises(ValidationError):
            flashcard_service.review_card(deck.id, card.id, quality)
        stored = flashcard_service.get_deck(deck.id).cards[0]
        assert stored == card

    def test_review_missing_deck(self, flashcard_service, capitals):
        _, card = capitals
        with pytest.raises(NotFoundError):
            flashcard_service.review_card("deck_missing", card.id, 5)

    def test_review_missing_card(self, flashcard_service, capitals):
        deck, _ = capitals
        with pytest.raises(NotFoundError):
            flashcard_service.review_card(deck.id, "card_missing", 5)

    @pytest.mark.parametrize("quality, xp", [(5, 10), (4, 10), (3, 5), (2, 2), (0, 2)])
    def test_review_awards_xp_by_quality(self, flashcard_service, capitals, rewards, quality, xp):
        deck, card = capitals
        before = rewards.total
        flashcard_service.review_card(deck.id, card.id, quality)
        assert rewards.total - before == xp
        assert rewards.get_ledger().history[-1].reason == "card_reviewed"


class TestDueCards:

    def test_due_cards_across_decks_sorted(self, flashcard_service, clock):
        first = flashcard_service.create_deck("First")
        second = flashcard_service.create_deck("Second")
        a = flashcard_service.add_card(first.id, "A", "a")
        clock.advance(-3 * MS_PER_DAY)
        b = flashcard_service.add_card(second.id, "B", "b")
        clock.advance(1 * MS_PER_DAY)
        c = flashcard_service.add_card(first.id, "C", "c")
        clock.advance(2 * MS_PER_DAY)

        due = flashcard_service.get_due_cards()
        assert [card.id for card in due] == [b.id, c.id, a.id]
        assert [card.id for card in flashcard_service.get_due_cards(first.id)] == [c.id, a.id]

    def test_future_cards_never_appear(self, flashcard_service, capitals, clock):
        deck, card = capitals
        other = flashcard_service.add_card(deck.id, "Capital of Spain?", "Madrid")
        flashcard_service.review_card(deck.id, card.id, 5)
        due = flashcard_service.get_due_cards(deck.id)
        assert [c.id for c in due] == [other.id]
        assert all(c.next_review_at <= clock.now for c in due)

    def test_unknown_deck_has_no_due_cards(self, flashcard_service, capitals):
        assert flashcard_service.get_due_cards("deck_missing") == []

    def test_due_count(self, flashcard_service, capitals):
        deck, _ = capitals
        flashcard_service.add_card(deck.id, "Capital of Italy?", "Rome")
        assert flashcard_service.get_due_count() == 2

    def test_returned_cards_are_copies(self, flashcard_service, capitals):
        deck, card = capitals
        due = flashcard_service.get_due_cards()
        due[0].repetitions = 99
        due[0].next_review_at = 0
        assert flashcard_service.get_deck(deck.id).cards[0].repetitions == 0


class TestNotificationsAndCollaborators:

    def test_subscribers_notified_on_mutation(self, flashcard_service):
        calls = []
        unsubscribe = flashcard_service.subscribe(lambda: calls.append(1))
        deck = flashcard_service.create_deck("Chemistry")
        card = flashcard_service.add_card(deck.id, "H2O?", "Water")
        flashcard_service.review_card(deck.id, card.id, 3)
        assert len(calls) == 3

        assert unsubscribe() is True
        flashcard_service.delete_deck(deck.id)
        assert len(calls) == 3
        assert unsubscribe() is False

    def test_queries_not_notified(self, flashcard_service, capitals):
        calls = []
        flashcard_service.subscribe(lambda: calls.append(1))
        flashcard_service.get_due_cards()
        flashcard_service.get_decks()
        assert calls == []

    def test_failed_operation_does_not_notify(self, flashcard_service):
        calls = []
        flashcard_service.subscribe(lambda: calls.append(1))
        with pytest.raises(NotFoundError):
            flashcard_service.review_card("deck_missing", "card_missing", 3)
        assert calls == []

    def test_listener_can_query_service(self, flashcard_service):
        seen = []
        flashcard_service.subscribe(lambda: seen.append(flashcard_service.get_due_count()))
        deck = flashcard_service.create_deck("Physics")
        flashcard_service.add_card(deck.id, "F?", "ma")
        assert seen == [0, 1]

    def test_failing_listener_does_not_block_others(self, flashcard_service):
        calls = []

        def broken():
            raise RuntimeError("listener bug")

        flashcard_service.subscribe(broken)
        flashcard_service.subscribe(lambda: calls.append(1))
        deck = flashcard_service.create_deck("Art")
        assert calls == [1]
        assert flashcard_service.get_deck(deck.id) is not None

    def test_reward_failure_keeps_review(self, storage, clock):
        service = FlashcardService(storage, rewards=FailingRewards(), clock=clock)
        deck = service.create_deck("Music")
        card = service.add_card(deck.id, "Notes in an octave?", "Eight")
        reviewed = service.review_card(deck.id, card.id, 5)
        assert reviewed.repetitions == 1
        assert service.get_deck(deck.id).cards[0].repetitions == 1

    def test_create_awards_xp(self, flashcard_service, rewards):
        deck = flashcard_service.create_deck("Latin")
        flashcard_service.add_card(deck.id, "Amo?", "I love")
        assert [(e.amount, e.reason) for e in rewards.get_ledger().history] == [
            (10, "deck_created"),
            (5, "card_created"),
        ]


class TestPersistence:

    def test_state_survives_restart(self, storage, clock, capitals, flashcard_service):
        deck, card = capitals
        flashcard_service.review_card(deck.id, card.id, 5)

        restarted = FlashcardService(storage, clock=clock)
        stored = restarted.get_deck(deck.id)
        assert stored.name == "Capitals"
        assert stored.cards[0].repetitions == 1
        assert stored.cards[0].last_reviewed_at == clock.now

    def test_corrupt_snapshot_falls_back_to_empty(self, storage, clock):
        storage.save(FLASHCARDS_KEY, {"not": "a list of decks"})
        service = FlashcardService(storage, clock=clock)
        assert service.get_decks() == []

    def test_save_failure_keeps_memory_state(self, engine, clock):
        service = FlashcardService(FailingStorage(engine), events=EventEmitter(), clock=clock)
        deck = service.create_deck("Geology")
        card = service.add_card(deck.id, "Hardest mineral?", "Diamond")
        reviewed = service.review_card(deck.id, card.id, 4)
        assert reviewed.repetitions == 1
        assert service.get_deck(deck.id).cards[0].repetitions == 1


class TestGenerateFromConversation:

    CONTENT = "\n".join([
        "Here are the key ideas:",
        "**Chlorophyll** is the green pigment that captures light.",
        "It sits in the chloroplasts.",
        "**ATP**",
        "Fuel",
        "",
        "**Glucose** is made last.",
    ])

    def test_bold_terms_become_cards(self, flashcard_service, rewards):
        deck = flashcard_service.generate_from_conversation("Photosynthesis", self.CONTENT)
        assert deck.name == "Photosynthesis"
        assert deck.description == "Auto-generated from chat about Photosynthesis"
        assert len(deck.cards) == 1

        card = deck.cards[0]
        assert card.front == "What is Chlorophyll?"
        assert card.back == (
            "Chlorophyll is the green pigment that captures light.\n"
            "It sits in the chloroplasts.\n"
            "ATP"
        )
        assert card.topic == "Photosynthesis"
        assert rewards.total == 15

    def test_no_bold_terms_gives_empty_deck(self, flashcard_service):
        deck = flashcard_service.generate_from_conversation("Plain", "nothing bold here\nat all")
        assert deck.cards == []
        assert flashcard_service.get_deck(deck.id) is not None

    def test_blank_topic_rejected(self, flashcard_service):
        with pytest.raises(ValidationError):
            flashcard_service.generate_from_conversation(" ", self.CONTENT)
