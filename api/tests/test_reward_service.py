"""
Tests for the XP reward service.
"""
import pytest

from studywithme.core.exceptions import ValidationError
from studywithme.services.reward_service import RewardService, quiz_xp, review_xp


class TestTiers:

    @pytest.mark.parametrize("quality, xp", [(5, 10), (4, 10), (3, 5), (2, 2), (0, 2)])
    def test_review_xp(self, quality, xp):
        assert review_xp(quality) == xp

    @pytest.mark.parametrize("percentage, xp", [
        (100, 50), (90, 50), (89.9, 40), (80, 40), (70, 30), (50, 20), (49.9, 10), (0, 10),
    ])
    def test_quiz_xp(self, percentage, xp):
        assert quiz_xp(percentage) == xp


class TestRewardService:

    def test_award_points(self, rewards, clock):
        event = rewards.award_points(10, "deck_created")
        assert event.awarded_at == clock.now
        assert rewards.total == 10
        assert rewards.get_ledger().history == [event]

    def test_ledger_is_a_copy(self, rewards):
        rewards.award_points(5, "card_created")
        ledger = rewards.get_ledger()
        ledger.history.clear()
        assert len(rewards.get_ledger().history) == 1

    @pytest.mark.parametrize("amount", [-1, 1.5, True])
    def test_invalid_amount(self, rewards, amount):
        with pytest.raises(ValidationError):
            rewards.award_points(amount, "card_created")
        assert rewards.total == 0

    def test_reason_required(self, rewards):
        with pytest.raises(ValidationError):
            rewards.award_points(5, "")

    def test_ledger_survives_restart(self, rewards, storage, clock):
        rewards.award_points(10, "deck_created")
        rewards.award_points(2, "card_reviewed")

        restarted = RewardService(storage, clock=clock)
        assert restarted.total == 12
        assert [e.reason for e in restarted.get_ledger().history] == ["deck_created", "card_reviewed"]

    def test_without_storage(self, clock):
        rewards = RewardService(clock=clock)
        rewards.award_points(20, "quiz_completed")
        assert rewards.total == 20
