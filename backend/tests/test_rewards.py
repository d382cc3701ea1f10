"""
Unit tests for reward progress and unlocking.
"""

import pytest
from sqlalchemy import text

from med1.core.database import utcnow
from med1.models.referral import PatientReferral, ReferralReward, RewardType, UnlockType
from med1.services.rewards import (
    increment_counter,
    reward_progress,
    serialize_reward,
    unlock_reached_rewards,
)


@pytest.fixture
def referral(db, doctor, page, patient) -> PatientReferral:
    row = PatientReferral(
        slug="abcdefghij",
        user_id=doctor.id,
        page_id=page.id,
        patient_id=patient.id,
        leads=3,
        sales=1,
    )
    db.add(row)
    db.commit()
    return row


def make_reward(db, referral, unlock_value, unlock_type=UnlockType.LEADS, unlocked=False) -> ReferralReward:
    reward = ReferralReward(
        referral_id=referral.id,
        type=RewardType.TEXT,
        title=f"Reward {unlock_value}",
        text_content="Desconto de 10%",
        unlock_value=unlock_value,
        unlock_type=unlock_type,
        unlocked_at=utcnow() if unlocked else None,
    )
    db.add(reward)
    db.commit()
    return reward


class TestRewardProgress:
    def test_leads_progress_is_a_percentage(self, db, referral):
        reward = make_reward(db, referral, 6)
        assert reward_progress(reward, referral) == pytest.approx(50.0)

    def test_sales_rewards_track_sales(self, db, referral):
        reward = make_reward(db, referral, 4, unlock_type=UnlockType.SALES)
        assert reward_progress(reward, referral) == pytest.approx(25.0)

    def test_non_positive_threshold_never_divides(self, db, referral):
        """Legacy rows with a zero threshold report 0 or 100 depending on lock state."""
        locked = make_reward(db, referral, 0)
        unlocked = make_reward(db, referral, 0, unlocked=True)

        assert reward_progress(locked, referral) == 0.0
        assert reward_progress(unlocked, referral) == 100.0

    def test_serialize_includes_derived_fields(self, db, referral):
        data = serialize_reward(make_reward(db, referral, 3), referral)
        assert data["is_unlocked"] is False
        assert data["progress"] == pytest.approx(100.0)
        assert data["page"] is None


class TestUnlockReachedRewards:
    def test_unlocks_only_reached_rewards_of_the_type(self, db, referral):
        reached = make_reward(db, referral, 3)
        not_reached = make_reward(db, referral, 5)
        sales = make_reward(db, referral, 1, unlock_type=UnlockType.SALES)

        unlocked = unlock_reached_rewards(db, referral, UnlockType.LEADS)
        db.commit()

        assert [r.id for r in unlocked] == [reached.id]
        assert reached.unlocked_at is not None
        assert not_reached.unlocked_at is None
        assert sales.unlocked_at is None

    def test_already_unlocked_rewards_are_left_alone(self, db, referral):
        reward = make_reward(db, referral, 1, unlocked=True)
        stamp = reward.unlocked_at

        assert unlock_reached_rewards(db, referral, UnlockType.LEADS) == []
        assert reward.unlocked_at == stamp


class TestIncrementCounter:
    def test_increment_builds_on_the_stored_value(self, db, referral):
        assert referral.leads == 3
        # Another worker's increments land after this session loaded the row.
        db.execute(text("UPDATE patient_referrals SET leads = 7 WHERE id = :id"), {"id": referral.id})

        assert increment_counter(db, referral, "leads") == 8
        db.commit()
        assert referral.leads == 8

    def test_unlocks_use_the_incremented_value(self, db, referral):
        reward = make_reward(db, referral, 4)

        increment_counter(db, referral, "leads")
        unlocked = unlock_reached_rewards(db, referral, UnlockType.LEADS)

        assert [r.id for r in unlocked] == [reward.id]

    def test_unknown_counter_is_rejected(self, db, referral):
        with pytest.raises(ValueError):
            increment_counter(db, referral, "rewards")
