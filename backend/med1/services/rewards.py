"""
Reward progress and unlocking for patient referrals.
"""

import logging
from typing import Any, Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..core.database import utcnow
from ..models.referral import PatientReferral, ReferralReward, UnlockType


logger = logging.getLogger(__name__)


def reward_progress(reward: ReferralReward, referral: PatientReferral) -> float:
    """
    Percentage of the unlock threshold reached, ``count / unlock_value * 100``.

    The count is the referral's leads or sales depending on the reward's
    unlock type. Rows with a non-positive threshold never divide: they report
    100 once unlocked and 0 before.
    """
    if not reward.unlock_value or reward.unlock_value <= 0:
        return 100.0 if reward.is_unlocked else 0.0
    return referral.count_for(reward.unlock_type) / reward.unlock_value * 100


def serialize_reward(reward: ReferralReward, referral: PatientReferral) -> Dict[str, Any]:
    """Reward fields plus the derived ``is_unlocked`` and ``progress``."""
    page = None
    if reward.page is not None:
        page = {
            "id": reward.page.id,
            "title": reward.page.title,
            "slug": reward.page.slug,
            "primary_color": reward.page.primary_color,
        }
    return {
        "id": reward.id,
        "referral_id": reward.referral_id,
        "type": reward.type,
        "title": reward.title,
        "description": reward.description,
        "unlock_value": reward.unlock_value,
        "unlock_type": reward.unlock_type,
        "page_id": reward.page_id,
        "text_content": reward.text_content,
        "unlocked_at": reward.unlocked_at,
        "is_unlocked": reward.is_unlocked,
        "progress": reward_progress(reward, referral),
        "page": page,
    }


COUNTERS = ("visits", "leads", "sales")


def increment_counter(db: Session, referral: PatientReferral, counter: str) -> int:
    """
    Add one to a referral counter in SQL and return the stored value.

    The UPDATE reads the current column value, so concurrent requests each
    land their increment. The caller owns the transaction.
    """
    if counter not in COUNTERS:
        raise ValueError(f"Unknown referral counter: {counter}")
    column = getattr(PatientReferral, counter)
    setattr(referral, counter, func.coalesce(column, 0) + 1)
    db.flush()
    db.refresh(referral, [counter])
    return getattr(referral, counter)


def unlock_reached_rewards(
    db: Session,
    referral: PatientReferral,
    unlock_type: UnlockType,
) -> List[ReferralReward]:
    """
    Stamp ``unlocked_at`` on every locked reward of ``unlock_type`` whose
    threshold the referral has reached. The caller owns the transaction.
    """
    count = referral.count_for(unlock_type)
    rewards = (
        db.query(ReferralReward)
        .filter(
            ReferralReward.referral_id == referral.id,
            ReferralReward.unlock_type == unlock_type,
            ReferralReward.unlocked_at.is_(None),
            ReferralReward.unlock_value <= count,
        )
        .all()
    )
    now = utcnow()
    for reward in rewards:
        reward.unlocked_at = now
    if rewards:
        logger.info(
            f"Unlocked {len(rewards)} {unlock_type.value} reward(s) for referral {referral.id}"
        )
    return rewards
