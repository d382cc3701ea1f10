"""
Subscription plan handling.
"""

import logging

from sqlalchemy.orm import Session

from ..core.database import as_utc, utcnow
from ..models.user import User, UserPlan


logger = logging.getLogger(__name__)


def effective_plan(db: Session, user: User) -> UserPlan:
    """
    Current plan of ``user``, downgrading an expired premium plan to free.

    The downgrade is persisted so later reads agree with this one.
    """
    plan = UserPlan(user.plan)
    expires_at = as_utc(user.plan_expires_at)
    if plan == UserPlan.PREMIUM and expires_at is not None and expires_at < utcnow():
        user.plan = UserPlan.FREE
        db.commit()
        logger.info(f"Premium plan of user {user.id} expired at {expires_at}, downgraded to free")
        return UserPlan.FREE
    return plan
