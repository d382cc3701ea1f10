"""
Patient referral models.

A referral is a patient's personal share link for one of the doctor's pages.
Visits, leads and sales through the link are counted on the referral and
unlock the rewards configured for it.
"""

import enum

from sqlalchemy import (
    Column,
    String,
    Integer,
    Text,
    DateTime,
    ForeignKey,
    Enum as SQLEnum,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from ..core.database import Base, utcnow


# =============================================================================
# Enums
# =============================================================================

class RewardType(str, enum.Enum):
    """What the patient receives when a reward unlocks."""
    PAGE = "PAGE"
    TEXT = "TEXT"


class UnlockType(str, enum.Enum):
    """Which referral counter a reward threshold is measured against."""
    LEADS = "LEADS"
    SALES = "SALES"


# =============================================================================
# PatientReferral Model
# =============================================================================

class PatientReferral(Base):
    __tablename__ = "patient_referrals"
    __table_args__ = (
        UniqueConstraint("page_id", "patient_id", name="uq_patient_referrals_page_patient"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    page_id = Column(Uuid, ForeignKey("pages.id", ondelete="CASCADE"), nullable=False, index=True)
    patient_id = Column(Uuid, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    visits = Column(Integer, nullable=False, default=0)
    leads = Column(Integer, nullable=False, default=0)
    sales = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    page = relationship("Page", lazy="joined")
    patient = relationship("Patient", lazy="joined")
    rewards = relationship(
        "ReferralReward",
        back_populates="referral",
        order_by="ReferralReward.unlock_value",
        passive_deletes=True,
    )

    def count_for(self, unlock_type: "UnlockType") -> int:
        """Current value of the counter a reward of ``unlock_type`` tracks."""
        if UnlockType(unlock_type) == UnlockType.LEADS:
            return self.leads or 0
        return self.sales or 0


# =============================================================================
# ReferralReward Model
# =============================================================================

class ReferralReward(Base):
    __tablename__ = "referral_rewards"

    id = Column(Integer, primary_key=True, autoincrement=True)
    referral_id = Column(Integer, ForeignKey("patient_referrals.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(SQLEnum(RewardType, name="reward_type", values_callable=lambda e: [x.value for x in e]), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    unlock_value = Column(Integer, nullable=False)
    unlock_type = Column(SQLEnum(UnlockType, name="unlock_type", values_callable=lambda e: [x.value for x in e]), nullable=False)
    page_id = Column(Uuid, ForeignKey("pages.id", ondelete="SET NULL"), nullable=True, index=True)
    text_content = Column(Text, nullable=True)
    unlocked_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    referral = relationship("PatientReferral", back_populates="rewards")
    page = relationship("Page", lazy="joined")

    @property
    def is_unlocked(self) -> bool:
        return self.unlocked_at is not None
