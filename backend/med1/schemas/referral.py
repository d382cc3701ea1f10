"""
Referral and reward schemas (doctor, public and portal views).
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, model_validator

from .common import NonEmptyStr
from ..models.referral import RewardType, UnlockType


# =============================================================================
# Referral
# =============================================================================

class ReferralCreate(BaseModel):
    page_id: UUID
    patient_id: UUID


class ReferralUpdate(BaseModel):
    page_id: Optional[UUID] = None
    patient_id: Optional[UUID] = None


class ReferralStats(BaseModel):
    visits: int
    leads: int
    sales: int


class PageSummary(BaseModel):
    id: UUID
    title: str
    slug: str
    primary_color: Optional[str] = None

    model_config = {"from_attributes": True}


class PatientSummary(BaseModel):
    id: UUID
    name: str
    email: str

    model_config = {"from_attributes": True}


class ReferralResponse(BaseModel):
    id: int
    slug: str
    page_id: UUID
    patient_id: UUID
    visits: int
    leads: int
    sales: int
    created_at: datetime

    model_config = {"from_attributes": True}


class ReferralListItem(ReferralResponse):
    page_name: Optional[str] = None
    total_rewards: int
    unlocked_rewards: int


# =============================================================================
# Reward
# =============================================================================

class RewardCreate(BaseModel):
    referral_id: int
    type: RewardType
    title: NonEmptyStr
    description: Optional[str] = None
    unlock_value: int = Field(..., ge=1, description="Threshold of leads or sales")
    unlock_type: UnlockType
    page_id: Optional[UUID] = None
    text_content: Optional[str] = None

    @model_validator(mode="after")
    def check_payload_for_type(self) -> "RewardCreate":
        if self.type == RewardType.PAGE and not self.page_id:
            raise ValueError("page_id is required for PAGE rewards")
        if self.type == RewardType.TEXT and not (self.text_content or "").strip():
            raise ValueError("text_content is required for TEXT rewards")
        return self


class RewardUnlockRequest(BaseModel):
    id: int
    referral_id: int


class RewardResponse(BaseModel):
    id: int
    referral_id: int
    type: RewardType
    title: str
    description: Optional[str] = None
    unlock_value: int
    unlock_type: UnlockType
    page_id: Optional[UUID] = None
    text_content: Optional[str] = None
    unlocked_at: Optional[datetime] = None
    is_unlocked: bool
    progress: float
    page: Optional[PageSummary] = None


# =============================================================================
# Public capture
# =============================================================================

class ReferralLeadCreate(BaseModel):
    name: NonEmptyStr
    phone: NonEmptyStr
    email: Optional[EmailStr] = None


class ReferralLeadResponse(BaseModel):
    success: bool = True
    lead_id: UUID
    leads: int
    unlocked_rewards: List[int]


# =============================================================================
# Doctor overview
# =============================================================================

class DoctorReferralItem(BaseModel):
    id: int
    slug: str
    page: Optional[PageSummary] = None
    patient: Optional[PatientSummary] = None
    stats: ReferralStats
    rewards: List[RewardResponse]
    unlocked_rewards: List[RewardResponse]
    created_at: datetime


class DoctorReferralTotals(BaseModel):
    total_referrals: int
    total_visits: int
    total_leads: int
    total_sales: int


class DoctorReferralsResponse(BaseModel):
    referrals: List[DoctorReferralItem]
    stats: DoctorReferralTotals


# =============================================================================
# Portal views
# =============================================================================

class PortalReferral(BaseModel):
    id: int
    slug: str
    page: Optional[PageSummary] = None
    stats: ReferralStats
    rewards: List[RewardResponse]
    created_at: datetime


class ReferralSummary(BaseModel):
    id: int
    slug: str
    page: Optional[PageSummary] = None


class PortalReward(RewardResponse):
    referral: ReferralSummary
