"""
Patient referral endpoints.

Doctors create referral links (one per page and patient), attach rewards and
record sales. Visitors reach the public ``/{slug}/visit`` and ``/{slug}/lead``
routes, which bump the referral counters and unlock rewards whose threshold
has been reached.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..core.auth import get_current_user
from ..core.database import get_db, utcnow
from ..core.retry import with_retry
from ..core.security import generate_referral_slug
from ..core.transactions import transaction
from ..models.lead import Lead, LeadSource, LeadStatus
from ..models.page import Page
from ..models.patient import Patient
from ..models.referral import PatientReferral, ReferralReward, RewardType, UnlockType
from ..models.user import User
from ..schemas.common import SuccessResponse
from ..schemas.referral import (
    DoctorReferralItem,
    DoctorReferralsResponse,
    DoctorReferralTotals,
    PageSummary,
    PatientSummary,
    ReferralCreate,
    ReferralLeadCreate,
    ReferralLeadResponse,
    ReferralListItem,
    ReferralResponse,
    ReferralStats,
    ReferralUpdate,
    RewardCreate,
    RewardResponse,
    RewardUnlockRequest,
)
from ..services.cache import get_cache
from ..services.rewards import increment_counter, serialize_reward, unlock_reached_rewards


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/patient-referral", tags=["Referrals"])
doctor_router = APIRouter(prefix="/api/doctor/referrals", tags=["Referrals"])

SLUG_ATTEMPTS = 5


# =============================================================================
# Helpers
# =============================================================================

def _owned_page(db: Session, user: User, page_id: UUID) -> Page:
    page = db.query(Page).filter(Page.id == page_id, Page.user_id == user.id).first()
    if not page:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Page not found")
    return page


def _owned_patient(db: Session, user: User, patient_id: UUID) -> Patient:
    patient = db.query(Patient).filter(Patient.id == patient_id, Patient.user_id == user.id).first()
    if not patient:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")
    return patient


def _owned_referral(db: Session, user: User, referral_id: int) -> PatientReferral:
    referral = (
        db.query(PatientReferral)
        .filter(PatientReferral.id == referral_id, PatientReferral.user_id == user.id)
        .first()
    )
    if not referral:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Referral not found")
    return referral


def _referral_by_slug(db: Session, slug: str) -> PatientReferral:
    referral = db.query(PatientReferral).filter(PatientReferral.slug == slug).first()
    if not referral:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Referral link not found")
    return referral


def _ensure_not_duplicate(db: Session, page_id: UUID, patient_id: UUID, exclude_id: Optional[int] = None) -> None:
    query = db.query(PatientReferral.id).filter(
        PatientReferral.page_id == page_id,
        PatientReferral.patient_id == patient_id,
    )
    if exclude_id is not None:
        query = query.filter(PatientReferral.id != exclude_id)
    if query.first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A referral for this page and patient already exists",
        )


def _new_slug(db: Session) -> str:
    for _ in range(SLUG_ATTEMPTS):
        slug = generate_referral_slug()
        if not db.query(PatientReferral.id).filter(PatientReferral.slug == slug).first():
            return slug
    raise HTTPException(status_code=500, detail="Could not allocate a referral slug")


def _stats(referral: PatientReferral) -> ReferralStats:
    return ReferralStats(visits=referral.visits, leads=referral.leads, sales=referral.sales)


def _page_summary(referral: PatientReferral) -> Optional[PageSummary]:
    return PageSummary.model_validate(referral.page) if referral.page else None


def _patient_summary(referral: PatientReferral) -> Optional[PatientSummary]:
    return PatientSummary.model_validate(referral.patient) if referral.patient else None


# =============================================================================
# Referral links
# =============================================================================

@router.post("", response_model=ReferralResponse, status_code=status.HTTP_201_CREATED)
async def create_referral(
    body: ReferralCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> PatientReferral:
    _owned_page(db, user, body.page_id)
    _owned_patient(db, user, body.patient_id)
    _ensure_not_duplicate(db, body.page_id, body.patient_id)

    try:
        referral = PatientReferral(
            slug=_new_slug(db),
            user_id=user.id,
            page_id=body.page_id,
            patient_id=body.patient_id,
            visits=0,
            leads=0,
            sales=0,
        )
        db.add(referral)
        db.commit()
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating referral for user {user.id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create referral")

    logger.info(f"Referral {referral.slug} created for patient {body.patient_id}")
    return referral


@router.get("", response_model=List[ReferralListItem])
async def list_referrals(
    patient_id: Optional[UUID] = Query(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[ReferralListItem]:
    query = db.query(PatientReferral).filter(PatientReferral.user_id == user.id)
    if patient_id is not None:
        query = query.filter(PatientReferral.patient_id == patient_id)

    items = []
    for referral in query.order_by(PatientReferral.created_at.desc()).all():
        item = ReferralListItem(
            **ReferralResponse.model_validate(referral).model_dump(),
            page_name=referral.page.title if referral.page else None,
            total_rewards=len(referral.rewards),
            unlocked_rewards=sum(1 for reward in referral.rewards if reward.is_unlocked),
        )
        items.append(item)
    return items


# =============================================================================
# Rewards
# =============================================================================

@router.post("/rewards", response_model=RewardResponse, status_code=status.HTTP_201_CREATED)
async def create_reward(
    body: RewardCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    referral = _owned_referral(db, user, body.referral_id)
    if body.type == RewardType.PAGE:
        _owned_page(db, user, body.page_id)

    try:
        reward = ReferralReward(
            referral_id=referral.id,
            type=body.type,
            title=body.title,
            description=body.description,
            unlock_value=body.unlock_value,
            unlock_type=body.unlock_type,
            page_id=body.page_id if body.type == RewardType.PAGE else None,
            text_content=body.text_content if body.type == RewardType.TEXT else None,
        )
        # A threshold the referral already meets unlocks immediately
        if referral.count_for(body.unlock_type) >= body.unlock_value:
            reward.unlocked_at = utcnow()
        db.add(reward)
        db.commit()
        db.refresh(reward)
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating reward for referral {referral.id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create reward")

    return serialize_reward(reward, referral)


@router.get("/rewards", response_model=List[RewardResponse])
async def list_rewards(
    referral_id: int = Query(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[dict]:
    """Rewards of one referral, lowest threshold first."""
    referral = _owned_referral(db, user, referral_id)
    rewards = (
        db.query(ReferralReward)
        .filter(ReferralReward.referral_id == referral.id)
        .order_by(ReferralReward.unlock_value.asc())
        .all()
    )
    return [serialize_reward(reward, referral) for reward in rewards]


@router.patch("/rewards", response_model=RewardResponse)
async def unlock_reward(
    body: RewardUnlockRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    """Unlock a reward by hand, regardless of its threshold."""
    referral = _owned_referral(db, user, body.referral_id)
    reward = (
        db.query(ReferralReward)
        .filter(ReferralReward.id == body.id, ReferralReward.referral_id == referral.id)
        .first()
    )
    if not reward:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reward not found")

    if reward.unlocked_at is None:
        reward.unlocked_at = utcnow()
        db.commit()
    return serialize_reward(reward, referral)


# =============================================================================
# Public counters
# =============================================================================

@router.post("/{slug}/visit", response_model=SuccessResponse)
async def record_visit(slug: str, db: Session = Depends(get_db)) -> SuccessResponse:
    referral = _referral_by_slug(db, slug)
    try:
        with transaction(db):
            increment_counter(db, referral, "visits")
    except Exception as e:
        logger.error(f"Error recording visit for referral {slug}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to record visit")
    return SuccessResponse(message="Visit recorded")


@router.post("/{slug}/lead", response_model=ReferralLeadResponse, status_code=status.HTTP_201_CREATED)
def create_referral_lead(
    slug: str,
    body: ReferralLeadCreate,
    db: Session = Depends(get_db),
) -> ReferralLeadResponse:
    """
    Capture a lead through a referral link.

    The lead, the counter bump and the reward unlocks commit together, and
    the whole unit is retried when the database connection drops.
    """
    referral = _referral_by_slug(db, slug)

    def capture():
        with transaction(db):
            lead = Lead(
                user_id=referral.user_id,
                name=body.name,
                phone=body.phone,
                email=body.email,
                source=LeadSource.REFERRAL.value,
                status=LeadStatus.NOVO.value,
            )
            db.add(lead)
            increment_counter(db, referral, "leads")
            unlocked = unlock_reached_rewards(db, referral, UnlockType.LEADS)
        return lead, unlocked

    try:
        lead, unlocked = with_retry(capture)
    except Exception as e:
        logger.error(f"Referral lead capture failed for {slug}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to register lead")

    get_cache().invalidate_user(referral.user_id)
    return ReferralLeadResponse(
        lead_id=lead.id,
        leads=referral.leads,
        unlocked_rewards=[reward.id for reward in unlocked],
    )


@router.post("/{referral_id}/sale", response_model=ReferralResponse)
async def record_sale(
    referral_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> PatientReferral:
    referral = _owned_referral(db, user, referral_id)
    try:
        with transaction(db):
            increment_counter(db, referral, "sales")
            unlock_reached_rewards(db, referral, UnlockType.SALES)
    except Exception as e:
        logger.error(f"Error recording sale for referral {referral_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to record sale")
    return referral


# =============================================================================
# Doctor overview
# =============================================================================

@doctor_router.get("", response_model=DoctorReferralsResponse)
async def doctor_referrals(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> DoctorReferralsResponse:
    """All referrals of the doctor, most leads first, with aggregate counters."""
    referrals = (
        db.query(PatientReferral)
        .filter(PatientReferral.user_id == user.id)
        .order_by(PatientReferral.leads.desc(), PatientReferral.created_at.desc())
        .all()
    )

    items = []
    for referral in referrals:
        rewards = [serialize_reward(reward, referral) for reward in referral.rewards]
        items.append(DoctorReferralItem(
            id=referral.id,
            slug=referral.slug,
            page=_page_summary(referral),
            patient=_patient_summary(referral),
            stats=_stats(referral),
            rewards=rewards,
            unlocked_rewards=[reward for reward in rewards if reward["is_unlocked"]],
            created_at=referral.created_at,
        ))

    totals = DoctorReferralTotals(
        total_referrals=len(referrals),
        total_visits=sum(r.visits for r in referrals),
        total_leads=sum(r.leads for r in referrals),
        total_sales=sum(r.sales for r in referrals),
    )
    return DoctorReferralsResponse(referrals=items, stats=totals)


@doctor_router.get("/{referral_id}", response_model=DoctorReferralItem)
async def doctor_referral_detail(
    referral_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> DoctorReferralItem:
    referral = _owned_referral(db, user, referral_id)
    rewards = [serialize_reward(reward, referral) for reward in referral.rewards]
    return DoctorReferralItem(
        id=referral.id,
        slug=referral.slug,
        page=_page_summary(referral),
        patient=_patient_summary(referral),
        stats=_stats(referral),
        rewards=rewards,
        unlocked_rewards=[reward for reward in rewards if reward["is_unlocked"]],
        created_at=referral.created_at,
    )


@doctor_router.put("/{referral_id}", response_model=ReferralResponse)
async def update_referral(
    referral_id: int,
    body: ReferralUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> PatientReferral:
    """Point the referral at another page and/or patient."""
    referral = _owned_referral(db, user, referral_id)
    page_id = body.page_id or referral.page_id
    patient_id = body.patient_id or referral.patient_id

    if body.page_id is not None:
        _owned_page(db, user, body.page_id)
    if body.patient_id is not None:
        _owned_patient(db, user, body.patient_id)
    _ensure_not_duplicate(db, page_id, patient_id, exclude_id=referral.id)

    referral.page_id = page_id
    referral.patient_id = patient_id
    db.commit()
    db.refresh(referral)
    return referral


@doctor_router.delete("/{referral_id}", response_model=SuccessResponse)
async def delete_referral(
    referral_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SuccessResponse:
    """Delete the referral's rewards, then the referral, in one transaction."""
    referral = _owned_referral(db, user, referral_id)
    try:
        with transaction(db):
            db.query(ReferralReward).filter(ReferralReward.referral_id == referral.id).delete(
                synchronize_session=False
            )
            db.delete(referral)
    except Exception as e:
        logger.error(f"Error deleting referral {referral_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete referral")

    logger.info(f"Referral {referral_id} deleted by user {user.id}")
    return SuccessResponse(message="Referral deleted")
