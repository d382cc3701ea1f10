"""
Doctor profile and plan endpoints, plus the public doctor lookup.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..core.auth import get_current_user
from ..core.config import settings
from ..core.database import get_db
from ..models.indication import Indication
from ..models.lead import Lead
from ..models.user import User
from ..schemas.user import (
    PlanResponse,
    ProfileResponse,
    ProfileUpdate,
    PublicDoctorResponse,
)
from ..services.cache import get_cache
from ..services.plans import effective_plan


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/users", tags=["Users"])
doctors_router = APIRouter(prefix="/api/doctors", tags=["Users"])


def _profile(db: Session, user: User) -> dict:
    indication_count = (
        db.query(func.count(Indication.id)).filter(Indication.user_id == user.id).scalar() or 0
    )
    lead_count = db.query(func.count(Lead.id)).filter(Lead.user_id == user.id).scalar() or 0
    profile = ProfileResponse.model_validate(user)
    profile.indication_count = indication_count
    profile.lead_count = lead_count
    return profile.model_dump(mode="json")


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    """Own profile with indication and lead counts (cached)."""
    cache = get_cache()
    return cache.get_or_compute(
        cache.profile_key(user.id),
        lambda: _profile(db, user),
        ttl=settings.cache_ttl_profile,
    )


@router.put("/profile", response_model=ProfileResponse)
async def update_profile(
    body: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        for field, value in body.model_dump(exclude_unset=True).items():
            setattr(user, field, value)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating profile of user {user.id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update profile")

    get_cache().invalidate_user(user.id)
    return _profile(db, user)


@router.get("/plan", response_model=PlanResponse)
async def get_plan(
    response: Response,
    no_cache: bool = Query(False, description="Ask clients and proxies not to store the answer"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> PlanResponse:
    """Current plan after applying expiry; expired premium plans read as free."""
    plan = effective_plan(db, user)
    response.headers["Cache-Control"] = "no-store" if no_cache else "private, max-age=60"
    return PlanResponse(plan=plan.value, plan_expires_at=user.plan_expires_at)


@doctors_router.get("/{slug}", response_model=PublicDoctorResponse)
async def get_doctor_by_slug(slug: str, db: Session = Depends(get_db)) -> PublicDoctorResponse:
    user = db.query(User).filter(User.slug == slug).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Doctor not found")
    return PublicDoctorResponse.model_validate(user)
