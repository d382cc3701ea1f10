"""
Indication endpoints: tracked share links with click and lead counts.
"""

import logging
from typing import Dict, List, Tuple
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..core.auth import get_current_user
from ..core.database import get_db
from ..models.indication import Indication
from ..models.lead import Event, EventType, Lead
from ..models.user import User
from ..schemas.common import SuccessResponse
from ..schemas.indication import (
    IndicationCreate,
    IndicationDetail,
    IndicationResponse,
    IndicationStats,
    IndicationUpdate,
    IndicationWithCounts,
    SlugifyRequest,
    SlugifyResponse,
)
from ..schemas.lead import LeadResponse
from ..services.cache import get_cache
from ..services.dashboard import conversion_rate
from ..services.slugs import slugify, unique_slug


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/indications", tags=["Indications"])
slugify_router = APIRouter(prefix="/api/slugify", tags=["Indications"])

RECENT_LEADS_LIMIT = 10


def _counts(db: Session, user: User) -> Tuple[Dict[UUID, int], Dict[UUID, int]]:
    """Click events and leads per indication of ``user``."""
    clicks = dict(
        db.query(Event.indication_id, func.count(Event.id))
        .filter(
            Event.user_id == user.id,
            Event.indication_id.isnot(None),
            Event.type == EventType.CLICK.value,
        )
        .group_by(Event.indication_id)
        .all()
    )
    leads = dict(
        db.query(Lead.indication_id, func.count(Lead.id))
        .filter(Lead.user_id == user.id, Lead.indication_id.isnot(None))
        .group_by(Lead.indication_id)
        .all()
    )
    return clicks, leads


def _with_counts(indication: Indication, clicks: Dict[UUID, int], leads: Dict[UUID, int]) -> IndicationWithCounts:
    return IndicationWithCounts(
        **IndicationResponse.model_validate(indication).model_dump(),
        click_count=clicks.get(indication.id, 0),
        lead_count=leads.get(indication.id, 0),
    )


def get_owned_indication(db: Session, user: User, slug: str) -> Indication:
    indication = (
        db.query(Indication)
        .filter(Indication.user_id == user.id, Indication.slug == slug)
        .first()
    )
    if not indication:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Indication not found")
    return indication


# =============================================================================
# Collection
# =============================================================================

@router.get("", response_model=List[IndicationWithCounts])
async def list_indications(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[IndicationWithCounts]:
    clicks, leads = _counts(db, user)
    indications = (
        db.query(Indication)
        .filter(Indication.user_id == user.id)
        .order_by(Indication.created_at.desc())
        .all()
    )
    return [_with_counts(indication, clicks, leads) for indication in indications]


@router.post("", response_model=IndicationResponse, status_code=status.HTTP_201_CREATED)
async def create_indication(
    body: IndicationCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Indication:
    """
    Create an indication.

    A custom slug must be free (409 otherwise); without one, the slug is
    derived from the name and suffixed until unique.
    """
    if body.slug and body.slug.strip():
        slug = slugify(body.slug)
        taken = (
            db.query(Indication.id)
            .filter(Indication.user_id == user.id, Indication.slug == slug)
            .first()
        )
        if taken:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Slug already in use")
    else:
        slug = unique_slug(db, Indication, user.id, slugify(body.name))

    try:
        indication = Indication(
            user_id=user.id,
            name=body.name,
            slug=slug,
            type=body.type,
            quiz_id=body.quiz_id,
            patient_id=body.patient_id,
        )
        db.add(indication)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating indication for user {user.id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create indication")

    get_cache().invalidate_user(user.id)
    return indication


@router.get("/stats", response_model=List[IndicationStats])
async def indication_stats(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[IndicationStats]:
    """Per-indication clicks, leads and conversion, best converting first."""
    clicks, leads = _counts(db, user)
    stats = [
        IndicationStats(
            id=indication.id,
            name=indication.name,
            slug=indication.slug,
            clicks=clicks.get(indication.id, 0),
            leads=leads.get(indication.id, 0),
            conversion_rate=conversion_rate(leads.get(indication.id, 0), clicks.get(indication.id, 0)),
        )
        for indication in db.query(Indication).filter(Indication.user_id == user.id).all()
    ]
    return sorted(stats, key=lambda s: (s.conversion_rate, s.leads), reverse=True)


# =============================================================================
# Single indication
# =============================================================================

@router.get("/{slug}", response_model=IndicationDetail)
async def get_indication(
    slug: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> IndicationDetail:
    indication = get_owned_indication(db, user, slug)
    clicks, leads = _counts(db, user)
    recent = (
        db.query(Lead)
        .filter(Lead.indication_id == indication.id)
        .order_by(Lead.created_at.desc())
        .limit(RECENT_LEADS_LIMIT)
        .all()
    )
    return IndicationDetail(
        **_with_counts(indication, clicks, leads).model_dump(),
        recent_leads=[LeadResponse.model_validate(lead) for lead in recent],
    )


@router.put("/{slug}", response_model=IndicationResponse)
async def update_indication(
    slug: str,
    body: IndicationUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Indication:
    indication = get_owned_indication(db, user, slug)
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(indication, field, value)
    db.commit()
    return indication


@router.delete("/{slug}", response_model=SuccessResponse)
async def delete_indication(
    slug: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SuccessResponse:
    indication = get_owned_indication(db, user, slug)
    try:
        db.delete(indication)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting indication {slug}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete indication")

    get_cache().invalidate_user(user.id)
    return SuccessResponse(message="Indication deleted")


# =============================================================================
# Slug suggestion
# =============================================================================

@slugify_router.post("", response_model=SlugifyResponse)
async def suggest_slug(
    body: SlugifyRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SlugifyResponse:
    """Slug for ``name`` that none of the caller's indications uses yet."""
    return SlugifyResponse(slug=unique_slug(db, Indication, user.id, slugify(body.name)))
