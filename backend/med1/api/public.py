"""
Unauthenticated endpoints used by public pages: lead capture, content
lookup and click tracking.
"""

import base64
import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.orm import Session

from ..core.database import get_db
from ..models.indication import Indication
from ..models.lead import EventType, Lead, LeadSource, LeadStatus
from ..models.page import Page
from ..models.pipeline import Pipeline
from ..models.user import User
from ..schemas.indication import IndicationResponse
from ..schemas.lead import PipelineLeadCreate, PublicLeadCreate, PublicLeadResponse, TrackEventRequest
from ..schemas.page import ContentResponse, PageResponse
from ..schemas.user import PublicDoctorResponse
from ..services.cache import get_cache
from ..services.tracking import record_event


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["Public"])

# Transparent 1x1 GIF served by the tracking pixel
TRACKING_PIXEL = base64.b64decode("R0lGODlhAQABAIAAAAAAAP///yH5BAEAAAAALAAAAAABAAEAAAIBRAA7")


# =============================================================================
# Lead capture
# =============================================================================

@router.post("/lead", response_model=PublicLeadResponse, status_code=status.HTTP_201_CREATED)
async def capture_lead(
    body: PublicLeadCreate,
    request: Request,
    db: Session = Depends(get_db),
) -> PublicLeadResponse:
    """
    Capture a lead from a doctor's public page or indication link.

    An unknown ``indication_slug`` is ignored; the lead is still stored
    without attribution.
    """
    doctor = db.query(User).filter(User.slug == body.user_slug).first()
    if not doctor:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Doctor not found")

    indication = None
    if body.indication_slug:
        indication = (
            db.query(Indication)
            .filter(Indication.user_id == doctor.id, Indication.slug == body.indication_slug)
            .first()
        )

    try:
        lead = Lead(
            user_id=doctor.id,
            name=body.name,
            phone=body.phone,
            email=body.email,
            status=LeadStatus.NOVO.value,
            source=LeadSource.FORM.value,
            indication_id=indication.id if indication else None,
            utm_source=body.utm_source,
            utm_medium=body.utm_medium,
            utm_campaign=body.utm_campaign,
            utm_term=body.utm_term,
            utm_content=body.utm_content,
        )
        db.add(lead)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error capturing lead for doctor {doctor.slug}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to save lead")

    record_event(
        db,
        doctor.id,
        EventType.LEAD,
        request=request,
        indication_id=lead.indication_id,
        utm_source=body.utm_source,
        utm_medium=body.utm_medium,
        utm_campaign=body.utm_campaign,
    )
    get_cache().invalidate_user(doctor.id)
    logger.info(f"Lead {lead.id} captured for doctor {doctor.slug}")
    return PublicLeadResponse(lead_id=lead.id)


@router.post("/public/leads", response_model=PublicLeadResponse, status_code=status.HTTP_201_CREATED)
async def capture_pipeline_lead(body: PipelineLeadCreate, db: Session = Depends(get_db)) -> PublicLeadResponse:
    """Capture a lead straight into a pipeline; the pipeline's owner receives it."""
    pipeline = db.query(Pipeline).filter(Pipeline.id == body.pipeline_id).first()
    if not pipeline:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pipeline not found")

    try:
        lead = Lead(
            user_id=pipeline.user_id,
            pipeline_id=pipeline.id,
            name=body.name,
            phone=body.phone,
            email=body.email,
            status=LeadStatus.NOVO.value,
            source=LeadSource.PIPELINE.value,
        )
        db.add(lead)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error capturing lead for pipeline {pipeline.id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to save lead")

    get_cache().invalidate_user(pipeline.user_id)
    return PublicLeadResponse(lead_id=lead.id)


# =============================================================================
# Content
# =============================================================================

@router.get("/content/{user_slug}/{slug}", response_model=ContentResponse)
async def get_content(
    user_slug: str,
    slug: str,
    request: Request,
    db: Session = Depends(get_db),
) -> ContentResponse:
    """Resolve ``slug`` to one of the doctor's pages, falling back to an indication."""
    doctor = db.query(User).filter(User.slug == user_slug).first()
    if not doctor:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Content not found")
    owner = PublicDoctorResponse.model_validate(doctor)

    page = db.query(Page).filter(Page.user_id == doctor.id, Page.slug == slug).first()
    if page:
        content = ContentResponse(type="page", user=owner, page=PageResponse.model_validate(page))
        record_event(db, doctor.id, EventType.PAGE_VIEW, request=request, page_id=page.id)
        return content

    indication = (
        db.query(Indication)
        .filter(Indication.user_id == doctor.id, Indication.slug == slug)
        .first()
    )
    if indication:
        content = ContentResponse(
            type="indication",
            user=owner,
            indication=IndicationResponse.model_validate(indication),
        )
        record_event(db, doctor.id, EventType.LINK_VIEW, request=request, indication_id=indication.id)
        return content

    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Content not found")


# =============================================================================
# Tracking
# =============================================================================

def _track(db: Session, request: Request, body: TrackEventRequest) -> None:
    if body.user_id is None:
        return
    try:
        event_type = EventType(body.type)
    except ValueError:
        logger.debug(f"Ignoring unknown event type '{body.type}'")
        return
    record_event(
        db,
        body.user_id,
        event_type,
        request=request,
        indication_id=body.indication_id,
        page_id=body.page_id,
        utm_source=body.utm_source,
        utm_medium=body.utm_medium,
        utm_campaign=body.utm_campaign,
    )


@router.post("/track", status_code=status.HTTP_204_NO_CONTENT)
async def track_event(body: TrackEventRequest, request: Request, db: Session = Depends(get_db)) -> Response:
    """Record a tracking event. Always answers 204, even when nothing is stored."""
    _track(db, request, body)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/track")
async def tracking_pixel(
    request: Request,
    user_id: Optional[UUID] = Query(None),
    type: str = Query(EventType.CLICK.value),
    indication_id: Optional[UUID] = Query(None),
    page_id: Optional[UUID] = Query(None),
    utm_source: Optional[str] = Query(None),
    utm_medium: Optional[str] = Query(None),
    utm_campaign: Optional[str] = Query(None),
    db: Session = Depends(get_db),
) -> Response:
    _track(db, request, TrackEventRequest(
        user_id=user_id,
        type=type,
        indication_id=indication_id,
        page_id=page_id,
        utm_source=utm_source,
        utm_medium=utm_medium,
        utm_campaign=utm_campaign,
    ))
    return Response(
        content=TRACKING_PIXEL,
        media_type="image/gif",
        headers={"Cache-Control": "no-store, no-cache, must-revalidate"},
    )
