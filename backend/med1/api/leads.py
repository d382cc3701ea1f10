"""
Lead management endpoints for the authenticated doctor.

Every query is scoped to the caller: a lead owned by another doctor is
reported as not found.
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..core.auth import get_current_user
from ..core.database import get_db
from ..models.lead import Lead
from ..models.pipeline import Pipeline
from ..models.user import User
from ..schemas.common import SuccessResponse
from ..schemas.lead import (
    LeadImportRequest,
    LeadImportResponse,
    LeadNotesRequest,
    LeadNotesResponse,
    LeadResponse,
    LeadUpdate,
    LeadUpdateResponse,
)
from ..services.cache import get_cache
from ..services.imports import import_leads, valid_lead_rows


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/leads", tags=["Leads"])


def get_owned_lead(db: Session, user: User, lead_id: UUID) -> Lead:
    lead = db.query(Lead).filter(Lead.id == lead_id, Lead.user_id == user.id).first()
    if not lead:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")
    return lead


# =============================================================================
# List / Import
# =============================================================================

@router.get("", response_model=List[LeadResponse], summary="List Leads")
async def list_leads(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[Lead]:
    """Own leads, newest first, each with its indication name and slug."""
    return (
        db.query(Lead)
        .filter(Lead.user_id == user.id)
        .order_by(Lead.created_at.desc())
        .all()
    )


@router.post("/import", response_model=LeadImportResponse, summary="Import Leads")
async def import_leads_endpoint(
    body: LeadImportRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> LeadImportResponse:
    """
    Bulk import from a parsed spreadsheet.

    Rows without a name and phone are dropped; if none remain the request
    is rejected.
    """
    if not valid_lead_rows(body.leads):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No valid leads to import (name and phone are required)",
        )

    try:
        result = import_leads(db, user, body.leads)
    except Exception as e:
        db.rollback()
        logger.error(f"Lead import failed for user {user.id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to import leads")

    get_cache().invalidate_user(user.id)
    return LeadImportResponse(imported=result.imported, total=result.total)


# =============================================================================
# Single lead
# =============================================================================

@router.get("/{lead_id}", response_model=LeadResponse)
async def get_lead(
    lead_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Lead:
    return get_owned_lead(db, user, lead_id)


@router.patch("/{lead_id}", response_model=LeadUpdateResponse, summary="Update Lead")
async def update_lead(
    lead_id: UUID,
    body: LeadUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> LeadUpdateResponse:
    lead = get_owned_lead(db, user, lead_id)
    changes = body.model_dump(exclude_unset=True)

    pipeline_id = changes.get("pipeline_id")
    if pipeline_id is not None:
        owned = db.query(Pipeline.id).filter(Pipeline.id == pipeline_id, Pipeline.user_id == user.id).first()
        if not owned:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pipeline not found")

    try:
        for field, value in changes.items():
            setattr(lead, field, value)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Lead update error for {lead_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update lead")

    get_cache().invalidate_user(user.id)
    return LeadUpdateResponse(
        data=LeadResponse.model_validate(lead),
        message="Lead updated successfully",
    )


@router.delete("/{lead_id}", response_model=SuccessResponse)
async def delete_lead(
    lead_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SuccessResponse:
    lead = get_owned_lead(db, user, lead_id)
    try:
        db.delete(lead)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Delete lead error for {lead_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete lead")

    get_cache().invalidate_user(user.id)
    return SuccessResponse(message="Lead deleted")


# =============================================================================
# Medical notes
# =============================================================================

@router.get("/{lead_id}/notes", response_model=LeadNotesResponse)
async def get_lead_notes(
    lead_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> LeadNotesResponse:
    lead = get_owned_lead(db, user, lead_id)
    return LeadNotesResponse(id=lead.id, medical_notes=lead.medical_notes)


@router.post("/{lead_id}/notes", response_model=LeadNotesResponse)
async def save_lead_notes(
    lead_id: UUID,
    body: LeadNotesRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> LeadNotesResponse:
    """Replace the lead's medical notes."""
    lead = get_owned_lead(db, user, lead_id)
    lead.medical_notes = body.medical_notes
    db.commit()
    return LeadNotesResponse(id=lead.id, medical_notes=lead.medical_notes)
