"""
Outbound prospecting endpoints: contacts the doctor is prospecting, the
clinics where they work and the log of interactions with each contact.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..core.auth import get_current_user
from ..core.database import get_db
from ..models.outbound import DEFAULT_OUTBOUND_STATUS, ContactInteraction, Outbound, OutboundClinic
from ..models.user import User
from ..schemas.common import SuccessResponse
from ..schemas.outbound import (
    ClinicInput,
    ClinicResponse,
    InteractionCreate,
    InteractionResponse,
    OutboundCreate,
    OutboundResponse,
    OutboundUpdate,
)


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/outbound", tags=["Outbound"])


def get_owned_outbound(db: Session, user: User, outbound_id: int) -> Outbound:
    outbound = db.query(Outbound).filter(Outbound.id == outbound_id, Outbound.user_id == user.id).first()
    if not outbound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Outbound contact not found")
    return outbound


@router.get("", response_model=List[OutboundResponse])
async def list_outbound(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[Outbound]:
    return (
        db.query(Outbound)
        .filter(Outbound.user_id == user.id)
        .order_by(Outbound.created_at.desc())
        .all()
    )


@router.post("", response_model=OutboundResponse, status_code=status.HTTP_201_CREATED)
async def create_outbound(
    body: OutboundCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Outbound:
    """Create a contact together with any clinics sent alongside it."""
    data = body.model_dump(exclude={"clinics"})
    data["status"] = data.get("status") or DEFAULT_OUTBOUND_STATUS
    try:
        outbound = Outbound(user_id=user.id, **data)
        outbound.clinics = [OutboundClinic(**clinic.model_dump()) for clinic in body.clinics]
        db.add(outbound)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating outbound contact for user {user.id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create outbound contact")
    return outbound


@router.get("/{outbound_id}", response_model=OutboundResponse)
async def get_outbound(
    outbound_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Outbound:
    return get_owned_outbound(db, user, outbound_id)


@router.put("/{outbound_id}", response_model=OutboundResponse)
async def update_outbound(
    outbound_id: int,
    body: OutboundUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Outbound:
    outbound = get_owned_outbound(db, user, outbound_id)
    try:
        for field, value in body.model_dump(exclude_unset=True).items():
            if field in ("nome", "status") and not value:
                continue
            setattr(outbound, field, value)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating outbound contact {outbound_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update outbound contact")
    return outbound


@router.delete("/{outbound_id}", response_model=SuccessResponse)
async def delete_outbound(
    outbound_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SuccessResponse:
    outbound = get_owned_outbound(db, user, outbound_id)
    try:
        db.delete(outbound)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting outbound contact {outbound_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete outbound contact")
    return SuccessResponse(message="Outbound contact deleted")


@router.get("/{outbound_id}/clinics", response_model=List[ClinicResponse])
async def list_clinics(
    outbound_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[OutboundClinic]:
    return get_owned_outbound(db, user, outbound_id).clinics


@router.post("/{outbound_id}/clinics", response_model=ClinicResponse, status_code=status.HTTP_201_CREATED)
async def add_clinic(
    outbound_id: int,
    body: ClinicInput,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> OutboundClinic:
    outbound = get_owned_outbound(db, user, outbound_id)
    try:
        clinic = OutboundClinic(outbound_id=outbound.id, **body.model_dump())
        db.add(clinic)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error adding clinic to outbound contact {outbound_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to add clinic")
    return clinic


# =============================================================================
# Interactions
# =============================================================================

@router.get("/{outbound_id}/interactions", response_model=List[InteractionResponse])
async def list_interactions(
    outbound_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[ContactInteraction]:
    """Interactions with the contact, newest first."""
    outbound = get_owned_outbound(db, user, outbound_id)
    return (
        db.query(ContactInteraction)
        .filter(ContactInteraction.outbound_id == outbound.id)
        .order_by(ContactInteraction.created_at.desc(), ContactInteraction.id.desc())
        .all()
    )


@router.post(
    "/{outbound_id}/interactions",
    response_model=InteractionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_interaction(
    outbound_id: int,
    body: InteractionCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ContactInteraction:
    outbound = get_owned_outbound(db, user, outbound_id)
    try:
        interaction = ContactInteraction(
            outbound_id=outbound.id,
            type=body.type.value,
            content=body.content,
        )
        db.add(interaction)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error adding interaction to outbound contact {outbound_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to add interaction")
    return interaction


@router.delete("/{outbound_id}/interactions/{interaction_id}", response_model=SuccessResponse)
async def delete_interaction(
    outbound_id: int,
    interaction_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SuccessResponse:
    outbound = get_owned_outbound(db, user, outbound_id)
    interaction = (
        db.query(ContactInteraction)
        .filter(ContactInteraction.id == interaction_id, ContactInteraction.outbound_id == outbound.id)
        .first()
    )
    if not interaction:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Interaction not found")

    try:
        db.delete(interaction)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting interaction {interaction_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete interaction")
    return SuccessResponse(message="Interaction deleted")
