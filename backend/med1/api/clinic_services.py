"""
Service catalog endpoints: the procedures and consultations a doctor offers.
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..core.auth import get_current_user
from ..core.database import get_db
from ..models.catalog import Service
from ..models.user import User
from ..schemas.catalog import ServiceCreate, ServiceResponse, ServiceUpdate
from ..schemas.common import SuccessResponse


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/services", tags=["Services"])


def get_owned_service(db: Session, user: User, service_id: UUID) -> Service:
    service = db.query(Service).filter(Service.id == service_id, Service.user_id == user.id).first()
    if not service:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Service not found")
    return service


@router.get("", response_model=List[ServiceResponse])
async def list_services(
    active_only: bool = Query(False, description="Only services still offered"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[Service]:
    query = db.query(Service).filter(Service.user_id == user.id)
    if active_only:
        query = query.filter(Service.is_active.is_(True))
    return query.order_by(Service.name.asc()).all()


@router.post("", response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
async def create_service(
    body: ServiceCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Service:
    try:
        service = Service(user_id=user.id, **body.model_dump())
        db.add(service)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating service for user {user.id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create service")
    return service


@router.get("/{service_id}", response_model=ServiceResponse)
async def get_service(
    service_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Service:
    return get_owned_service(db, user, service_id)


@router.patch("/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: UUID,
    body: ServiceUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Service:
    """Update only the fields sent; a null name or active flag is ignored."""
    service = get_owned_service(db, user, service_id)
    try:
        for field, value in body.model_dump(exclude_unset=True).items():
            if field in ("name", "is_active") and value is None:
                continue
            setattr(service, field, value)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating service {service_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update service")
    return service


@router.delete("/{service_id}", response_model=SuccessResponse)
async def delete_service(
    service_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SuccessResponse:
    service = get_owned_service(db, user, service_id)
    try:
        db.delete(service)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting service {service_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete service")
    return SuccessResponse(message="Service deleted")
