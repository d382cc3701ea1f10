"""
Patient endpoints.

Creating a patient always creates the lead it converts from, so every
patient carries a lead with status, appointment date and medical notes.
"""

import logging
from datetime import timedelta
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..core.auth import get_current_user
from ..core.database import get_db, utcnow
from ..core.security import generate_secure_token
from ..core.transactions import transaction
from ..models.lead import Lead, LeadSource, LeadStatus
from ..models.patient import Patient
from ..models.user import User
from ..schemas.common import SuccessResponse
from ..schemas.patient import (
    PatientCreate,
    PatientImportRequest,
    PatientImportResponse,
    PatientResponse,
    PatientUpdate,
    PortalConfigResponse,
)
from ..services.cache import get_cache
from ..services.email_service import email_service
from ..services.imports import import_patients


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/patients", tags=["Patients"])

PORTAL_SETUP_TOKEN_HOURS = 24
LEAD_FIELDS = ("status", "appointment_date", "medical_notes")


def get_owned_patient(db: Session, user: User, patient_id: UUID) -> Patient:
    patient = db.query(Patient).filter(Patient.id == patient_id, Patient.user_id == user.id).first()
    if not patient:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")
    return patient


def _email_taken(db: Session, user: User, email: str, exclude_id: UUID = None) -> bool:
    query = db.query(Patient.id).filter(
        Patient.user_id == user.id,
        func.lower(Patient.email) == email.lower(),
    )
    if exclude_id is not None:
        query = query.filter(Patient.id != exclude_id)
    return query.first() is not None


@router.get("", response_model=List[PatientResponse])
async def list_patients(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[Patient]:
    return (
        db.query(Patient)
        .filter(Patient.user_id == user.id)
        .order_by(Patient.created_at.desc())
        .all()
    )


@router.post("", response_model=PatientResponse, status_code=status.HTTP_201_CREATED)
async def create_patient(
    body: PatientCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Patient:
    """Create the lead and then the patient, in one transaction."""
    if _email_taken(db, user, body.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A patient with this email already exists",
        )

    try:
        with transaction(db):
            lead = Lead(
                user_id=user.id,
                name=body.name,
                phone=body.phone,
                email=body.email,
                status=LeadStatus.NOVO.value,
                source=LeadSource.PATIENT.value,
                indication_id=body.indication_id,
                medical_notes=body.medical_notes,
            )
            db.add(lead)
            db.flush()
            patient = Patient(
                user_id=user.id,
                lead_id=lead.id,
                name=body.name,
                email=body.email,
                phone=body.phone,
                cpf=body.cpf,
            )
            db.add(patient)
    except Exception as e:
        logger.error(f"Error creating patient for user {user.id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create patient")

    get_cache().invalidate_user(user.id)
    logger.info(f"Patient {patient.id} created for user {user.id}")
    return patient


@router.post("/import", response_model=PatientImportResponse)
async def import_patients_endpoint(
    body: PatientImportRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> PatientImportResponse:
    result = import_patients(db, user, body.patients)
    get_cache().invalidate_user(user.id)
    return PatientImportResponse(imported=result.imported, total=result.total, failed=result.failed)


@router.get("/{patient_id}", response_model=PatientResponse)
async def get_patient(
    patient_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Patient:
    return get_owned_patient(db, user, patient_id)


@router.put("/{patient_id}", response_model=PatientResponse)
async def update_patient(
    patient_id: UUID,
    body: PatientUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Patient:
    """Update the patient; status, appointment date and notes go to the linked lead."""
    patient = get_owned_patient(db, user, patient_id)
    changes = body.model_dump(exclude_unset=True)

    if changes.get("email") and _email_taken(db, user, changes["email"], exclude_id=patient.id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A patient with this email already exists",
        )

    try:
        with transaction(db):
            lead_changes = {k: changes.pop(k) for k in LEAD_FIELDS if k in changes}
            for field, value in changes.items():
                setattr(patient, field, value)
            if patient.lead is not None:
                for field, value in lead_changes.items():
                    setattr(patient.lead, field, value)
                for field in ("name", "email", "phone"):
                    if field in changes:
                        setattr(patient.lead, field, changes[field])
    except Exception as e:
        logger.error(f"Error updating patient {patient_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update patient")

    get_cache().invalidate_user(user.id)
    return patient


@router.delete("/{patient_id}", response_model=SuccessResponse)
async def delete_patient(
    patient_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SuccessResponse:
    patient = get_owned_patient(db, user, patient_id)
    try:
        db.delete(patient)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting patient {patient_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete patient")
    return SuccessResponse(message="Patient deleted")


@router.post("/{patient_id}/send-portal-config", response_model=PortalConfigResponse)
async def send_portal_config(
    patient_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> PortalConfigResponse:
    """
    Grant portal access and email the patient a password set-up link
    valid for 24 hours.
    """
    patient = get_owned_patient(db, user, patient_id)
    token = generate_secure_token(32)
    patient.reset_token = token
    patient.reset_token_expiry = utcnow() + timedelta(hours=PORTAL_SETUP_TOKEN_HOURS)
    patient.has_portal_access = True
    db.commit()

    email_sent = email_service.send_portal_access(patient.email, patient.name, user.name, token)
    if not email_sent:
        logger.warning(f"Portal set-up email for patient {patient.id} was not sent")

    return PortalConfigResponse(
        message="Portal access configured",
        email_sent=email_sent,
    )
