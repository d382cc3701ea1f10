"""
Patient portal endpoints.

Every route requires the shared ``X-API-Key``. Routes acting as a specific
patient also take a patient token, sent as a bearer header or in the
``auth_token`` cookie set at login.
"""

import logging
from datetime import timedelta
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..core.auth import PATIENT_COOKIE_NAME, get_current_patient, require_portal_api_key
from ..core.config import settings
from ..core.database import get_db, utcnow
from ..core.security import create_patient_token, generate_secure_token, hash_password, verify_password
from ..models.patient import Patient
from ..models.referral import PatientReferral
from ..schemas.common import SuccessResponse
from ..schemas.portal import (
    PortalChangePasswordRequest,
    PortalDoctor,
    PortalEmailRequest,
    PortalLoginRequest,
    PortalLoginResponse,
    PortalPatientProfile,
    PortalSetupPasswordRequest,
    PortalTokenStatus,
    PortalValidateResponse,
)
from ..schemas.referral import PageSummary, PortalReferral, PortalReward, ReferralStats, ReferralSummary
from ..services.email_service import email_service
from ..services.rewards import serialize_reward


logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/api/portal",
    tags=["Portal"],
    dependencies=[Depends(require_portal_api_key)],
)

RESET_TOKEN_HOURS = 1


def _patients_by_email(db: Session, email: str) -> List[Patient]:
    """A patient of several doctors has one row per doctor; oldest first."""
    return (
        db.query(Patient)
        .filter(func.lower(Patient.email) == email.lower())
        .order_by(Patient.created_at)
        .all()
    )


def _profile(patient: Patient) -> PortalPatientProfile:
    return PortalPatientProfile(
        id=patient.id,
        name=patient.name,
        email=patient.email,
        phone=patient.phone,
        has_portal_access=patient.has_portal_access,
        has_active_products=patient.has_active_products,
        created_at=patient.created_at,
        doctor=PortalDoctor.model_validate(patient.user) if patient.user else None,
    )


def _patient_by_token(db: Session, token: str) -> Patient:
    patient = db.query(Patient).filter(Patient.reset_token == token).first()
    if not patient or patient.reset_token_expired:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired token",
        )
    return patient


def _referrals(db: Session, patient: Patient) -> List[PatientReferral]:
    return (
        db.query(PatientReferral)
        .filter(PatientReferral.patient_id == patient.id)
        .order_by(PatientReferral.created_at.desc())
        .all()
    )


# =============================================================================
# Account
# =============================================================================

@router.post("/validate", response_model=PortalValidateResponse)
async def validate_email(body: PortalEmailRequest, db: Session = Depends(get_db)) -> PortalValidateResponse:
    """Whether a patient with this email exists and may use the portal."""
    patients = _patients_by_email(db, body.email)
    if not patients:
        return PortalValidateResponse(exists=False)
    return PortalValidateResponse(
        exists=True,
        has_access=any(patient.has_portal_access for patient in patients),
    )


@router.post("/me", response_model=PortalPatientProfile)
async def profile_by_email(body: PortalEmailRequest, db: Session = Depends(get_db)) -> PortalPatientProfile:
    patients = _patients_by_email(db, body.email)
    if not patients:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")
    return _profile(patients[0])


@router.post("/login", response_model=PortalLoginResponse)
async def login(
    body: PortalLoginRequest,
    response: Response,
    db: Session = Depends(get_db),
) -> PortalLoginResponse:
    """
    Authenticate a patient with portal access.

    The token is returned in the body and also set as the ``auth_token``
    cookie for the portal site.
    """
    patient = next(
        (
            candidate for candidate in _patients_by_email(db, body.email)
            if candidate.has_portal_access and verify_password(body.password, candidate.password_hash)
        ),
        None,
    )
    if patient is None:
        logger.warning(f"Failed portal login for email={body.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    token = create_patient_token({"id": str(patient.id), "email": patient.email})
    response.set_cookie(
        key=PATIENT_COOKIE_NAME,
        value=token,
        max_age=settings.patient_token_expire_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    logger.info(f"Patient {patient.id} logged in to the portal")
    return PortalLoginResponse(access_token=token, patient=_profile(patient))


@router.post("/setup-password", response_model=SuccessResponse)
@router.post("/reset-password/confirm", response_model=SuccessResponse)
async def setup_password(body: PortalSetupPasswordRequest, db: Session = Depends(get_db)) -> SuccessResponse:
    """
    Set the portal password using an emailed set-up or reset token; the
    token is single use.
    """
    patient = _patient_by_token(db, body.token)

    patient.password_hash = hash_password(body.password)
    patient.reset_token = None
    patient.reset_token_expiry = None
    patient.has_portal_access = True
    db.commit()

    logger.info(f"Portal password set for patient {patient.id}")
    return SuccessResponse(message="Password set successfully")


@router.get("/me", response_model=PortalPatientProfile)
async def get_me(patient: Patient = Depends(get_current_patient)) -> PortalPatientProfile:
    return _profile(patient)


@router.post("/change-password", response_model=SuccessResponse)
async def change_password(
    body: PortalChangePasswordRequest,
    patient: Patient = Depends(get_current_patient),
    db: Session = Depends(get_db),
) -> SuccessResponse:
    if not verify_password(body.current_password, patient.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        )

    patient.password_hash = hash_password(body.new_password)
    db.commit()
    logger.info(f"Portal password changed for patient {patient.id}")
    return SuccessResponse(message="Password changed successfully")


@router.post("/reset-password", response_model=SuccessResponse)
async def request_password_reset(body: PortalEmailRequest, db: Session = Depends(get_db)) -> SuccessResponse:
    """
    Email a password reset link valid for one hour. Always returns the same
    message so the response never reveals whether the email exists.
    """
    safe_message = "If a portal account exists with this email, you'll receive a reset link."

    patient = next((p for p in _patients_by_email(db, body.email) if p.has_portal_access), None)
    if patient is None:
        logger.info(f"Portal password reset requested for unknown email: {body.email}")
        return SuccessResponse(message=safe_message)

    token = generate_secure_token(32)
    patient.reset_token = token
    patient.reset_token_expiry = utcnow() + timedelta(hours=RESET_TOKEN_HOURS)
    db.commit()

    if not email_service.send_portal_password_reset(patient.email, patient.name, token):
        logger.warning(f"Portal reset email for patient {patient.id} was not sent")
    return SuccessResponse(message=safe_message)


@router.get("/reset-password/{token}", response_model=PortalTokenStatus)
async def check_reset_token(token: str, db: Session = Depends(get_db)) -> PortalTokenStatus:
    """400 for an unknown or expired token."""
    _patient_by_token(db, token)
    return PortalTokenStatus(valid=True)


# =============================================================================
# Referrals and rewards
# =============================================================================

@router.get("/referrals", response_model=List[PortalReferral])
async def my_referrals(
    patient: Patient = Depends(get_current_patient),
    db: Session = Depends(get_db),
) -> List[PortalReferral]:
    return [
        PortalReferral(
            id=referral.id,
            slug=referral.slug,
            page=PageSummary.model_validate(referral.page) if referral.page else None,
            stats=ReferralStats(visits=referral.visits, leads=referral.leads, sales=referral.sales),
            rewards=[serialize_reward(reward, referral) for reward in referral.rewards],
            created_at=referral.created_at,
        )
        for referral in _referrals(db, patient)
    ]


@router.get("/rewards", response_model=List[PortalReward])
async def my_rewards(
    patient: Patient = Depends(get_current_patient),
    db: Session = Depends(get_db),
) -> List[PortalReward]:
    """Rewards across all of the patient's referrals, each with its referral."""
    rewards = []
    for referral in _referrals(db, patient):
        summary = ReferralSummary(
            id=referral.id,
            slug=referral.slug,
            page=PageSummary.model_validate(referral.page) if referral.page else None,
        )
        rewards.extend(
            PortalReward(**serialize_reward(reward, referral), referral=summary)
            for reward in referral.rewards
        )
    return rewards
