"""
Authentication and authorisation dependencies for FastAPI routes.

Provides:
- get_current_user: extracts & verifies the doctor JWT, returns the User row
- validate_portal_api_key / require_portal_api_key: shared-key gate for the
  patient portal surface
- get_current_patient: verifies a patient portal token, returns the Patient row
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import Cookie, Depends, Header, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db
from .security import TOKEN_TYPE_ACCESS, TOKEN_TYPE_PATIENT, constant_time_equals, decode_token
from ..models.patient import Patient
from ..models.user import User, UserStatus


logger = logging.getLogger(__name__)

# The tokenUrl is informational (used by Swagger UI); actual login is POST /api/auth/login
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)

PATIENT_COOKIE_NAME = "auth_token"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


# =============================================================================
# Doctor authentication
# =============================================================================

async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Decode the JWT bearer token and return the authenticated doctor.

    Raises 401 if token is missing, invalid, or the user is unknown;
    403 if the account is inactive.
    """
    if not token:
        raise _unauthorized("Not authenticated")

    payload = decode_token(token)
    if payload is None or payload.get("type") != TOKEN_TYPE_ACCESS:
        raise _unauthorized("Invalid or expired token")

    user_id = payload.get("sub")
    if not user_id:
        raise _unauthorized("Invalid token payload")

    user = db.query(User).filter(User.id == _parse_uuid(user_id)).first()
    if not user:
        raise _unauthorized("User not found")

    if user.status == UserStatus.INACTIVE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account has been deactivated",
        )

    return user


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(str(value))
    except ValueError:
        raise _unauthorized("Invalid token payload")


# =============================================================================
# Portal API key
# =============================================================================

def validate_portal_api_key(api_key: Optional[str]) -> bool:
    """
    Check a portal API key against ``PORTAL_API_KEY``.

    Returns False when no key was sent or when the server has no key
    configured.
    """
    if not api_key:
        return False

    if not settings.portal_api_key:
        logger.error("PORTAL_API_KEY is not configured; rejecting portal request")
        return False

    return constant_time_equals(api_key, settings.portal_api_key)


async def require_portal_api_key(
    x_api_key: Optional[str] = Header(default=None, alias="X-API-Key"),
) -> None:
    """Dependency guarding every /api/portal route."""
    if not validate_portal_api_key(x_api_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
        )


# =============================================================================
# Patient authentication
# =============================================================================

async def get_current_patient(
    token: Optional[str] = Depends(oauth2_scheme),
    auth_token: Optional[str] = Cookie(default=None),
    db: Session = Depends(get_db),
) -> Patient:
    """
    Resolve the patient from a portal token (bearer header or ``auth_token`` cookie).
    """
    raw = token or auth_token
    if not raw:
        raise _unauthorized("Not authenticated")

    payload = decode_token(raw)
    if payload is None or payload.get("type") != TOKEN_TYPE_PATIENT:
        raise _unauthorized("Invalid or expired token")

    patient_id = payload.get("id")
    if not patient_id:
        raise _unauthorized("Invalid token payload")

    patient = db.query(Patient).filter(Patient.id == _parse_uuid(patient_id)).first()
    if not patient:
        raise _unauthorized("Patient not found")

    return patient
