"""
Patient portal schemas.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from .common import NonEmptyStr


class PortalEmailRequest(BaseModel):
    email: EmailStr


class PortalValidateResponse(BaseModel):
    exists: bool
    has_access: Optional[bool] = None


class PortalLoginRequest(BaseModel):
    email: EmailStr
    password: str


class PortalSetupPasswordRequest(BaseModel):
    token: NonEmptyStr
    password: str = Field(..., min_length=8)


class PortalChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8)


class PortalTokenStatus(BaseModel):
    valid: bool


class PortalDoctor(BaseModel):
    id: UUID
    name: str
    specialty: Optional[str] = None
    image: Optional[str] = None

    model_config = {"from_attributes": True}


class PortalPatientProfile(BaseModel):
    id: UUID
    name: str
    email: str
    phone: str
    has_portal_access: bool
    has_active_products: bool
    created_at: datetime
    doctor: Optional[PortalDoctor] = None


class PortalLoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    patient: PortalPatientProfile
