"""
Pydantic schemas for doctor accounts and authentication.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from .common import NonEmptyStr


# =============================================================================
# User profile
# =============================================================================


class UserResponse(BaseModel):
    id: UUID
    name: str
    email: str
    slug: str
    specialty: Optional[str] = None
    image: Optional[str] = None
    page_template: Optional[str] = None
    plan: str
    plan_expires_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ProfileResponse(UserResponse):
    indication_count: int = 0
    lead_count: int = 0


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    specialty: Optional[str] = Field(None, max_length=200)
    image: Optional[str] = Field(None, max_length=500)
    page_template: Optional[str] = Field(None, max_length=50)


class PlanResponse(BaseModel):
    plan: str
    plan_expires_at: Optional[datetime] = None


class PublicDoctorResponse(BaseModel):
    id: UUID
    name: str
    specialty: Optional[str] = None
    image: Optional[str] = None

    model_config = {"from_attributes": True}


# =============================================================================
# Registration / verification
# =============================================================================


class RegisterRequest(BaseModel):
    name: NonEmptyStr
    email: EmailStr
    password: str = Field(..., min_length=8)
    slug: NonEmptyStr
    specialty: Optional[str] = None

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: str) -> str:
        v = v.lower()
        if not all(c.isalnum() or c in "-_" for c in v):
            raise ValueError("slug may only contain letters, numbers, '-' and '_'")
        return v


class RegisterResponse(BaseModel):
    message: str
    user_id: UUID


class VerifyRequest(BaseModel):
    email: EmailStr
    code: NonEmptyStr


class ResendCodeRequest(BaseModel):
    email: EmailStr


# =============================================================================
# Auth Request / Response
# =============================================================================


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserResponse


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class RefreshTokenResponse(BaseModel):
    access_token: str
    refresh_token: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: NonEmptyStr
    new_password: str = Field(..., min_length=8)


class MessageResponse(BaseModel):
    success: bool = True
    message: str
