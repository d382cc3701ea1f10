"""
Interest option and service schemas.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from .common import NonEmptyStr


# =============================================================================
# Interest options
# =============================================================================

class InterestOptionInput(BaseModel):
    label: NonEmptyStr
    value: NonEmptyStr
    redirect_url: Optional[str] = None
    is_default: bool = False


class PublicInterestOption(BaseModel):
    id: UUID
    label: str
    value: str
    redirect_url: Optional[str] = None
    is_default: bool

    model_config = {"from_attributes": True}


class InterestOptionResponse(PublicInterestOption):
    created_at: datetime


# =============================================================================
# Services
# =============================================================================

class ServiceCreate(BaseModel):
    name: NonEmptyStr
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    category: Optional[str] = None
    is_active: bool = True


class ServiceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    category: Optional[str] = None
    is_active: Optional[bool] = None


class ServiceResponse(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    price: Optional[float] = None
    category: Optional[str] = None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
