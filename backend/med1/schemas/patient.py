"""
Patient schemas.
"""

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from .common import NonEmptyStr
from .lead import LeadResponse


class PatientCreate(BaseModel):
    name: NonEmptyStr
    email: EmailStr
    phone: NonEmptyStr
    cpf: Optional[str] = None
    medical_notes: Optional[str] = None
    indication_id: Optional[UUID] = None


class PatientUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, min_length=1, max_length=50)
    cpf: Optional[str] = None
    has_active_products: Optional[bool] = None
    # Forwarded to the linked lead
    status: Optional[str] = None
    appointment_date: Optional[datetime] = None
    medical_notes: Optional[str] = None


class PatientResponse(BaseModel):
    id: UUID
    name: str
    email: str
    phone: str
    cpf: Optional[str] = None
    has_portal_access: bool
    has_active_products: bool
    lead_id: Optional[UUID] = None
    created_at: datetime
    lead: Optional[LeadResponse] = None

    model_config = {"from_attributes": True}


class PatientImportRequest(BaseModel):
    patients: List[Any] = Field(..., description="Raw patient rows; malformed ones count as failed")


class PatientImportResponse(BaseModel):
    imported: int
    total: int
    failed: int


class PortalConfigResponse(BaseModel):
    success: bool = True
    message: str
    email_sent: bool
