"""
Lead schemas for the doctor dashboard, public capture and imports.
"""

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from .common import NonEmptyStr
from ..models.lead import EDITABLE_LEAD_STATUSES


# =============================================================================
# Responses
# =============================================================================

class IndicationSummary(BaseModel):
    name: str
    slug: str

    model_config = {"from_attributes": True}


class LeadResponse(BaseModel):
    id: UUID
    name: str
    phone: str
    email: Optional[str] = None
    status: str
    source: Optional[str] = None
    indication_id: Optional[UUID] = None
    pipeline_id: Optional[UUID] = None
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    utm_term: Optional[str] = None
    utm_content: Optional[str] = None
    appointment_date: Optional[datetime] = None
    medical_notes: Optional[str] = None
    potential_value: Optional[float] = None
    created_at: datetime
    indication: Optional[IndicationSummary] = None

    model_config = {"from_attributes": True}


class LeadUpdateResponse(BaseModel):
    success: bool = True
    data: LeadResponse
    message: str


# =============================================================================
# Doctor requests
# =============================================================================

class LeadUpdate(BaseModel):
    """Partial update from the lead detail screen."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    phone: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    status: Optional[str] = None
    appointment_date: Optional[datetime] = None
    potential_value: Optional[float] = None
    pipeline_id: Optional[UUID] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in EDITABLE_LEAD_STATUSES:
            raise ValueError(f"status must be one of {list(EDITABLE_LEAD_STATUSES)}")
        return v


class LeadNotesRequest(BaseModel):
    medical_notes: str = Field(..., description="Free-text clinical notes for the lead")


class LeadNotesResponse(BaseModel):
    id: UUID
    medical_notes: Optional[str] = None


class LeadImportRequest(BaseModel):
    """Rows are loosely typed; invalid ones are filtered out by the importer."""
    leads: List[Any] = Field(..., description="Raw lead rows")


class LeadImportResponse(BaseModel):
    success: bool = True
    imported: int
    total: int


# =============================================================================
# Public capture
# =============================================================================

class PublicLeadCreate(BaseModel):
    name: NonEmptyStr
    phone: NonEmptyStr
    user_slug: NonEmptyStr
    email: Optional[EmailStr] = None
    indication_slug: Optional[str] = None
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    utm_term: Optional[str] = None
    utm_content: Optional[str] = None


class PipelineLeadCreate(BaseModel):
    name: NonEmptyStr
    phone: NonEmptyStr
    pipeline_id: UUID
    email: Optional[EmailStr] = None


class TrackEventRequest(BaseModel):
    user_id: Optional[UUID] = None
    type: str = "click"
    indication_id: Optional[UUID] = None
    page_id: Optional[UUID] = None
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None


class PublicLeadResponse(BaseModel):
    success: bool = True
    lead_id: UUID
    message: str = "Lead captured"
