"""
Indication (tracked share link) schemas.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from .common import NonEmptyStr
from .lead import LeadResponse


class IndicationCreate(BaseModel):
    name: NonEmptyStr
    slug: Optional[str] = Field(None, description="Custom slug; derived from name when empty")
    type: Optional[str] = None
    quiz_id: Optional[UUID] = None
    patient_id: Optional[UUID] = None


class IndicationUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[str] = None
    quiz_id: Optional[UUID] = None


class IndicationResponse(BaseModel):
    id: UUID
    name: str
    slug: str
    type: Optional[str] = None
    quiz_id: Optional[UUID] = None
    patient_id: Optional[UUID] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class IndicationWithCounts(IndicationResponse):
    click_count: int = 0
    lead_count: int = 0


class IndicationDetail(IndicationWithCounts):
    recent_leads: List[LeadResponse] = []


class IndicationStats(BaseModel):
    id: UUID
    name: str
    slug: str
    clicks: int
    leads: int
    conversion_rate: float


class SlugifyRequest(BaseModel):
    name: NonEmptyStr


class SlugifyResponse(BaseModel):
    slug: str
