"""
Outbound prospecting and pipeline schemas.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from ..models.outbound import InteractionType
from .common import NonEmptyStr


# =============================================================================
# Outbound
# =============================================================================

class ClinicInput(BaseModel):
    nome: NonEmptyStr
    localizacao: Optional[str] = None
    media_de_medicos: Optional[int] = Field(None, ge=0)


class ClinicResponse(BaseModel):
    id: int
    nome: str
    localizacao: Optional[str] = None
    media_de_medicos: Optional[int] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class OutboundCreate(BaseModel):
    nome: NonEmptyStr
    especialidade: Optional[str] = None
    instagram: Optional[str] = None
    whatsapp: Optional[str] = None
    email: Optional[EmailStr] = None
    status: Optional[str] = None
    observacoes: Optional[str] = None
    endereco: Optional[str] = None
    clinics: List[ClinicInput] = Field(default_factory=list)


class OutboundUpdate(BaseModel):
    nome: Optional[str] = Field(None, min_length=1, max_length=255)
    especialidade: Optional[str] = None
    instagram: Optional[str] = None
    whatsapp: Optional[str] = None
    email: Optional[EmailStr] = None
    status: Optional[str] = None
    observacoes: Optional[str] = None
    endereco: Optional[str] = None


class OutboundResponse(BaseModel):
    id: int
    nome: str
    especialidade: Optional[str] = None
    instagram: Optional[str] = None
    whatsapp: Optional[str] = None
    email: Optional[str] = None
    status: str
    observacoes: Optional[str] = None
    endereco: Optional[str] = None
    created_at: datetime
    clinics: List[ClinicResponse] = []

    model_config = {"from_attributes": True}


class InteractionCreate(BaseModel):
    type: InteractionType
    content: NonEmptyStr


class InteractionResponse(BaseModel):
    id: int
    outbound_id: int
    type: str
    content: str
    created_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Pipelines
# =============================================================================

class PipelineCreate(BaseModel):
    name: NonEmptyStr
    description: Optional[str] = None


class PipelineResponse(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    created_at: datetime
    lead_count: int = 0

    model_config = {"from_attributes": True}
