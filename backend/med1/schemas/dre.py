"""
DRE fact entry, pivot query and pivot snapshot schemas.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from .common import NonEmptyStr


# =============================================================================
# Fact entries
# =============================================================================

class FactEntryCreate(BaseModel):
    period: NonEmptyStr
    version: Optional[str] = None
    scenario: Optional[str] = None
    bu: Optional[str] = None
    region: Optional[str] = None
    channel: Optional[str] = None
    product_sku: NonEmptyStr
    customer: Optional[str] = None
    cost_center_code: NonEmptyStr
    gl_account: Optional[str] = None
    pnl_line: Optional[str] = None
    value: float


class FactEntryValueUpdate(BaseModel):
    """``value`` is checked in the handler so that non-numeric input maps to 400."""
    value: Any = None


class FactEntryDeleteRequest(BaseModel):
    ids: Any = None


class FactEntryResponse(BaseModel):
    id: int
    period: str
    version: Optional[str] = None
    scenario: Optional[str] = None
    bu: Optional[str] = None
    region: Optional[str] = None
    channel: Optional[str] = None
    product_sku: str
    customer: Optional[str] = None
    cost_center_code: str
    gl_account: Optional[str] = None
    pnl_line: Optional[str] = None
    value: float
    created_at: datetime

    model_config = {"from_attributes": True}


class ImportDetails(BaseModel):
    total_processed: int
    imported_count: int


class ImportResponse(BaseModel):
    message: str
    details: ImportDetails


# =============================================================================
# Pivot query
# =============================================================================

class PivotFilters(BaseModel):
    scenario: Optional[str] = None
    version: Optional[List[str]] = None
    period: Optional[List[str]] = None
    bu: Optional[List[str]] = None


class PivotSort(BaseModel):
    field: str
    direction: Literal["asc", "desc"] = "asc"


class PivotRequest(BaseModel):
    filters: Optional[PivotFilters] = None
    rows: List[str] = Field(..., min_length=1)
    columns: List[str] = Field(default_factory=list)
    metrics: List[str] = Field(default_factory=list)
    sort_by: Optional[PivotSort] = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=100, ge=1, le=1000)


class PivotMetadata(BaseModel):
    page: int
    page_size: int
    total: int


class PivotResponse(BaseModel):
    data: List[Dict[str, Any]]
    totals: Dict[str, Any]
    metadata: PivotMetadata


# =============================================================================
# Pivot snapshots
# =============================================================================

class SnapshotConfig(BaseModel):
    filters: Dict[str, Any] = Field(default_factory=dict)
    rows: List[str]
    columns: List[str] = Field(default_factory=list)
    metrics: List[str]


class SnapshotMetadata(BaseModel):
    created_by: NonEmptyStr
    created_at: datetime
    tags: List[str] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def strip_tags(cls, v: List[str]) -> List[str]:
        return [tag.strip() for tag in v if tag and tag.strip()]


class SnapshotCreate(BaseModel):
    name: NonEmptyStr
    description: Optional[str] = None
    config: SnapshotConfig
    data: List[Dict[str, Any]]
    totals: Dict[str, Any]
    metadata: SnapshotMetadata


class SnapshotResponse(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    config: Dict[str, Any]
    data: List[Dict[str, Any]]
    totals: Dict[str, Any]
    metadata: Dict[str, Any]
    created_at: datetime
