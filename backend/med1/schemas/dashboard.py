"""
Dashboard statistics schema.
"""

from typing import List
from uuid import UUID

from pydantic import BaseModel

from .lead import LeadResponse


class TopIndication(BaseModel):
    id: UUID
    name: str
    slug: str
    lead_count: int
    event_count: int


class TopSource(BaseModel):
    source: str
    count: int


class DashboardResponse(BaseModel):
    total_leads: int
    total_indications: int
    total_clicks: int
    conversion_rate: int
    recent_leads: List[LeadResponse]
    top_indications: List[TopIndication]
    top_sources: List[TopSource]
    total_revenue: float
    potential_revenue: float
