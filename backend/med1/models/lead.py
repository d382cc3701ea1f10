"""
Lead and tracking-event database models.

A lead is a prospective patient contact captured through a public form,
a referral link, a quiz or a bulk import. Events record the traffic that
produced it (link clicks, page views, lead submissions).
"""

import enum
import uuid

from sqlalchemy import (
    Column,
    String,
    Integer,
    Float,
    Text,
    DateTime,
    ForeignKey,
    Uuid,
)
from sqlalchemy.orm import relationship

from ..core.database import Base, utcnow


# =============================================================================
# Enum Definitions
# =============================================================================

class LeadStatus(str, enum.Enum):
    """Statuses used across capture, imports and the dashboard."""
    NOVO = "Novo"
    NEW = "new"
    CONTACTED = "contacted"
    CONVERTED = "converted"
    LOST = "lost"
    FECHADO = "Fechado"


# Statuses a doctor may set from the lead detail screen
EDITABLE_LEAD_STATUSES = (
    LeadStatus.NEW.value,
    LeadStatus.CONTACTED.value,
    LeadStatus.CONVERTED.value,
    LeadStatus.LOST.value,
)


class LeadSource(str, enum.Enum):
    FORM = "form"
    REFERRAL = "referral"
    IMPORT = "import"
    QUIZ = "quiz"
    PIPELINE = "pipeline"
    PATIENT = "patient"


class EventType(str, enum.Enum):
    CLICK = "click"
    LEAD = "lead"
    PAGE_VIEW = "PAGE_VIEW"
    LINK_VIEW = "LINK_VIEW"


# =============================================================================
# Lead Model
# =============================================================================

class Lead(Base):
    """Prospective patient owned by one doctor."""

    __tablename__ = "leads"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(200), nullable=False)
    phone = Column(String(50), nullable=False)
    email = Column(String(255), nullable=True)

    status = Column(String(50), nullable=False, default=LeadStatus.NOVO.value)
    source = Column(String(50), nullable=True)
    indication_id = Column(Uuid, ForeignKey("indications.id", ondelete="SET NULL"), nullable=True, index=True)
    pipeline_id = Column(Uuid, ForeignKey("pipelines.id", ondelete="SET NULL"), nullable=True, index=True)

    # Attribution
    utm_source = Column(String(255), nullable=True)
    utm_medium = Column(String(255), nullable=True)
    utm_campaign = Column(String(255), nullable=True)
    utm_term = Column(String(255), nullable=True)
    utm_content = Column(String(255), nullable=True)

    appointment_date = Column(DateTime(timezone=True), nullable=True)
    medical_notes = Column(Text, nullable=True)
    potential_value = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    indication = relationship("Indication", lazy="joined")
    patient = relationship("Patient", back_populates="lead", uselist=False)

    def __repr__(self) -> str:
        return f"<Lead(id={self.id}, status={self.status})>"


# =============================================================================
# Event Model
# =============================================================================

class Event(Base):
    """Append-only tracking record (clicks, views, lead submissions)."""

    __tablename__ = "events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    indication_id = Column(Uuid, ForeignKey("indications.id", ondelete="SET NULL"), nullable=True, index=True)
    page_id = Column(Uuid, ForeignKey("pages.id", ondelete="SET NULL"), nullable=True)
    type = Column(String(50), nullable=False, default=EventType.CLICK.value)
    ip = Column(String(100), nullable=True)
    user_agent = Column(String(500), nullable=True)
    utm_source = Column(String(255), nullable=True)
    utm_medium = Column(String(255), nullable=True)
    utm_campaign = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
