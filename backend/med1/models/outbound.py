"""
Outbound prospecting models.

An outbound contact is another professional the doctor is prospecting;
each contact can be linked to the clinics where they work and keeps a log of
the interactions (messages, calls) the doctor had with them. Field names
follow the Portuguese vocabulary used by the prospecting screens.
"""

import enum

from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from ..core.database import Base, utcnow


DEFAULT_OUTBOUND_STATUS = "prospectado"


class InteractionType(str, enum.Enum):
    WHATSAPP = "whatsapp"
    EMAIL = "email"
    INSTAGRAM = "instagram"
    CALL = "call"
    OTHER = "other"


class Outbound(Base):
    __tablename__ = "outbound_contacts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    nome = Column(String(255), nullable=False)
    especialidade = Column(String(255), nullable=True)
    instagram = Column(String(255), nullable=True)
    whatsapp = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    status = Column(String(50), nullable=False, default=DEFAULT_OUTBOUND_STATUS)
    observacoes = Column(Text, nullable=True)
    endereco = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    clinics = relationship(
        "OutboundClinic",
        back_populates="outbound",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    interactions = relationship(
        "ContactInteraction",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class OutboundClinic(Base):
    __tablename__ = "outbound_clinics"

    id = Column(Integer, primary_key=True, autoincrement=True)
    outbound_id = Column(Integer, ForeignKey("outbound_contacts.id", ondelete="CASCADE"), nullable=False, index=True)
    nome = Column(String(255), nullable=False)
    localizacao = Column(String(500), nullable=True)
    media_de_medicos = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    outbound = relationship("Outbound", back_populates="clinics")


class ContactInteraction(Base):
    __tablename__ = "contact_interactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    outbound_id = Column(Integer, ForeignKey("outbound_contacts.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(20), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
