"""
Patient database model.

A patient is a converted lead. Patients may be granted access to the
patient portal, where they log in with their own password.
"""

import uuid

from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from ..core.database import Base, as_utc, utcnow


class Patient(Base):
    __tablename__ = "patients"
    __table_args__ = (
        UniqueConstraint("user_id", "email", name="uq_patients_user_email"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # use_alter breaks the leads -> indications -> patients -> leads cycle
    lead_id = Column(
        Uuid,
        ForeignKey("leads.id", ondelete="SET NULL", use_alter=True, name="fk_patients_lead_id"),
        nullable=True,
        unique=True,
    )

    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=False)
    cpf = Column(String(20), nullable=True)

    # Portal access
    password_hash = Column(String(255), nullable=True)
    has_portal_access = Column(Boolean, nullable=False, default=False)
    has_active_products = Column(Boolean, nullable=False, default=False)
    reset_token = Column(String(255), nullable=True, index=True)
    reset_token_expiry = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="patients")
    lead = relationship("Lead", back_populates="patient", lazy="joined")

    @property
    def reset_token_expired(self) -> bool:
        return self.reset_token_expiry is None or utcnow() > as_utc(self.reset_token_expiry)

    def __repr__(self) -> str:
        return f"<Patient(id={self.id}, user_id={self.user_id})>"
