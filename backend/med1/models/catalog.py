"""
What a doctor offers: the services (procedures, consultations) with their
prices, and the interest options visitors pick from on capture forms.
"""

import uuid

from sqlalchemy import Column, String, Boolean, Float, Text, DateTime, ForeignKey, UniqueConstraint, Uuid

from ..core.database import Base, utcnow


class InterestOption(Base):
    """
    A choice offered on the doctor's capture forms. ``value`` is unique per
    doctor and at most one option is the default.
    """

    __tablename__ = "interest_options"
    __table_args__ = (
        UniqueConstraint("user_id", "value", name="uq_interest_options_user_value"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    label = Column(String(255), nullable=False)
    value = Column(String(255), nullable=False)
    redirect_url = Column(String(500), nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class Service(Base):
    __tablename__ = "services"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=True)
    category = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
