"""
Indication model: a tracked share link owned by a doctor.

Clicks on the link are logged as events and leads captured through it keep a
reference back, so each indication can report its own conversion.
"""

import uuid

from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from ..core.database import Base, utcnow


class Indication(Base):
    __tablename__ = "indications"
    __table_args__ = (
        UniqueConstraint("user_id", "slug", name="uq_indications_user_slug"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False)
    type = Column(String(50), nullable=True)
    quiz_id = Column(Uuid, ForeignKey("quizzes.id", ondelete="SET NULL"), nullable=True, index=True)
    patient_id = Column(Uuid, ForeignKey("patients.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    quiz = relationship("Quiz", back_populates="indications")

    def __repr__(self) -> str:
        return f"<Indication(id={self.id}, slug={self.slug})>"
