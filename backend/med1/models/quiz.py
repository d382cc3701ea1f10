"""
Quiz models: questionnaires shared through an indication link.
"""

import uuid

from sqlalchemy import Column, String, Boolean, Integer, Text, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from ..core.database import Base, JSONType, utcnow


class Quiz(Base):
    __tablename__ = "quizzes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    user = relationship("User", lazy="joined")
    questions = relationship(
        "QuizQuestion",
        order_by="QuizQuestion.order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    indications = relationship(
        "Indication",
        back_populates="quiz",
        order_by="Indication.created_at.desc()",
    )


class QuizQuestion(Base):
    __tablename__ = "quiz_questions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    quiz_id = Column(Uuid, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    text = Column(Text, nullable=False)
    type = Column(String(50), nullable=False, default="text")
    required = Column(Boolean, nullable=False, default=True)
    variable_name = Column(String(100), nullable=True)
    options = Column(JSONType, nullable=True)
    order = Column(Integer, nullable=False, default=0)
